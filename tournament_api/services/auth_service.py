"""
Authentication service: password hashing, JWT issuance/verification and
credential format checks.
"""

import os
import re
import logging
from datetime import timedelta
from typing import Optional, Dict, Any

import bcrypt
import jwt
from dotenv import load_dotenv

from tournament_api.utils.datetime_utils import utcnow

load_dotenv()

logger = logging.getLogger(__name__)

# JWT configuration
JWT_SECRET = os.getenv("JWT_SECRET", "dev-only-secret-change-me-0123456789abcdef")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "15"))

# Cookie carrying the session token (alternative to the Authorization header)
AUTH_COOKIE_NAME = os.getenv("AUTH_COOKIE_NAME", "jwt")

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PASSWORD_LENGTH = 8
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """
    Hash a password with bcrypt.

    Args:
        password: Plain text password

    Returns:
        bcrypt hash as a string
    """
    hashed = bcrypt.hashpw(password.encode("utf-8")[:MAX_PASSWORD_BYTES], bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a plain text password against a stored bcrypt hash.

    Returns:
        True if the password matches, False otherwise (including malformed hashes)
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(
            password.encode("utf-8")[:MAX_PASSWORD_BYTES], password_hash.encode("utf-8")
        )
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to include (user_id and role for session tokens)
        expires_delta: Optional custom lifetime, defaults to ACCESS_TOKEN_EXPIRE_DAYS

    Returns:
        Encoded JWT
    """
    now = utcnow()
    expire = now + (expires_delta if expires_delta is not None else timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
    payload = dict(data)
    payload.update({"exp": expire, "iat": now})
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT.

    Returns:
        The token payload, or None if the token is malformed, expired or its
        signature does not verify
    """
    if not token:
        return None
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired token")
        return None
    except jwt.PyJWTError:
        logger.debug("Rejected invalid token")
        return None


def create_session_token(user: Dict[str, Any]) -> str:
    """Issue the session token for a user dict (binds user id and role)."""
    return create_access_token({"user_id": user["id"], "role": user["role"]})


def normalize_email(email: str) -> str:
    """Normalize an email address for storage and lookup."""
    return email.strip().lower()


def is_valid_email(email: Optional[str]) -> bool:
    """Check an email address against the accepted format."""
    return bool(email) and EMAIL_REGEX.match(email.strip()) is not None


def validate_password(password: str) -> Optional[str]:
    """
    Check password rules.

    Returns:
        An error message, or None when the password is acceptable
    """
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return f"Password must be at most {MAX_PASSWORD_BYTES} bytes long"
    return None
