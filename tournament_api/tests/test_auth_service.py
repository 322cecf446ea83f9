"""
Unit tests for authentication service.
Tests password hashing, JWT tokens, password rules and email validation.
"""
import pytest
from datetime import timedelta
import jwt
from tournament_api.services import auth_service


class TestPasswordHashing:
    """Tests for password hashing and verification."""

    def test_hash_password(self):
        """Test password hashing produces different hashes for same password."""
        password = "test_password_123"
        hash1 = auth_service.hash_password(password)
        hash2 = auth_service.hash_password(password)

        # Hashes should be different (due to salt)
        assert hash1 != hash2
        # But both should verify correctly
        assert auth_service.verify_password(password, hash1)
        assert auth_service.verify_password(password, hash2)

    def test_verify_password_incorrect(self):
        """Test password verification with incorrect password."""
        password_hash = auth_service.hash_password("test_password_123")

        assert auth_service.verify_password("wrong_password", password_hash) is False

    def test_verify_password_empty(self):
        """Test password verification with empty password."""
        password_hash = auth_service.hash_password("test_password_123")

        assert auth_service.verify_password("", password_hash) is False

    def test_verify_password_malformed_hash(self):
        """A corrupt stored hash fails verification instead of raising."""
        assert auth_service.verify_password("test_password_123", "not-a-bcrypt-hash") is False

    def test_long_password_is_truncated_consistently(self):
        """bcrypt only sees 72 bytes; hashing and verifying agree on that."""
        password = "x" * 100
        password_hash = auth_service.hash_password(password)
        assert auth_service.verify_password(password, password_hash) is True


class TestJWTTokens:
    """Tests for JWT token creation and verification."""

    def test_verify_token_valid(self):
        """Test verifying a valid token."""
        token = auth_service.create_access_token({"user_id": 1, "role": "admin"})

        decoded = auth_service.verify_token(token)
        assert decoded is not None
        assert decoded["user_id"] == 1
        assert decoded["role"] == "admin"
        assert "exp" in decoded
        assert "iat" in decoded

    def test_verify_token_invalid(self):
        """Test verifying an invalid token."""
        assert auth_service.verify_token("invalid_token_string") is None
        assert auth_service.verify_token("") is None

    def test_verify_token_expired(self):
        """Test verifying an expired token."""
        token = auth_service.create_access_token({"user_id": 1}, expires_delta=timedelta(seconds=-1))

        assert auth_service.verify_token(token) is None

    def test_verify_token_wrong_secret(self):
        """Tokens signed with another key are rejected."""
        token = jwt.encode({"user_id": 1, "role": "admin"}, "some-other-secret-value-0123456789", algorithm="HS256")
        assert auth_service.verify_token(token) is None

    def test_default_lifetime(self):
        token = auth_service.create_access_token({"user_id": 1})
        decoded = auth_service.verify_token(token)
        lifetime = decoded["exp"] - decoded["iat"]
        assert lifetime == pytest.approx(timedelta(days=auth_service.ACCESS_TOKEN_EXPIRE_DAYS).total_seconds(), abs=2)

    def test_session_token_binds_id_and_role(self):
        token = auth_service.create_session_token({"id": 42, "role": "guest", "email": "x@example.com"})
        decoded = auth_service.verify_token(token)
        assert decoded["user_id"] == 42
        assert decoded["role"] == "guest"
        assert "email" not in decoded


class TestEmailValidation:
    """Tests for email validation and normalization."""

    def test_valid_emails(self):
        assert auth_service.is_valid_email("test@example.com") is True
        assert auth_service.is_valid_email("user.name@example.co.uk") is True
        assert auth_service.is_valid_email("user+tag@example.com") is True

    def test_invalid_emails(self):
        assert auth_service.is_valid_email("invalid") is False
        assert auth_service.is_valid_email("@example.com") is False
        assert auth_service.is_valid_email("test@") is False
        assert auth_service.is_valid_email("") is False
        assert auth_service.is_valid_email(None) is False
        assert auth_service.is_valid_email("test @example.com") is False  # Space

    def test_normalize_email(self):
        """Test normalizing email addresses."""
        assert auth_service.normalize_email("Test@Example.COM") == "test@example.com"
        assert auth_service.normalize_email("  Test@Example.COM  ") == "test@example.com"


class TestPasswordRules:
    def test_acceptable_password(self):
        assert auth_service.validate_password("password123") is None

    def test_too_short(self):
        assert auth_service.validate_password("short") == "Password must be at least 8 characters long"
        assert auth_service.validate_password("") is not None

    def test_too_long(self):
        assert auth_service.validate_password("é" * 40) is not None
