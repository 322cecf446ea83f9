"""
Authentication dependencies for FastAPI routes.

The session token is read from the Authorization header (Bearer) or, failing
that, from the auth cookie.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from tournament_api.services import auth_service, user_service
from tournament_api.database.db import get_db_session
from tournament_api.database.models import UserRole

security = HTTPBearer(auto_error=False)


def _extract_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    """Bearer header wins over the cookie when both are present."""
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(auth_service.AUTH_COOKIE_NAME) or None


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    Dependency to get the current authenticated user from JWT token.

    Args:
        request: Incoming request (for the auth cookie)
        session: Database session
        credentials: HTTP Bearer token credentials, if sent

    Returns:
        User dictionary (without password hash)

    Raises:
        HTTPException: 401 if the token is missing or invalid, or the user is gone
    """
    token = _extract_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Verify token
    payload = auth_service.verify_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Get user_id from token
    user_id = payload.get("user_id")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Get user from database
    user = await user_service.get_user_by_id(session, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user_service.public_user(user)


async def require_admin(user: dict = Depends(get_current_user)) -> dict:
    """
    Require an authenticated admin.

    Raises:
        HTTPException: 403 if the user is not an admin
    """
    if user.get("role") != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin privileges required.",
        )
    return user
