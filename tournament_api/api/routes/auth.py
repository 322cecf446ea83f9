"""Authentication route handlers."""

import os
import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_api.api.routes import limiter, envelope, INVALID_CREDENTIALS_RESPONSE
from tournament_api.database.db import get_db_session
from tournament_api.services import auth_service, user_service
from tournament_api.api.auth_dependencies import get_current_user
from tournament_api.models.schemas import RegisterRequest, LoginRequest
from tournament_api.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)
router = APIRouter()

COOKIE_SECURE = os.getenv("ENV", "development").lower() == "production"


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=auth_service.AUTH_COOKIE_NAME,
        value=token,
        max_age=auth_service.ACCESS_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="strict",
    )


@router.post("/api/auth/register", status_code=201)
@limiter.limit("10/minute")
async def register(
    request: Request,
    response: Response,
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
):
    """
    Create an account and sign it in.

    Only one admin may register; further admin registrations are refused.
    """
    if not auth_service.is_valid_email(payload.email):
        raise ValidationError("Please provide a valid email address")
    password_error = auth_service.validate_password(payload.password)
    if password_error:
        raise ValidationError(password_error)

    user = await user_service.create_user(
        session,
        username=payload.username.strip(),
        email=auth_service.normalize_email(payload.email),
        password_hash=auth_service.hash_password(payload.password),
        role=payload.role,
    )
    token = auth_service.create_session_token(user)
    _set_auth_cookie(response, token)
    return envelope(
        {"token": token, "user": user_service.public_user(user)},
        message="User registered successfully",
    )


@router.post("/api/auth/login")
@limiter.limit("10/minute")
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
):
    """Login with email and password."""
    user = await user_service.get_user_by_email(session, payload.email)
    if not user:
        raise INVALID_CREDENTIALS_RESPONSE
    if not auth_service.verify_password(payload.password, user["password_hash"]):
        raise INVALID_CREDENTIALS_RESPONSE

    await user_service.record_login(session, user["id"])
    token = auth_service.create_session_token(user)
    _set_auth_cookie(response, token)
    logger.info(f"User {user['id']} logged in")
    return envelope({"token": token, "user": user_service.public_user(user)})


@router.post("/api/auth/logout")
async def logout(response: Response):
    """Clear the auth cookie."""
    response.delete_cookie(auth_service.AUTH_COOKIE_NAME)
    return envelope(message="Logged out successfully")


@router.get("/api/auth/user")
async def get_auth_user(current_user: dict = Depends(get_current_user)):
    """Get the caller's account."""
    return envelope(current_user)
