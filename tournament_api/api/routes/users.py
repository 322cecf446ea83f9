"""User account, password and settings route handlers."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_api.api.routes import envelope
from tournament_api.database.db import get_db_session
from tournament_api.services import auth_service, settings_service, user_service
from tournament_api.api.auth_dependencies import get_current_user
from tournament_api.models.schemas import ChangePasswordRequest, UpdateProfileRequest
from tournament_api.utils.exceptions import UnauthorizedError, ValidationError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/users/me")
async def get_me(current_user: dict = Depends(get_current_user)):
    """Get the caller's account."""
    return envelope(current_user)


@router.patch("/api/users/me")
async def update_me(
    payload: UpdateProfileRequest,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Change the caller's username and/or email."""
    if payload.email is not None and not auth_service.is_valid_email(payload.email):
        raise ValidationError("Please provide a valid email address")
    user = await user_service.update_user(
        session,
        current_user["id"],
        username=payload.username.strip() if payload.username else None,
        email=payload.email,
    )
    return envelope(user_service.public_user(user), message="Profile updated")


@router.post("/api/password/change")
async def change_password(
    payload: ChangePasswordRequest,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Change the caller's password.

    The current password must be confirmed; the new password must be typed
    twice.
    """
    if payload.new_password != payload.confirm_password:
        raise ValidationError("New passwords do not match")
    password_error = auth_service.validate_password(payload.new_password)
    if password_error:
        raise ValidationError(password_error)

    user = await user_service.get_user_by_id(session, current_user["id"])
    if not auth_service.verify_password(payload.current_password, user["password_hash"]):
        raise UnauthorizedError("Current password is incorrect")

    await user_service.update_user_password(
        session, current_user["id"], auth_service.hash_password(payload.new_password)
    )
    logger.info(f"User {current_user['id']} changed their password")
    return envelope(message="Password updated successfully")


@router.get("/api/settings")
async def get_settings(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get all settings categories of the caller."""
    return envelope(await settings_service.get_settings(session, current_user["id"]))


@router.patch("/api/settings/{category}")
async def update_settings(
    category: str,
    payload: Dict[str, Any] = Body(...),
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Update one settings category (profile, appearance or notifications)."""
    settings = await settings_service.update_settings(session, current_user["id"], category, payload)
    return envelope(settings, message=f"{category.capitalize()} settings updated")
