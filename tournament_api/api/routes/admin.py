"""Admin user management route handlers."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_api.api.routes import envelope
from tournament_api.database.db import get_db_session
from tournament_api.services import user_service
from tournament_api.api.auth_dependencies import require_admin
from tournament_api.models.schemas import UpdateRoleRequest
from tournament_api.utils.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/admin/users")
async def list_users(
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Users per page"),
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """List user accounts, newest first (admin)."""
    result = await user_service.list_users(session, page=page, limit=limit)
    return envelope(result, count=result["total_users"])


@router.get("/api/admin/users/stats")
async def user_stats(
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Account totals and growth (admin)."""
    return envelope(await user_service.get_user_stats(session))


@router.put("/api/admin/users/{user_id}/role")
async def update_user_role(
    user_id: int,
    payload: UpdateRoleRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Change a user's role (admin)."""
    user = await user_service.update_user_role(session, user_id, payload.role)
    logger.info(f"Admin {admin['id']} set user {user_id} role to {payload.role.value}")
    return envelope(user, message="User role updated")


@router.delete("/api/admin/users/{user_id}")
async def delete_user(
    user_id: int,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a user account (admin). Admins cannot delete themselves."""
    await user_service.delete_user(session, user_id, acting_user_id=admin["id"])
    return envelope(message="User deleted successfully")
