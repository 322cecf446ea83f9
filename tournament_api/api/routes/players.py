"""Player route handlers."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_api.api.routes import envelope
from tournament_api.database.db import get_db_session
from tournament_api.services import player_service
from tournament_api.api.auth_dependencies import require_admin
from tournament_api.models.schemas import CreatePlayerRequest, UpdatePlayerRequest

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/players")
async def list_players(
    team_id: Optional[int] = Query(None, description="Only players on this team"),
    tournament_id: Optional[int] = Query(None, description="Only players rostered in this tournament"),
    session: AsyncSession = Depends(get_db_session),
):
    """List players."""
    return envelope(await player_service.list_players(session, team_id=team_id, tournament_id=tournament_id))


@router.get("/api/players/{player_id}")
async def get_player(player_id: int, session: AsyncSession = Depends(get_db_session)):
    """Get a player with their roster entries."""
    return envelope(await player_service.get_player(session, player_id))


@router.post("/api/players", status_code=201)
async def create_player(
    payload: CreatePlayerRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a player, optionally adding them to a roster (admin)."""
    player = await player_service.create_player(session, **payload.model_dump())
    return envelope(player, message="Player created")


@router.put("/api/players/{player_id}")
async def update_player(
    player_id: int,
    payload: UpdatePlayerRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Update a player (admin)."""
    player = await player_service.update_player(session, player_id, **payload.model_dump())
    return envelope(player, message="Player updated")


@router.delete("/api/players/{player_id}")
async def delete_player(
    player_id: int,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a player without match events (admin)."""
    await player_service.delete_player(session, player_id)
    return envelope(message="Player deleted")
