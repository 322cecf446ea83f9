"""Tournament and standings route handlers."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_api.api.routes import envelope
from tournament_api.database.db import get_db_session
from tournament_api.services import standings_service, tournament_service
from tournament_api.api.auth_dependencies import require_admin
from tournament_api.models.schemas import CreateTournamentRequest, UpdateTournamentRequest

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/tournaments")
async def list_tournaments(session: AsyncSession = Depends(get_db_session)):
    """List tournaments with team and match counts."""
    return envelope(await tournament_service.list_tournaments(session))


@router.get("/api/tournaments/{tournament_id}")
async def get_tournament(tournament_id: int, session: AsyncSession = Depends(get_db_session)):
    """Get a tournament with its teams and matches."""
    return envelope(await tournament_service.get_tournament(session, tournament_id))


@router.post("/api/tournaments", status_code=201)
async def create_tournament(
    payload: CreateTournamentRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a tournament (admin)."""
    tournament = await tournament_service.create_tournament(
        session, payload.name.strip(), payload.start_date, payload.end_date
    )
    return envelope(tournament, message="Tournament created")


@router.put("/api/tournaments/{tournament_id}")
async def update_tournament(
    tournament_id: int,
    payload: UpdateTournamentRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Update a tournament (admin)."""
    tournament = await tournament_service.update_tournament(
        session,
        tournament_id,
        name=payload.name,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    return envelope(tournament, message="Tournament updated")


@router.delete("/api/tournaments/{tournament_id}")
async def delete_tournament(
    tournament_id: int,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a tournament and everything in it (admin)."""
    await tournament_service.delete_tournament(session, tournament_id)
    return envelope(message="Tournament deleted")


@router.get("/api/tournaments/{tournament_id}/standings")
async def get_standings(tournament_id: int, session: AsyncSession = Depends(get_db_session)):
    """Standings of a tournament, best team first."""
    return envelope(await standings_service.get_standings(session, tournament_id))


@router.post("/api/tournaments/{tournament_id}/standings/rebuild")
async def rebuild_standings(
    tournament_id: int,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Recompute all standings rows of a tournament from its matches (admin)."""
    standings = await standings_service.rebuild_standings(session, tournament_id)
    return envelope(standings, message="Standings rebuilt")
