"""Match, result and match event route handlers."""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_api.api.routes import envelope
from tournament_api.database.db import get_db_session
from tournament_api.database.models import MatchStatus
from tournament_api.services import match_service, standings_service
from tournament_api.api.auth_dependencies import require_admin
from tournament_api.models.schemas import (
    BookingRequest,
    CreateMatchRequest,
    GoalEventRequest,
    MatchResultRequest,
    PenaltyKickRequest,
    UpdateMatchRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/matches")
async def list_matches(
    tournament_id: Optional[int] = Query(None, description="Filter by tournament"),
    team_id: Optional[int] = Query(None, description="Filter by participating team"),
    status: Optional[MatchStatus] = Query(None, description="upcoming or completed"),
    sort_by: Literal["date_asc", "date_desc"] = Query("date_asc", description="Sort order by play date"),
    session: AsyncSession = Depends(get_db_session),
):
    """List matches."""
    matches = await match_service.list_matches(
        session, tournament_id=tournament_id, team_id=team_id, status=status, sort_by=sort_by
    )
    return envelope(matches)


@router.get("/api/matches/{match_id}")
async def get_match(match_id: int, session: AsyncSession = Depends(get_db_session)):
    """Get a match with its goals, shootout, bookings and team details."""
    return envelope(await match_service.get_match(session, match_id))


@router.post("/api/matches", status_code=201)
async def create_match(
    payload: CreateMatchRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a fixture (admin)."""
    match = await match_service.create_match(session, **payload.model_dump())
    return envelope(match, message="Match created")


@router.put("/api/matches/{match_id}")
async def update_match(
    match_id: int,
    payload: UpdateMatchRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Update fixture details (admin)."""
    match = await match_service.update_match(session, match_id, **payload.model_dump())
    return envelope(match, message="Match updated")


@router.delete("/api/matches/{match_id}")
async def delete_match(
    match_id: int,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a match and its events; standings are recomputed (admin)."""
    await match_service.delete_match(session, match_id)
    return envelope(message="Match deleted")


@router.put("/api/matches/{match_id}/result")
async def record_result(
    match_id: int,
    payload: MatchResultRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Record the result of a match and update the standings (admin).

    Send amend=true to overwrite the result of a completed match.
    """
    result = await standings_service.record_result(session, match_id, **payload.model_dump())
    return envelope(result, message="Match result recorded")


@router.post("/api/matches/{match_id}/goals", status_code=201)
async def add_goal(
    match_id: int,
    payload: GoalEventRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Record a goal (admin)."""
    goal = await match_service.add_goal(session, match_id, **payload.model_dump())
    return envelope(goal, message="Goal recorded")


@router.post("/api/matches/{match_id}/penalty-kicks", status_code=201)
async def add_penalty_kick(
    match_id: int,
    payload: PenaltyKickRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Record a shootout kick (admin)."""
    kick = await match_service.add_penalty_kick(session, match_id, **payload.model_dump())
    return envelope(kick, message="Penalty kick recorded")


@router.post("/api/matches/{match_id}/bookings", status_code=201)
async def add_booking(
    match_id: int,
    payload: BookingRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Record a booking (admin)."""
    booking = await match_service.add_booking(session, match_id, **payload.model_dump())
    return envelope(booking, message="Booking recorded")


@router.post("/api/matches/{match_id}/reminders")
async def send_reminders(
    match_id: int,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Email both teams a reminder of the match (admin)."""
    outcomes = await match_service.send_match_reminders(session, match_id)
    sent = sum(1 for outcome in outcomes if outcome["sent"])
    return envelope(outcomes, message=f"Reminders sent to {sent} of {len(outcomes)} teams")
