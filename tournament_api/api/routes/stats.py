"""Statistics route handlers. All public."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_api.api.routes import envelope
from tournament_api.database.db import get_db_session
from tournament_api.services import stats_service
from tournament_api.utils.constants import DEFAULT_TOP_SCORERS_LIMIT, MAX_PAGE_SIZE, SUMMARY_MATCHES_LIMIT, TOP_TEAMS_LIMIT

router = APIRouter()


@router.get("/api/stats/top-scorers")
async def top_scorers(
    tournament_id: Optional[int] = Query(None, description="Only goals from this tournament"),
    limit: int = Query(DEFAULT_TOP_SCORERS_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    session: AsyncSession = Depends(get_db_session),
):
    """Players ranked by goals scored."""
    return envelope(await stats_service.top_scorers(session, tournament_id=tournament_id, limit=limit))


@router.get("/api/stats/red-cards")
async def red_card_leaders(
    tournament_id: Optional[int] = Query(None, description="Only bookings from this tournament"),
    limit: Optional[int] = Query(None, ge=1, le=MAX_PAGE_SIZE, description="Defaults to all players"),
    session: AsyncSession = Depends(get_db_session),
):
    """Players ranked by times sent off."""
    return envelope(await stats_service.red_card_leaders(session, tournament_id=tournament_id, limit=limit))


@router.get("/api/stats/recent-matches")
async def recent_matches(
    tournament_id: Optional[int] = Query(None),
    limit: int = Query(SUMMARY_MATCHES_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    session: AsyncSession = Depends(get_db_session),
):
    """Latest completed matches."""
    return envelope(await stats_service.recent_matches(session, tournament_id=tournament_id, limit=limit))


@router.get("/api/stats/upcoming-matches")
async def upcoming_matches(
    tournament_id: Optional[int] = Query(None),
    limit: int = Query(SUMMARY_MATCHES_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    session: AsyncSession = Depends(get_db_session),
):
    """Next scheduled matches."""
    return envelope(await stats_service.upcoming_matches(session, tournament_id=tournament_id, limit=limit))


@router.get("/api/stats/top-teams")
async def top_teams(
    tournament_id: Optional[int] = Query(None),
    limit: int = Query(TOP_TEAMS_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    session: AsyncSession = Depends(get_db_session),
):
    """Teams with the most wins."""
    return envelope(await stats_service.top_teams_by_wins(session, tournament_id=tournament_id, limit=limit))


@router.get("/api/stats/tournament/{tournament_id}")
async def tournament_summary(tournament_id: int, session: AsyncSession = Depends(get_db_session)):
    """Standings, top scorers, recent and upcoming matches of a tournament."""
    return envelope(await stats_service.tournament_summary(session, tournament_id))


@router.get("/api/stats/tournament/{tournament_id}/team-scorers")
async def highest_scorer_per_team(tournament_id: int, session: AsyncSession = Depends(get_db_session)):
    """Leading scorer of each team in a tournament."""
    return envelope(await stats_service.highest_scorer_per_team(session, tournament_id))


@router.get("/api/stats/tournament/{tournament_id}/goal-breakdown")
async def player_goal_breakdown(tournament_id: int, session: AsyncSession = Depends(get_db_session)):
    """Penalty and non-penalty goals per player in a tournament."""
    return envelope(await stats_service.player_goal_breakdown(session, tournament_id))
