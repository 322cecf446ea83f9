"""
Tournament registry operations.
"""

from datetime import date
from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from tournament_api.database.models import (
    Booking,
    GoalEvent,
    Match,
    MatchTeamDetail,
    PenaltyKick,
    Team,
    TeamPlayer,
    Tournament,
    TournamentTeam,
)
from tournament_api.utils.datetime_utils import isoformat_or_none
from tournament_api.utils.exceptions import NotFoundError, ValidationError
import logging

logger = logging.getLogger(__name__)


def _check_dates(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")


async def create_tournament(session: AsyncSession, name: str, start_date: date, end_date: date) -> Dict:
    """Create a new tournament."""
    _check_dates(start_date, end_date)
    tournament = Tournament(name=name, start_date=start_date, end_date=end_date)
    session.add(tournament)
    await session.flush()
    await session.commit()
    await session.refresh(tournament)
    logger.info(f"Created tournament {tournament.id} ({name})")
    return _tournament_to_dict(tournament)


async def list_tournaments(session: AsyncSession) -> List[Dict]:
    """List tournaments with team and match counts, latest start first."""
    team_counts = (
        select(TournamentTeam.tournament_id, func.count(TournamentTeam.id).label("team_count"))
        .group_by(TournamentTeam.tournament_id)
        .subquery()
    )
    match_counts = (
        select(Match.tournament_id, func.count(Match.id).label("match_count"))
        .group_by(Match.tournament_id)
        .subquery()
    )
    result = await session.execute(
        select(
            Tournament,
            func.coalesce(team_counts.c.team_count, 0),
            func.coalesce(match_counts.c.match_count, 0),
        )
        .outerjoin(team_counts, team_counts.c.tournament_id == Tournament.id)
        .outerjoin(match_counts, match_counts.c.tournament_id == Tournament.id)
        .order_by(Tournament.start_date.desc(), Tournament.id.desc())
    )
    tournaments = []
    for tournament, team_count, match_count in result.all():
        data = _tournament_to_dict(tournament)
        data["team_count"] = team_count
        data["match_count"] = match_count
        tournaments.append(data)
    return tournaments


async def get_tournament(session: AsyncSession, tournament_id: int) -> Dict:
    """
    Get a tournament with its teams and matches.

    Raises:
        NotFoundError: If the tournament does not exist
    """
    tournament = await session.get(Tournament, tournament_id)
    if tournament is None:
        raise NotFoundError("Tournament not found")

    data = _tournament_to_dict(tournament)

    teams = await session.execute(
        select(TournamentTeam.team_id, Team.name, TournamentTeam.group_label)
        .join(Team, Team.id == TournamentTeam.team_id)
        .where(TournamentTeam.tournament_id == tournament_id)
        .order_by(TournamentTeam.group_label.asc(), Team.name.asc())
    )
    data["teams"] = [
        {"team_id": team_id, "team_name": name, "group": group}
        for team_id, name, group in teams.all()
    ]

    matches = await session.execute(
        select(Match.id, Match.play_date, Match.home_team_id, Match.away_team_id, Match.status,
               Match.home_score, Match.away_score)
        .where(Match.tournament_id == tournament_id)
        .order_by(Match.play_date.asc(), Match.id.asc())
    )
    data["matches"] = [
        {
            "id": match_id,
            "play_date": isoformat_or_none(play_date),
            "home_team_id": home_id,
            "away_team_id": away_id,
            "status": status.value,
            "home_score": home_score,
            "away_score": away_score,
        }
        for match_id, play_date, home_id, away_id, status, home_score, away_score in matches.all()
    ]
    return data


async def update_tournament(
    session: AsyncSession,
    tournament_id: int,
    name: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Dict:
    """Update a tournament. Only the given fields change."""
    tournament = await session.get(Tournament, tournament_id)
    if tournament is None:
        raise NotFoundError("Tournament not found")

    new_start = start_date if start_date is not None else tournament.start_date
    new_end = end_date if end_date is not None else tournament.end_date
    _check_dates(new_start, new_end)

    if name is not None:
        tournament.name = name
    tournament.start_date = new_start
    tournament.end_date = new_end
    await session.commit()
    await session.refresh(tournament)
    return _tournament_to_dict(tournament)


async def delete_tournament(session: AsyncSession, tournament_id: int) -> None:
    """
    Delete a tournament.

    Deletes all related records first:
    - match events, shootout kicks, bookings and per-team details
    - matches
    - rosters and standings rows
    - then the tournament itself
    """
    tournament = await session.get(Tournament, tournament_id)
    if tournament is None:
        raise NotFoundError("Tournament not found")

    match_ids = select(Match.id).where(Match.tournament_id == tournament_id)
    for model in (GoalEvent, PenaltyKick, Booking, MatchTeamDetail):
        await session.execute(delete(model).where(model.match_id.in_(match_ids)))
    await session.execute(delete(Match).where(Match.tournament_id == tournament_id))
    await session.execute(delete(TeamPlayer).where(TeamPlayer.tournament_id == tournament_id))
    await session.execute(delete(TournamentTeam).where(TournamentTeam.tournament_id == tournament_id))
    await session.execute(delete(Tournament).where(Tournament.id == tournament_id))
    await session.commit()
    logger.info(f"Deleted tournament {tournament_id}")


async def require_tournament(session: AsyncSession, tournament_id: int) -> Tournament:
    """Fetch a tournament or raise NotFoundError."""
    tournament = await session.get(Tournament, tournament_id)
    if tournament is None:
        raise NotFoundError("Tournament not found")
    return tournament


def _tournament_to_dict(tournament: Tournament) -> Dict:
    return {
        "id": tournament.id,
        "name": tournament.name,
        "start_date": isoformat_or_none(tournament.start_date),
        "end_date": isoformat_or_none(tournament.end_date),
        "created_at": isoformat_or_none(tournament.created_at),
        "updated_at": isoformat_or_none(tournament.updated_at),
    }
