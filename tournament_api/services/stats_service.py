"""
Statistics reporter: read-only projections over the match ledger and registry.
"""

from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case, desc
from sqlalchemy.orm import aliased
from tournament_api.database.models import (
    Booking,
    GoalEvent,
    GoalType,
    Match,
    MatchStatus,
    Player,
    Team,
    TournamentTeam,
)
from tournament_api.services import standings_service, tournament_service
from tournament_api.utils.constants import (
    DEFAULT_TOP_SCORERS_LIMIT,
    SUMMARY_MATCHES_LIMIT,
    SUMMARY_TOP_SCORERS_LIMIT,
    TOP_TEAMS_LIMIT,
)
from tournament_api.utils.datetime_utils import utcnow, ensure_utc, isoformat_or_none
import logging

logger = logging.getLogger(__name__)


async def top_scorers(
    session: AsyncSession,
    tournament_id: Optional[int] = None,
    limit: int = DEFAULT_TOP_SCORERS_LIMIT,
) -> List[Dict]:
    """
    Players ranked by goals scored.

    Own goals are not credited to the scorer. Ties are broken by player name.

    Args:
        session: Database session
        tournament_id: Only count goals from this tournament's matches
        limit: Maximum number of players to return

    Returns:
        List of {player_id, player_name, goals}
    """
    if tournament_id is not None:
        await tournament_service.require_tournament(session, tournament_id)

    goals = func.count(GoalEvent.id).label("goals")
    query = (
        select(Player.id, Player.name, goals)
        .join(GoalEvent, GoalEvent.player_id == Player.id)
        .join(Match, Match.id == GoalEvent.match_id)
        .where(GoalEvent.goal_type != GoalType.OWN_GOAL)
        .group_by(Player.id, Player.name)
        .order_by(desc("goals"), Player.name.asc(), Player.id.asc())
        .limit(limit)
    )
    if tournament_id is not None:
        query = query.where(Match.tournament_id == tournament_id)

    result = await session.execute(query)
    return [
        {"player_id": player_id, "player_name": name, "goals": count}
        for player_id, name, count in result.all()
    ]


async def red_card_leaders(
    session: AsyncSession,
    tournament_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Dict]:
    """Players ranked by number of times sent off. All of them unless limit is given."""
    if tournament_id is not None:
        await tournament_service.require_tournament(session, tournament_id)

    red_cards = func.count(Booking.id).label("red_cards")
    query = (
        select(Player.id, Player.name, red_cards)
        .join(Booking, Booking.player_id == Player.id)
        .join(Match, Match.id == Booking.match_id)
        .where(Booking.sent_off.is_(True))
        .group_by(Player.id, Player.name)
        .order_by(desc("red_cards"), Player.name.asc(), Player.id.asc())
    )
    if tournament_id is not None:
        query = query.where(Match.tournament_id == tournament_id)
    if limit is not None:
        query = query.limit(limit)

    result = await session.execute(query)
    return [
        {"player_id": player_id, "player_name": name, "red_cards": count}
        for player_id, name, count in result.all()
    ]


async def recent_matches(
    session: AsyncSession,
    tournament_id: Optional[int] = None,
    limit: int = SUMMARY_MATCHES_LIMIT,
    now: Optional[datetime] = None,
) -> List[Dict]:
    """Completed matches played up to now, most recent first."""
    if tournament_id is not None:
        await tournament_service.require_tournament(session, tournament_id)
    now = ensure_utc(now) if now is not None else utcnow()

    query = _match_summary_query().where(
        Match.status == MatchStatus.COMPLETED,
        Match.play_date <= now,
    )
    if tournament_id is not None:
        query = query.where(Match.tournament_id == tournament_id)
    query = query.order_by(Match.play_date.desc(), Match.id.desc()).limit(limit)

    result = await session.execute(query)
    return [_match_summary_to_dict(row) for row in result.all()]


async def upcoming_matches(
    session: AsyncSession,
    tournament_id: Optional[int] = None,
    limit: int = SUMMARY_MATCHES_LIMIT,
    now: Optional[datetime] = None,
) -> List[Dict]:
    """Fixtures without a result scheduled after now, soonest first."""
    if tournament_id is not None:
        await tournament_service.require_tournament(session, tournament_id)
    now = ensure_utc(now) if now is not None else utcnow()

    query = _match_summary_query().where(
        Match.status != MatchStatus.COMPLETED,
        Match.play_date > now,
    )
    if tournament_id is not None:
        query = query.where(Match.tournament_id == tournament_id)
    query = query.order_by(Match.play_date.asc(), Match.id.asc()).limit(limit)

    result = await session.execute(query)
    return [_match_summary_to_dict(row) for row in result.all()]


async def tournament_summary(
    session: AsyncSession, tournament_id: int, now: Optional[datetime] = None
) -> Dict:
    """Dashboard view of one tournament."""
    tournament = await tournament_service.require_tournament(session, tournament_id)

    return {
        "tournament": {
            "id": tournament.id,
            "name": tournament.name,
            "start_date": isoformat_or_none(tournament.start_date),
            "end_date": isoformat_or_none(tournament.end_date),
        },
        "standings": await standings_service.get_standings(session, tournament_id),
        "top_scorers": await top_scorers(session, tournament_id, SUMMARY_TOP_SCORERS_LIMIT),
        "recent_matches": await recent_matches(session, tournament_id, SUMMARY_MATCHES_LIMIT, now),
        "upcoming_matches": await upcoming_matches(session, tournament_id, SUMMARY_MATCHES_LIMIT, now),
    }


async def top_teams_by_wins(
    session: AsyncSession,
    tournament_id: Optional[int] = None,
    limit: int = TOP_TEAMS_LIMIT,
) -> List[Dict]:
    """Teams with the most wins, summed over their standings rows."""
    if tournament_id is not None:
        await tournament_service.require_tournament(session, tournament_id)

    wins = func.coalesce(func.sum(TournamentTeam.wins), 0).label("wins")
    points = func.coalesce(func.sum(TournamentTeam.points), 0).label("points")
    query = (
        select(Team.id, Team.name, wins, points)
        .join(TournamentTeam, TournamentTeam.team_id == Team.id)
        .group_by(Team.id, Team.name)
        .order_by(desc("wins"), desc("points"), Team.name.asc())
        .limit(limit)
    )
    if tournament_id is not None:
        query = query.where(TournamentTeam.tournament_id == tournament_id)

    result = await session.execute(query)
    return [
        {"team_id": team_id, "team_name": name, "wins": team_wins, "points": team_points}
        for team_id, name, team_wins, team_points in result.all()
    ]


async def highest_scorer_per_team(session: AsyncSession, tournament_id: int) -> List[Dict]:
    """
    Leading scorer of every team in a tournament.

    Teams whose players have not scored are left out. Ties go to the player
    whose name sorts first.
    """
    await tournament_service.require_tournament(session, tournament_id)

    goals = func.count(GoalEvent.id).label("goals")
    result = await session.execute(
        select(Team.id, Team.name, Player.id, Player.name, goals)
        .join(GoalEvent, GoalEvent.team_id == Team.id)
        .join(Player, Player.id == GoalEvent.player_id)
        .join(Match, Match.id == GoalEvent.match_id)
        .where(
            Match.tournament_id == tournament_id,
            GoalEvent.goal_type != GoalType.OWN_GOAL,
        )
        .group_by(Team.id, Team.name, Player.id, Player.name)
        .order_by(Team.name.asc(), desc("goals"), Player.name.asc())
    )

    leaders: Dict[int, Dict] = {}
    for team_id, team_name, player_id, player_name, count in result.all():
        if team_id in leaders:
            continue
        leaders[team_id] = {
            "team_id": team_id,
            "team_name": team_name,
            "player_id": player_id,
            "player_name": player_name,
            "goals": count,
        }
    return list(leaders.values())


async def player_goal_breakdown(session: AsyncSession, tournament_id: int) -> List[Dict]:
    """Total, penalty and non-penalty goals per player in a tournament."""
    await tournament_service.require_tournament(session, tournament_id)

    penalty_goals = func.sum(case((GoalEvent.goal_type == GoalType.PENALTY, 1), else_=0))
    total = func.count(GoalEvent.id).label("total_goals")
    result = await session.execute(
        select(Player.id, Player.name, total, penalty_goals.label("penalty_goals"))
        .join(GoalEvent, GoalEvent.player_id == Player.id)
        .join(Match, Match.id == GoalEvent.match_id)
        .where(
            Match.tournament_id == tournament_id,
            GoalEvent.goal_type != GoalType.OWN_GOAL,
        )
        .group_by(Player.id, Player.name)
        .order_by(desc("total_goals"), Player.name.asc())
    )
    return [
        {
            "player_id": player_id,
            "player_name": name,
            "total_goals": total_goals,
            "penalty_goals": int(penalties or 0),
            "non_penalty_goals": total_goals - int(penalties or 0),
        }
        for player_id, name, total_goals, penalties in result.all()
    ]


# ============================================================================
# Internal helpers
# ============================================================================

def _match_summary_query():
    home = aliased(Team)
    away = aliased(Team)
    return (
        select(Match, home.name, away.name)
        .join(home, home.id == Match.home_team_id)
        .join(away, away.id == Match.away_team_id)
    )


def _match_summary_to_dict(row) -> Dict:
    match, home_name, away_name = row
    return {
        "id": match.id,
        "tournament_id": match.tournament_id,
        "stage": match.stage.value if match.stage else None,
        "play_date": isoformat_or_none(match.play_date),
        "home_team_id": match.home_team_id,
        "home_team_name": home_name,
        "away_team_id": match.away_team_id,
        "away_team_name": away_name,
        "status": match.status.value,
        "home_score": match.home_score,
        "away_score": match.away_score,
        "decided_by": match.decided_by.value if match.decided_by else None,
    }
