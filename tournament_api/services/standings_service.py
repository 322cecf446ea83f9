"""
Standings aggregator.

Records match results and keeps each team's standings row in step with the
match ledger. Counters are always recomputed by replaying the team's completed
matches, so amending a result or deleting a match cannot double-count.
"""

from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, or_
from tournament_api.database.models import (
    Match,
    MatchStatus,
    MatchTeamDetail,
    DecisionMethod,
    Team,
    TournamentTeam,
)
from tournament_api.services import calculation_service, tournament_service
from tournament_api.utils.datetime_utils import utcnow
from tournament_api.utils.exceptions import ConflictError, NotFoundError, ValidationError
import logging

logger = logging.getLogger(__name__)


async def record_result(
    session: AsyncSession,
    match_id: int,
    home_goals: int,
    away_goals: int,
    decided_by: DecisionMethod = DecisionMethod.NORMAL,
    home_penalties: Optional[int] = None,
    away_penalties: Optional[int] = None,
    amend: bool = False,
    player_of_match_id: Optional[int] = None,
    home_captain_id: Optional[int] = None,
    away_captain_id: Optional[int] = None,
    home_goalkeeper_id: Optional[int] = None,
    away_goalkeeper_id: Optional[int] = None,
) -> Dict:
    """
    Record the final result of a match and update both standings rows.

    The match row, its per-team details and both standings rows are written in
    one transaction: either all of them change or none do.

    Args:
        session: Database session
        match_id: Match to complete
        home_goals: Goals scored by the home team
        away_goals: Goals scored by the away team
        decided_by: normal or penalties
        home_penalties: Home shootout tally (penalties only)
        away_penalties: Away shootout tally (penalties only)
        amend: Allow overwriting the result of an already completed match

    Returns:
        Dict with the updated match id, score and both standings rows

    Raises:
        ValidationError: Inconsistent scores or shootout tallies
        NotFoundError: Unknown match, or a team without a standings row
        ConflictError: Match already completed and amend is False
    """
    try:
        if decided_by is None:
            decided_by = DecisionMethod.NORMAL
        error = calculation_service.validate_result(
            home_goals, away_goals, decided_by, home_penalties, away_penalties
        )
        if error:
            raise ValidationError(error)

        # Row lock serializes concurrent submissions for the same match
        result = await session.execute(
            select(Match).where(Match.id == match_id).with_for_update()
        )
        match = result.scalar_one_or_none()
        if match is None:
            raise NotFoundError("Match not found")
        if match.home_team_id == match.away_team_id:
            raise ValidationError("A match needs two different teams")
        if match.status == MatchStatus.COMPLETED and not amend:
            raise ConflictError("Match result has already been recorded")

        team_ids = [match.home_team_id, match.away_team_id]
        rows = await _get_standing_rows(session, match.tournament_id, team_ids)
        if len(rows) != 2:
            raise NotFoundError("Both teams must be registered in the match's tournament")

        match.home_score = home_goals
        match.away_score = away_goals
        match.decided_by = decided_by
        match.home_penalties = home_penalties
        match.away_penalties = away_penalties
        match.status = MatchStatus.COMPLETED
        match.completed_at = utcnow()
        if player_of_match_id is not None:
            match.player_of_match_id = player_of_match_id

        await _write_team_details(
            session,
            match,
            captains={match.home_team_id: home_captain_id, match.away_team_id: away_captain_id},
            goalkeepers={
                match.home_team_id: home_goalkeeper_id,
                match.away_team_id: away_goalkeeper_id,
            },
        )
        await session.flush()

        await _recompute_rows(session, match.tournament_id, rows.values())
        await rank_groups(session, match.tournament_id)

        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        f"Recorded result for match {match_id}: {home_goals}-{away_goals} "
        f"({decided_by.value}{', amended' if amend else ''})"
    )
    return {
        "match_id": match_id,
        "home_score": home_goals,
        "away_score": away_goals,
        "decided_by": decided_by.value,
        "home_penalties": home_penalties,
        "away_penalties": away_penalties,
        "standings": [_row_to_dict(row, name) for row, name in await _rows_with_names(
            session, match.tournament_id, team_ids
        )],
    }


async def get_standings(session: AsyncSession, tournament_id: int) -> List[Dict]:
    """
    Standings of a tournament, best team first.

    Sorted by points, goal difference and goals scored (all descending), then
    team name.

    Raises:
        NotFoundError: If the tournament does not exist
    """
    await tournament_service.require_tournament(session, tournament_id)
    rows = await _rows_with_names(session, tournament_id)
    return calculation_service.rank_rows([_row_to_dict(row, name) for row, name in rows])


async def rebuild_standings(session: AsyncSession, tournament_id: int) -> List[Dict]:
    """
    Recompute every standings row of a tournament from the match ledger.

    Used to repair counters after manual data fixes.
    """
    await tournament_service.require_tournament(session, tournament_id)
    try:
        result = await session.execute(
            select(TournamentTeam).where(TournamentTeam.tournament_id == tournament_id)
        )
        rows = result.scalars().all()
        await _recompute_rows(session, tournament_id, rows)
        await rank_groups(session, tournament_id)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(f"Rebuilt standings for tournament {tournament_id} ({len(rows)} teams)")
    return await get_standings(session, tournament_id)


async def recompute_teams(session: AsyncSession, tournament_id: int, team_ids: Iterable[int]) -> None:
    """
    Recompute the standings rows of some teams without committing.

    Callers that change the ledger (match deletion, team moves) call this
    inside their own transaction.
    """
    rows = await _get_standing_rows(session, tournament_id, list(team_ids))
    if rows:
        await _recompute_rows(session, tournament_id, rows.values())
    await rank_groups(session, tournament_id)


async def rank_groups(session: AsyncSession, tournament_id: int) -> None:
    """
    Assign group_position within every group of a tournament, without committing.

    Teams without a group label are ranked together as one group. Every write
    that changes standings rows or group membership calls this, so positions
    always match a full rebuild.
    """
    await session.flush()
    entries = await _rows_with_names(session, tournament_id)

    groups: Dict[Optional[str], List[Tuple[TournamentTeam, str]]] = {}
    for row, name in entries:
        groups.setdefault(row.group_label, []).append((row, name))

    for members in groups.values():
        ordered = sorted(
            members,
            key=lambda entry: calculation_service.standings_sort_key(_row_to_dict(entry[0], entry[1])),
        )
        for position, (row, _name) in enumerate(ordered, start=1):
            row.group_position = position
    await session.flush()


# ============================================================================
# Internal helpers
# ============================================================================

async def _get_standing_rows(
    session: AsyncSession, tournament_id: int, team_ids: List[int]
) -> Dict[int, TournamentTeam]:
    result = await session.execute(
        select(TournamentTeam)
        .where(
            TournamentTeam.tournament_id == tournament_id,
            TournamentTeam.team_id.in_(team_ids),
        )
        .with_for_update()
    )
    return {row.team_id: row for row in result.scalars().all()}


async def _write_team_details(
    session: AsyncSession,
    match: Match,
    captains: Dict[int, Optional[int]],
    goalkeepers: Dict[int, Optional[int]],
) -> None:
    """Replace the per-team detail rows of a match."""
    await session.execute(delete(MatchTeamDetail).where(MatchTeamDetail.match_id == match.id))

    home_outcome, away_outcome = calculation_service.match_outcomes(
        match.home_score, match.away_score
    )
    sides = [
        (match.home_team_id, home_outcome, match.home_score, match.home_penalties),
        (match.away_team_id, away_outcome, match.away_score, match.away_penalties),
    ]
    for team_id, outcome, goals, penalties in sides:
        session.add(MatchTeamDetail(
            match_id=match.id,
            team_id=team_id,
            outcome=outcome,
            goals=goals,
            penalties=penalties,
            captain_id=captains.get(team_id),
            goalkeeper_id=goalkeepers.get(team_id),
        ))


async def _recompute_rows(
    session: AsyncSession, tournament_id: int, rows: Iterable[TournamentTeam]
) -> None:
    """Replay completed matches of the tournament into the given rows."""
    rows = list(rows)
    team_ids = [row.team_id for row in rows]
    result = await session.execute(
        select(Match).where(
            Match.tournament_id == tournament_id,
            Match.status == MatchStatus.COMPLETED,
            or_(Match.home_team_id.in_(team_ids), Match.away_team_id.in_(team_ids)),
        )
    )
    records = calculation_service.replay_matches(team_ids, result.scalars().all())

    for row in rows:
        for field, value in records[row.team_id].to_dict().items():
            setattr(row, field, value)
    await session.flush()


async def _rows_with_names(
    session: AsyncSession, tournament_id: int, team_ids: Optional[List[int]] = None
):
    query = (
        select(TournamentTeam, Team.name)
        .join(Team, Team.id == TournamentTeam.team_id)
        .where(TournamentTeam.tournament_id == tournament_id)
    )
    if team_ids is not None:
        query = query.where(TournamentTeam.team_id.in_(team_ids))
    result = await session.execute(query)
    return result.all()


def _row_to_dict(row: TournamentTeam, team_name: str) -> Dict:
    return {
        "team_id": row.team_id,
        "team_name": team_name,
        "group": row.group_label,
        "matches_played": row.matches_played or 0,
        "wins": row.wins or 0,
        "draws": row.draws or 0,
        "losses": row.losses or 0,
        "goals_for": row.goals_for or 0,
        "goals_against": row.goals_against or 0,
        "goal_difference": row.goal_difference or 0,
        "points": row.points or 0,
        "group_position": row.group_position,
        "penalty_decided": row.penalty_decided or 0,
        "shootout_wins": row.shootout_wins or 0,
    }
