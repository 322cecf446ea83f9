"""
Match ledger operations: fixtures, match events and reminders.

Results are recorded through standings_service.record_result so the standings
stay in step with the ledger.
"""

from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, or_
from sqlalchemy.orm import aliased
from tournament_api.database.models import (
    Booking,
    CardType,
    GoalEvent,
    GoalType,
    Match,
    MatchPeriod,
    MatchStage,
    MatchStatus,
    MatchTeamDetail,
    PenaltyKick,
    Player,
    Team,
    Tournament,
    TournamentTeam,
    Venue,
)
from tournament_api.services import email_service, player_service, standings_service
from tournament_api.utils.datetime_utils import ensure_utc, isoformat_or_none
from tournament_api.utils.exceptions import ConflictError, NotFoundError, ValidationError
import logging

logger = logging.getLogger(__name__)

# Fixture fields a caller may change with update_match
UPDATABLE_FIELDS = (
    "play_date",
    "stage",
    "venue_id",
    "audience",
    "stoppage_first_half_sec",
    "stoppage_second_half_sec",
)


async def create_match(
    session: AsyncSession,
    tournament_id: int,
    home_team_id: int,
    away_team_id: int,
    play_date: datetime,
    stage: MatchStage = MatchStage.GROUP,
    venue_id: Optional[int] = None,
    audience: int = 0,
) -> Dict:
    """
    Create a fixture.

    Raises:
        ValidationError: Same team on both sides, or a team not in the tournament
        NotFoundError: Unknown tournament or venue
    """
    if home_team_id == away_team_id:
        raise ValidationError("Home and away teams must be different")
    if await session.get(Tournament, tournament_id) is None:
        raise NotFoundError("Tournament not found")

    result = await session.execute(
        select(TournamentTeam.team_id).where(
            TournamentTeam.tournament_id == tournament_id,
            TournamentTeam.team_id.in_([home_team_id, away_team_id]),
        )
    )
    if len(set(result.scalars().all())) != 2:
        raise ValidationError("Both teams must be registered in the tournament")

    if venue_id is not None and await session.get(Venue, venue_id) is None:
        raise NotFoundError("Venue not found")

    match = Match(
        tournament_id=tournament_id,
        home_team_id=home_team_id,
        away_team_id=away_team_id,
        play_date=ensure_utc(play_date),
        stage=stage,
        venue_id=venue_id,
        audience=audience,
        status=MatchStatus.UPCOMING,
    )
    session.add(match)
    await session.flush()
    await session.commit()
    logger.info(f"Created match {match.id} in tournament {tournament_id}")
    return await get_match(session, match.id)


async def list_matches(
    session: AsyncSession,
    tournament_id: Optional[int] = None,
    team_id: Optional[int] = None,
    status: Optional[MatchStatus] = None,
    sort_by: str = "date_asc",
) -> List[Dict]:
    """
    List matches with team and venue names.

    Args:
        tournament_id: Only matches of this tournament
        team_id: Only matches this team plays in
        status: Only upcoming or only completed matches
        sort_by: date_asc (default) or date_desc
    """
    query = _match_query()
    if tournament_id is not None:
        query = query.where(Match.tournament_id == tournament_id)
    if team_id is not None:
        query = query.where(or_(Match.home_team_id == team_id, Match.away_team_id == team_id))
    if status is not None:
        query = query.where(Match.status == status)

    if sort_by == "date_desc":
        query = query.order_by(Match.play_date.desc(), Match.id.desc())
    else:
        query = query.order_by(Match.play_date.asc(), Match.id.asc())

    result = await session.execute(query)
    return [_match_row_to_dict(row) for row in result.all()]


async def get_match(session: AsyncSession, match_id: int) -> Dict:
    """
    Get a match with its goals, shootout kicks, bookings and per-team details.

    Raises:
        NotFoundError: If the match does not exist
    """
    result = await session.execute(_match_query().where(Match.id == match_id))
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Match not found")
    data = _match_row_to_dict(row)

    goals = await session.execute(
        select(GoalEvent, Player.name)
        .join(Player, Player.id == GoalEvent.player_id)
        .where(GoalEvent.match_id == match_id)
        .order_by(GoalEvent.minute.asc(), GoalEvent.id.asc())
    )
    data["goals"] = [
        {
            "id": goal.id,
            "team_id": goal.team_id,
            "player_id": goal.player_id,
            "player_name": name,
            "minute": goal.minute,
            "goal_type": goal.goal_type.value,
            "period": goal.period.value,
        }
        for goal, name in goals.all()
    ]

    kicks = await session.execute(
        select(PenaltyKick, Player.name)
        .join(Player, Player.id == PenaltyKick.player_id)
        .where(PenaltyKick.match_id == match_id)
        .order_by(PenaltyKick.kick_number.asc())
    )
    data["penalty_shootout"] = [
        {
            "id": kick.id,
            "team_id": kick.team_id,
            "player_id": kick.player_id,
            "player_name": name,
            "kick_number": kick.kick_number,
            "scored": kick.scored,
        }
        for kick, name in kicks.all()
    ]

    bookings = await session.execute(
        select(Booking, Player.name)
        .join(Player, Player.id == Booking.player_id)
        .where(Booking.match_id == match_id)
        .order_by(Booking.minute.asc(), Booking.id.asc())
    )
    data["bookings"] = [
        {
            "id": booking.id,
            "team_id": booking.team_id,
            "player_id": booking.player_id,
            "player_name": name,
            "card_type": booking.card_type.value,
            "minute": booking.minute,
            "sent_off": booking.sent_off,
        }
        for booking, name in bookings.all()
    ]

    details = await session.execute(
        select(MatchTeamDetail).where(MatchTeamDetail.match_id == match_id)
    )
    data["team_details"] = [
        {
            "team_id": detail.team_id,
            "outcome": detail.outcome.value,
            "goals": detail.goals,
            "penalties": detail.penalties,
            "captain_id": detail.captain_id,
            "goalkeeper_id": detail.goalkeeper_id,
        }
        for detail in details.scalars().all()
    ]
    return data


async def update_match(session: AsyncSession, match_id: int, **fields) -> Dict:
    """Update fixture fields; None values are ignored. Scores go through record_result."""
    match = await session.get(Match, match_id)
    if match is None:
        raise NotFoundError("Match not found")

    venue_id = fields.get("venue_id")
    if venue_id is not None and await session.get(Venue, venue_id) is None:
        raise NotFoundError("Venue not found")

    for field in UPDATABLE_FIELDS:
        value = fields.get(field)
        if value is None:
            continue
        if field == "play_date":
            value = ensure_utc(value)
        setattr(match, field, value)

    await session.commit()
    return await get_match(session, match_id)


async def delete_match(session: AsyncSession, match_id: int) -> None:
    """
    Delete a match and everything recorded for it.

    When the match was completed, both teams' standings are recomputed in the
    same transaction.
    """
    match = await session.get(Match, match_id)
    if match is None:
        raise NotFoundError("Match not found")

    tournament_id = match.tournament_id
    team_ids = [match.home_team_id, match.away_team_id]
    was_completed = match.status == MatchStatus.COMPLETED

    try:
        for model in (GoalEvent, PenaltyKick, Booking, MatchTeamDetail):
            await session.execute(delete(model).where(model.match_id == match_id))
        await session.execute(delete(Match).where(Match.id == match_id))
        await session.flush()
        if was_completed:
            await standings_service.recompute_teams(session, tournament_id, team_ids)
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    logger.info(f"Deleted match {match_id}")


async def add_goal(
    session: AsyncSession,
    match_id: int,
    team_id: int,
    player_id: int,
    minute: int,
    goal_type: GoalType = GoalType.NORMAL,
    period: MatchPeriod = MatchPeriod.FIRST_HALF,
) -> Dict:
    """Append a goal to a match."""
    await _check_event_target(session, match_id, team_id, player_id)
    goal = GoalEvent(
        match_id=match_id,
        team_id=team_id,
        player_id=player_id,
        minute=minute,
        goal_type=goal_type,
        period=period,
    )
    session.add(goal)
    await session.flush()
    await session.commit()
    return {
        "id": goal.id,
        "match_id": match_id,
        "team_id": team_id,
        "player_id": player_id,
        "minute": minute,
        "goal_type": goal_type.value,
        "period": period.value,
    }


async def add_penalty_kick(
    session: AsyncSession,
    match_id: int,
    team_id: int,
    player_id: int,
    kick_number: int,
    scored: bool,
) -> Dict:
    """
    Append a shootout kick to a match.

    Raises:
        ConflictError: If the kick number is already recorded for this match
    """
    await _check_event_target(session, match_id, team_id, player_id)
    existing = await session.execute(
        select(PenaltyKick.id).where(
            PenaltyKick.match_id == match_id, PenaltyKick.kick_number == kick_number
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"Kick number {kick_number} is already recorded for this match")

    kick = PenaltyKick(
        match_id=match_id,
        team_id=team_id,
        player_id=player_id,
        kick_number=kick_number,
        scored=scored,
    )
    session.add(kick)
    await session.flush()
    await session.commit()
    return {
        "id": kick.id,
        "match_id": match_id,
        "team_id": team_id,
        "player_id": player_id,
        "kick_number": kick_number,
        "scored": scored,
    }


async def add_booking(
    session: AsyncSession,
    match_id: int,
    team_id: int,
    player_id: int,
    card_type: CardType,
    minute: Optional[int] = None,
    sent_off: Optional[bool] = None,
) -> Dict:
    """
    Append a booking to a match.

    A red card always sends the player off; a yellow one only when sent_off
    is given (second yellow).
    """
    await _check_event_target(session, match_id, team_id, player_id)
    if card_type == CardType.RED:
        sent_off = True
    booking = Booking(
        match_id=match_id,
        team_id=team_id,
        player_id=player_id,
        card_type=card_type,
        minute=minute,
        sent_off=bool(sent_off),
    )
    session.add(booking)
    await session.flush()
    await session.commit()
    return {
        "id": booking.id,
        "match_id": match_id,
        "team_id": team_id,
        "player_id": player_id,
        "card_type": card_type.value,
        "minute": minute,
        "sent_off": booking.sent_off,
    }


async def send_match_reminders(session: AsyncSession, match_id: int) -> List[Dict]:
    """
    Email a reminder to the rostered players of both teams.

    Each team is handled on its own; a team without addresses or a failed
    delivery does not stop the other team's reminder.

    Returns:
        One outcome per team: team_id, team_name, sent, recipients, error

    Raises:
        NotFoundError: If the match does not exist
        ConflictError: If the match is already completed
    """
    match = await get_match(session, match_id)
    if match["status"] == MatchStatus.COMPLETED.value:
        raise ConflictError("Match is already completed")

    outcomes = []
    sides = [
        (match["home_team_id"], match["home_team_name"]),
        (match["away_team_id"], match["away_team_name"]),
    ]
    for team_id, team_name in sides:
        recipients = await player_service.get_roster_emails(session, team_id, match["tournament_id"])
        outcome = {
            "team_id": team_id,
            "team_name": team_name,
            "sent": False,
            "recipients": len(recipients),
            "delivered": False,
            "error": None,
        }
        if not recipients:
            outcome["error"] = "No valid email addresses found for this team"
        elif await email_service.send_match_reminder(match, team_name, recipients):
            outcome["sent"] = True
            outcome["delivered"] = email_service.is_enabled()
        else:
            outcome["error"] = "Email delivery failed"
        outcomes.append(outcome)

    logger.info(
        f"Reminders for match {match_id}: "
        + ", ".join(f"{o['team_name']}={'sent' if o['sent'] else 'failed'}" for o in outcomes)
    )
    return outcomes


# ============================================================================
# Internal helpers
# ============================================================================

async def _check_event_target(session: AsyncSession, match_id: int, team_id: int, player_id: int) -> None:
    match = await session.get(Match, match_id)
    if match is None:
        raise NotFoundError("Match not found")
    if team_id not in (match.home_team_id, match.away_team_id):
        raise ValidationError("Team does not play in this match")
    if await session.get(Player, player_id) is None:
        raise NotFoundError("Player not found")


def _match_query():
    home = aliased(Team)
    away = aliased(Team)
    return (
        select(Match, home.name, away.name, Tournament.name, Venue.name)
        .join(home, home.id == Match.home_team_id)
        .join(away, away.id == Match.away_team_id)
        .join(Tournament, Tournament.id == Match.tournament_id)
        .outerjoin(Venue, Venue.id == Match.venue_id)
    )


def _match_row_to_dict(row) -> Dict:
    match, home_name, away_name, tournament_name, venue_name = row
    return {
        "id": match.id,
        "tournament_id": match.tournament_id,
        "tournament_name": tournament_name,
        "stage": match.stage.value,
        "play_date": isoformat_or_none(match.play_date),
        "home_team_id": match.home_team_id,
        "home_team_name": home_name,
        "away_team_id": match.away_team_id,
        "away_team_name": away_name,
        "venue_id": match.venue_id,
        "venue_name": venue_name,
        "audience": match.audience,
        "status": match.status.value,
        "home_score": match.home_score,
        "away_score": match.away_score,
        "decided_by": match.decided_by.value if match.decided_by else None,
        "home_penalties": match.home_penalties,
        "away_penalties": match.away_penalties,
        "player_of_match_id": match.player_of_match_id,
        "stoppage_first_half_sec": match.stoppage_first_half_sec,
        "stoppage_second_half_sec": match.stoppage_second_half_sec,
        "completed_at": isoformat_or_none(match.completed_at),
    }
