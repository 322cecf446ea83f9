"""
Player registry operations.
"""

from datetime import date
from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from tournament_api.database.models import (
    Booking,
    GoalEvent,
    PenaltyKick,
    Player,
    PlayerPosition,
    TeamPlayer,
)
from tournament_api.utils.datetime_utils import isoformat_or_none
from tournament_api.utils.exceptions import ConflictError, NotFoundError
import logging

logger = logging.getLogger(__name__)

# Fields a caller may change with update_player
UPDATABLE_FIELDS = ("name", "date_of_birth", "jersey_number", "position", "email")


async def create_player(
    session: AsyncSession,
    name: str,
    date_of_birth: Optional[date] = None,
    jersey_number: Optional[int] = None,
    position: Optional[PlayerPosition] = None,
    email: Optional[str] = None,
    team_id: Optional[int] = None,
    tournament_id: Optional[int] = None,
) -> Dict:
    """
    Create a player, optionally adding them to a team's roster.

    The roster assignment goes through team_service.add_roster_player, so the
    same membership and jersey checks apply.
    """
    player = Player(
        name=name,
        date_of_birth=date_of_birth,
        jersey_number=jersey_number,
        position=position,
        email=email.strip().lower() if email else None,
    )
    session.add(player)
    await session.flush()

    if team_id is not None and tournament_id is not None:
        # Imported here, team_service imports this module
        from tournament_api.services import team_service
        try:
            await team_service.add_roster_player(session, team_id, tournament_id, player.id)
        except Exception:
            await session.rollback()
            raise
    else:
        await session.commit()

    await session.refresh(player)
    logger.info(f"Created player {player.id} ({name})")
    return player_to_dict(player)


async def list_players(
    session: AsyncSession,
    team_id: Optional[int] = None,
    tournament_id: Optional[int] = None,
) -> List[Dict]:
    """List players by name, optionally only those on a team and/or tournament roster."""
    query = select(Player).order_by(Player.name.asc(), Player.id.asc())
    if team_id is not None or tournament_id is not None:
        query = query.join(TeamPlayer, TeamPlayer.player_id == Player.id).distinct()
        if team_id is not None:
            query = query.where(TeamPlayer.team_id == team_id)
        if tournament_id is not None:
            query = query.where(TeamPlayer.tournament_id == tournament_id)

    result = await session.execute(query)
    return [player_to_dict(p) for p in result.scalars().all()]


async def get_player(session: AsyncSession, player_id: int) -> Dict:
    """
    Get a player with their roster entries.

    Raises:
        NotFoundError: If the player does not exist
    """
    player = await session.get(Player, player_id)
    if player is None:
        raise NotFoundError("Player not found")

    result = await session.execute(
        select(TeamPlayer.team_id, TeamPlayer.tournament_id).where(TeamPlayer.player_id == player_id)
    )
    data = player_to_dict(player)
    data["teams"] = [
        {"team_id": team_id, "tournament_id": tournament_id}
        for team_id, tournament_id in result.all()
    ]
    return data


async def update_player(session: AsyncSession, player_id: int, **fields) -> Dict:
    """Update the given player fields; None values are ignored."""
    player = await session.get(Player, player_id)
    if player is None:
        raise NotFoundError("Player not found")

    for field in UPDATABLE_FIELDS:
        value = fields.get(field)
        if value is None:
            continue
        if field == "email":
            value = value.strip().lower()
        setattr(player, field, value)

    await session.commit()
    await session.refresh(player)
    return player_to_dict(player)


async def delete_player(session: AsyncSession, player_id: int) -> None:
    """
    Delete a player and their roster entries.

    Raises:
        NotFoundError: If the player does not exist
        ConflictError: If the player appears in match events
    """
    player = await session.get(Player, player_id)
    if player is None:
        raise NotFoundError("Player not found")

    for model in (GoalEvent, PenaltyKick, Booking):
        result = await session.execute(select(model.id).where(model.player_id == player_id).limit(1))
        if result.scalar_one_or_none() is not None:
            raise ConflictError("Player has match events and cannot be deleted")

    await session.execute(delete(TeamPlayer).where(TeamPlayer.player_id == player_id))
    await session.execute(delete(Player).where(Player.id == player_id))
    await session.commit()
    logger.info(f"Deleted player {player_id}")


async def get_roster_emails(session: AsyncSession, team_id: int, tournament_id: int) -> List[str]:
    """Email addresses of a team's rostered players for a tournament."""
    result = await session.execute(
        select(Player.email)
        .join(TeamPlayer, TeamPlayer.player_id == Player.id)
        .where(
            TeamPlayer.team_id == team_id,
            TeamPlayer.tournament_id == tournament_id,
            Player.email.isnot(None),
            Player.email != "",
        )
        .order_by(Player.email.asc())
    )
    return [email for email in result.scalars().all()]


def player_to_dict(player: Player) -> Dict:
    """Convert a Player ORM instance to a dictionary."""
    return {
        "id": player.id,
        "name": player.name,
        "date_of_birth": isoformat_or_none(player.date_of_birth),
        "jersey_number": player.jersey_number,
        "position": player.position.value if player.position else None,
        "email": player.email,
        "created_at": isoformat_or_none(player.created_at),
    }
