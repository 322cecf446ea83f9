"""
Team registry operations: teams, tournament assignments, rosters and staff.
"""

from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, or_
from tournament_api.database.models import (
    Match,
    MatchTeamDetail,
    Player,
    StaffRole,
    Team,
    TeamPlayer,
    TeamStaff,
    Tournament,
    TournamentTeam,
)
from tournament_api.services import player_service, standings_service
from tournament_api.utils.datetime_utils import isoformat_or_none
from tournament_api.utils.exceptions import ConflictError, NotFoundError, ValidationError
import logging

logger = logging.getLogger(__name__)


async def create_team(
    session: AsyncSession,
    name: str,
    tournament_id: Optional[int] = None,
    group_label: Optional[str] = None,
) -> Dict:
    """
    Create a team, optionally entering it into a tournament.

    Raises:
        ConflictError: If a team with this name exists
        NotFoundError: If the tournament does not exist
    """
    await _check_name_free(session, name)
    if tournament_id is not None and await session.get(Tournament, tournament_id) is None:
        raise NotFoundError("Tournament not found")

    team = Team(name=name)
    session.add(team)
    await session.flush()
    if tournament_id is not None:
        session.add(TournamentTeam(tournament_id=tournament_id, team_id=team.id, group_label=group_label))
        await standings_service.rank_groups(session, tournament_id)
    await session.commit()
    await session.refresh(team)
    logger.info(f"Created team {team.id} ({name})")
    return await get_team(session, team.id)


async def list_teams(session: AsyncSession, tournament_id: Optional[int] = None) -> List[Dict]:
    """List teams by name, each with its tournament entries."""
    query = select(Team).order_by(Team.name.asc())
    if tournament_id is not None:
        query = query.join(TournamentTeam, TournamentTeam.team_id == Team.id).where(
            TournamentTeam.tournament_id == tournament_id
        )
    result = await session.execute(query)
    teams = result.scalars().all()

    entries = await _entries_by_team(session, [t.id for t in teams])
    return [
        {**_team_to_dict(team), "tournaments": entries.get(team.id, [])}
        for team in teams
    ]


async def get_team(session: AsyncSession, team_id: int) -> Dict:
    """
    Get a team with its tournament entries and rosters.

    Raises:
        NotFoundError: If the team does not exist
    """
    team = await require_team(session, team_id)
    entries = (await _entries_by_team(session, [team_id])).get(team_id, [])

    roster_rows = await session.execute(
        select(TeamPlayer.tournament_id, Player)
        .join(Player, Player.id == TeamPlayer.player_id)
        .where(TeamPlayer.team_id == team_id)
        .order_by(Player.jersey_number.asc(), Player.name.asc())
    )
    rosters: Dict[int, List[Dict]] = {}
    for tournament_id, player in roster_rows.all():
        rosters.setdefault(tournament_id, []).append(player_service.player_to_dict(player))

    for entry in entries:
        entry["players"] = rosters.get(entry["tournament_id"], [])

    return {**_team_to_dict(team), "tournaments": entries}


async def rename_team(session: AsyncSession, team_id: int, name: str) -> Dict:
    """Rename a team."""
    team = await require_team(session, team_id)
    if name != team.name:
        await _check_name_free(session, name)
        team.name = name
        await session.commit()
    return await get_team(session, team_id)


async def delete_team(session: AsyncSession, team_id: int) -> None:
    """
    Delete a team together with its rosters, staff and standings rows.

    Raises:
        NotFoundError: If the team does not exist
        ConflictError: If the team has played or is scheduled in a match
    """
    await require_team(session, team_id)
    result = await session.execute(
        select(Match.id).where(or_(Match.home_team_id == team_id, Match.away_team_id == team_id)).limit(1)
    )
    if result.scalar_one_or_none() is not None:
        raise ConflictError("Team has matches and cannot be deleted")

    entered = await session.execute(
        select(TournamentTeam.tournament_id).where(TournamentTeam.team_id == team_id)
    )
    tournament_ids = entered.scalars().all()

    await session.execute(delete(TeamPlayer).where(TeamPlayer.team_id == team_id))
    await session.execute(delete(TeamStaff).where(TeamStaff.team_id == team_id))
    await session.execute(delete(TournamentTeam).where(TournamentTeam.team_id == team_id))
    await session.execute(delete(Team).where(Team.id == team_id))
    for tournament_id in tournament_ids:
        await standings_service.rank_groups(session, tournament_id)
    await session.commit()
    logger.info(f"Deleted team {team_id}")


async def assign_to_tournament(
    session: AsyncSession,
    team_id: int,
    tournament_id: int,
    group_label: Optional[str] = None,
) -> Dict:
    """
    Enter a team into a tournament with an empty standings row.

    Raises:
        NotFoundError: If the team or tournament does not exist
        ConflictError: If the team is already in the tournament
    """
    await require_team(session, team_id)
    if await session.get(Tournament, tournament_id) is None:
        raise NotFoundError("Tournament not found")
    if await _get_entry(session, team_id, tournament_id) is not None:
        raise ConflictError("Team is already registered in this tournament")

    entry = TournamentTeam(tournament_id=tournament_id, team_id=team_id, group_label=group_label)
    session.add(entry)
    await standings_service.rank_groups(session, tournament_id)
    await session.commit()
    logger.info(f"Team {team_id} entered tournament {tournament_id} (group {group_label})")
    return {"team_id": team_id, "tournament_id": tournament_id, "group": group_label}


async def add_roster_player(
    session: AsyncSession, team_id: int, tournament_id: int, player_id: int
) -> Dict:
    """
    Put a player on a team's roster for a tournament.

    Raises:
        NotFoundError: Unknown team or player
        ValidationError: The team is not in the tournament
        ConflictError: Player already on the roster, or jersey number taken
    """
    await require_team(session, team_id)
    player = await session.get(Player, player_id)
    if player is None:
        raise NotFoundError("Player not found")
    if await _get_entry(session, team_id, tournament_id) is None:
        raise ValidationError("Team is not registered in this tournament")

    existing = await session.execute(
        select(TeamPlayer.id).where(
            TeamPlayer.team_id == team_id,
            TeamPlayer.tournament_id == tournament_id,
            TeamPlayer.player_id == player_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Player is already on this roster")

    if player.jersey_number is not None:
        clash = await session.execute(
            select(Player.id)
            .join(TeamPlayer, TeamPlayer.player_id == Player.id)
            .where(
                TeamPlayer.team_id == team_id,
                TeamPlayer.tournament_id == tournament_id,
                Player.jersey_number == player.jersey_number,
            )
            .limit(1)
        )
        if clash.scalar_one_or_none() is not None:
            raise ConflictError(f"Jersey number {player.jersey_number} is already taken on this roster")

    session.add(TeamPlayer(team_id=team_id, tournament_id=tournament_id, player_id=player_id))
    await session.commit()
    return {"team_id": team_id, "tournament_id": tournament_id, "player_id": player_id}


async def remove_roster_player(
    session: AsyncSession, team_id: int, tournament_id: int, player_id: int
) -> None:
    """Take a player off a team's roster."""
    result = await session.execute(
        delete(TeamPlayer).where(
            TeamPlayer.team_id == team_id,
            TeamPlayer.tournament_id == tournament_id,
            TeamPlayer.player_id == player_id,
        )
    )
    if result.rowcount == 0:
        raise NotFoundError("Player is not on this roster")
    await session.commit()


async def add_staff(session: AsyncSession, team_id: int, name: str, role: StaffRole) -> Dict:
    """Attach a coach or assistant coach to a team."""
    await require_team(session, team_id)
    staff = TeamStaff(team_id=team_id, name=name, role=role)
    session.add(staff)
    await session.flush()
    await session.commit()
    return {"id": staff.id, "team_id": team_id, "name": name, "role": role.value}


async def get_team_members(
    session: AsyncSession, team_id: int, tournament_id: Optional[int] = None
) -> Dict:
    """
    Everyone attached to a team: coaches, assistant coaches, match captains
    and rostered players.
    """
    team = await require_team(session, team_id)

    staff_rows = await session.execute(
        select(TeamStaff).where(TeamStaff.team_id == team_id).order_by(TeamStaff.name.asc())
    )
    staff = staff_rows.scalars().all()

    captain_query = (
        select(Player)
        .join(MatchTeamDetail, MatchTeamDetail.captain_id == Player.id)
        .where(MatchTeamDetail.team_id == team_id)
        .distinct()
        .order_by(Player.name.asc())
    )
    player_query = (
        select(Player)
        .join(TeamPlayer, TeamPlayer.player_id == Player.id)
        .where(TeamPlayer.team_id == team_id)
        .distinct()
        .order_by(Player.name.asc())
    )
    if tournament_id is not None:
        captain_query = captain_query.join(Match, Match.id == MatchTeamDetail.match_id).where(
            Match.tournament_id == tournament_id
        )
        player_query = player_query.where(TeamPlayer.tournament_id == tournament_id)

    captains = (await session.execute(captain_query)).scalars().all()
    players = (await session.execute(player_query)).scalars().all()

    return {
        "team_id": team.id,
        "team_name": team.name,
        "coaches": [{"id": s.id, "name": s.name} for s in staff if s.role == StaffRole.COACH],
        "assistant_coaches": [
            {"id": s.id, "name": s.name} for s in staff if s.role == StaffRole.ASSISTANT_COACH
        ],
        "captains": [player_service.player_to_dict(p) for p in captains],
        "players": [player_service.player_to_dict(p) for p in players],
    }


async def require_team(session: AsyncSession, team_id: int) -> Team:
    """Fetch a team or raise NotFoundError."""
    team = await session.get(Team, team_id)
    if team is None:
        raise NotFoundError("Team not found")
    return team


async def _check_name_free(session: AsyncSession, name: str) -> None:
    result = await session.execute(select(Team.id).where(Team.name == name))
    if result.scalar_one_or_none() is not None:
        raise ConflictError("A team with this name already exists")


async def _get_entry(session: AsyncSession, team_id: int, tournament_id: int) -> Optional[TournamentTeam]:
    result = await session.execute(
        select(TournamentTeam).where(
            TournamentTeam.team_id == team_id, TournamentTeam.tournament_id == tournament_id
        )
    )
    return result.scalar_one_or_none()


async def _entries_by_team(session: AsyncSession, team_ids: List[int]) -> Dict[int, List[Dict]]:
    if not team_ids:
        return {}
    result = await session.execute(
        select(TournamentTeam, Tournament.name)
        .join(Tournament, Tournament.id == TournamentTeam.tournament_id)
        .where(TournamentTeam.team_id.in_(team_ids))
        .order_by(Tournament.start_date.asc())
    )
    entries: Dict[int, List[Dict]] = {}
    for entry, tournament_name in result.all():
        entries.setdefault(entry.team_id, []).append({
            "tournament_id": entry.tournament_id,
            "tournament_name": tournament_name,
            "group": entry.group_label,
            "group_position": entry.group_position,
            "points": entry.points,
        })
    return entries


def _team_to_dict(team: Team) -> Dict:
    return {
        "id": team.id,
        "name": team.name,
        "created_at": isoformat_or_none(team.created_at),
    }
