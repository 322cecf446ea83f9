"""Team, roster and staff route handlers."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_api.api.routes import envelope
from tournament_api.database.db import get_db_session
from tournament_api.services import team_service
from tournament_api.api.auth_dependencies import require_admin
from tournament_api.models.schemas import (
    AddStaffRequest,
    AssignTeamRequest,
    CreateTeamRequest,
    RosterPlayerRequest,
    UpdateTeamRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/teams")
async def list_teams(
    tournament_id: Optional[int] = Query(None, description="Only teams in this tournament"),
    session: AsyncSession = Depends(get_db_session),
):
    """List teams with their tournament entries."""
    return envelope(await team_service.list_teams(session, tournament_id=tournament_id))


@router.get("/api/teams/{team_id}")
async def get_team(team_id: int, session: AsyncSession = Depends(get_db_session)):
    """Get a team with its tournament entries and rosters."""
    return envelope(await team_service.get_team(session, team_id))


@router.get("/api/teams/{team_id}/members")
async def get_team_members(
    team_id: int,
    tournament_id: Optional[int] = Query(None, description="Limit players and captains to one tournament"),
    session: AsyncSession = Depends(get_db_session),
):
    """Coaches, assistant coaches, captains and players of a team."""
    return envelope(await team_service.get_team_members(session, team_id, tournament_id))


@router.post("/api/teams", status_code=201)
async def create_team(
    payload: CreateTeamRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a team, optionally entering it into a tournament (admin)."""
    team = await team_service.create_team(
        session, payload.name.strip(), tournament_id=payload.tournament_id, group_label=payload.group
    )
    return envelope(team, message="Team created")


@router.put("/api/teams/{team_id}")
async def update_team(
    team_id: int,
    payload: UpdateTeamRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Rename a team (admin)."""
    team = await team_service.rename_team(session, team_id, payload.name.strip())
    return envelope(team, message="Team updated")


@router.delete("/api/teams/{team_id}")
async def delete_team(
    team_id: int,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a team that has no matches (admin)."""
    await team_service.delete_team(session, team_id)
    return envelope(message="Team deleted")


@router.post("/api/teams/{team_id}/tournaments", status_code=201)
async def assign_team(
    team_id: int,
    payload: AssignTeamRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Enter a team into a tournament (admin)."""
    entry = await team_service.assign_to_tournament(
        session, team_id, payload.tournament_id, group_label=payload.group
    )
    return envelope(entry, message="Team added to tournament")


@router.post("/api/teams/{team_id}/players", status_code=201)
async def add_roster_player(
    team_id: int,
    payload: RosterPlayerRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Put a player on the team's roster for a tournament (admin)."""
    entry = await team_service.add_roster_player(session, team_id, payload.tournament_id, payload.player_id)
    return envelope(entry, message="Player added to roster")


@router.delete("/api/teams/{team_id}/players/{player_id}")
async def remove_roster_player(
    team_id: int,
    player_id: int,
    tournament_id: int = Query(..., description="Tournament of the roster"),
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Take a player off the team's roster (admin)."""
    await team_service.remove_roster_player(session, team_id, tournament_id, player_id)
    return envelope(message="Player removed from roster")


@router.post("/api/teams/{team_id}/staff", status_code=201)
async def add_staff(
    team_id: int,
    payload: AddStaffRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Attach a coach or assistant coach to the team (admin)."""
    staff = await team_service.add_staff(session, team_id, payload.name.strip(), payload.role)
    return envelope(staff, message="Staff member added")
