"""
Pydantic models for API requests and user settings.
"""

from datetime import date, datetime
from typing import Optional, Literal
from pydantic import BaseModel, Field, ConfigDict, model_validator

from tournament_api.database.models import (
    CardType,
    DecisionMethod,
    GoalType,
    MatchPeriod,
    MatchStage,
    PlayerPosition,
    StaffRole,
    UserRole,
)


# Authentication schemas


def _strip_username(data):
    if isinstance(data, dict) and isinstance(data.get("username"), str):
        data = {**data, "username": data["username"].strip()}
    return data


class RegisterRequest(BaseModel):
    """Request to register a new account."""

    username: str = Field(min_length=1, max_length=50)
    email: str
    password: str
    role: UserRole = UserRole.GUEST

    @model_validator(mode="before")
    @classmethod
    def strip_username(cls, data):
        """Whitespace around the username is dropped before the length check."""
        return _strip_username(data)


class LoginRequest(BaseModel):
    """Request to login with email and password."""

    email: str
    password: str


class UpdateProfileRequest(BaseModel):
    """Request to change the caller's username or email."""

    username: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def strip_username(cls, data):
        return _strip_username(data)

    @model_validator(mode="after")
    def validate_not_empty(self):
        """Ensure at least one field is provided."""
        if self.username is None and self.email is None:
            raise ValueError("Provide username or email")
        return self


class ChangePasswordRequest(BaseModel):
    """Request to change the caller's password."""

    current_password: str
    new_password: str
    confirm_password: str


class UpdateRoleRequest(BaseModel):
    """Admin request to change a user's role."""

    role: UserRole


# User settings categories. Unknown keys are rejected.


class ProfileSettings(BaseModel):
    """Profile settings category."""

    model_config = ConfigDict(extra="forbid")

    display_name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=500)
    favorite_team_id: Optional[int] = None


class AppearanceSettings(BaseModel):
    """Appearance settings category."""

    model_config = ConfigDict(extra="forbid")

    theme: Literal["light", "dark", "system"] = "system"
    language: str = Field(default="en", min_length=2, max_length=10)


class NotificationSettings(BaseModel):
    """Notification settings category."""

    model_config = ConfigDict(extra="forbid")

    match_reminders: bool = True
    result_updates: bool = True


# Registry schemas


class CreateTournamentRequest(BaseModel):
    """Request to create a tournament."""

    name: str = Field(min_length=1)
    start_date: date
    end_date: date


class UpdateTournamentRequest(BaseModel):
    """Request to update a tournament. Omitted fields keep their value."""

    name: Optional[str] = Field(default=None, min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class CreateTeamRequest(BaseModel):
    """Request to create a team, optionally entering it into a tournament."""

    name: str = Field(min_length=1)
    tournament_id: Optional[int] = None
    group: Optional[str] = Field(default=None, max_length=20)


class UpdateTeamRequest(BaseModel):
    """Request to rename a team."""

    name: str = Field(min_length=1)


class AssignTeamRequest(BaseModel):
    """Request to enter a team into a tournament."""

    tournament_id: int
    group: Optional[str] = Field(default=None, max_length=20)


class RosterPlayerRequest(BaseModel):
    """Request to put a player on a team's tournament roster."""

    tournament_id: int
    player_id: int


class AddStaffRequest(BaseModel):
    """Request to attach a coach to a team."""

    name: str = Field(min_length=1)
    role: StaffRole = StaffRole.COACH


class CreatePlayerRequest(BaseModel):
    """Request to create a player."""

    name: str = Field(min_length=1)
    date_of_birth: Optional[date] = None
    jersey_number: Optional[int] = Field(default=None, ge=0, le=99)
    position: Optional[PlayerPosition] = None
    email: Optional[str] = None
    team_id: Optional[int] = None
    tournament_id: Optional[int] = None

    @model_validator(mode="after")
    def validate_roster_target(self):
        """A roster assignment needs both team and tournament."""
        if (self.team_id is None) != (self.tournament_id is None):
            raise ValueError("team_id and tournament_id must be given together")
        return self


class UpdatePlayerRequest(BaseModel):
    """Request to update a player. Omitted fields keep their value."""

    name: Optional[str] = Field(default=None, min_length=1)
    date_of_birth: Optional[date] = None
    jersey_number: Optional[int] = Field(default=None, ge=0, le=99)
    position: Optional[PlayerPosition] = None
    email: Optional[str] = None


class CreateVenueRequest(BaseModel):
    """Request to create a venue."""

    name: str = Field(min_length=1)
    city: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)


class UpdateVenueRequest(BaseModel):
    """Request to update a venue."""

    name: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)


# Match schemas


class CreateMatchRequest(BaseModel):
    """Request to create a fixture."""

    tournament_id: int
    home_team_id: int
    away_team_id: int
    play_date: datetime
    stage: MatchStage = MatchStage.GROUP
    venue_id: Optional[int] = None
    audience: int = Field(default=0, ge=0)


class UpdateMatchRequest(BaseModel):
    """Request to update fixture fields."""

    play_date: Optional[datetime] = None
    stage: Optional[MatchStage] = None
    venue_id: Optional[int] = None
    audience: Optional[int] = Field(default=None, ge=0)
    stoppage_first_half_sec: Optional[int] = Field(default=None, ge=0)
    stoppage_second_half_sec: Optional[int] = Field(default=None, ge=0)


class MatchResultRequest(BaseModel):
    """Request to record (or amend) a match result."""

    home_goals: int = Field(ge=0)
    away_goals: int = Field(ge=0)
    decided_by: DecisionMethod = DecisionMethod.NORMAL
    home_penalties: Optional[int] = Field(default=None, ge=0)
    away_penalties: Optional[int] = Field(default=None, ge=0)
    amend: bool = False
    player_of_match_id: Optional[int] = None
    home_captain_id: Optional[int] = None
    away_captain_id: Optional[int] = None
    home_goalkeeper_id: Optional[int] = None
    away_goalkeeper_id: Optional[int] = None


class GoalEventRequest(BaseModel):
    """Request to record a goal."""

    team_id: int
    player_id: int
    minute: int = Field(ge=0, le=150)
    goal_type: GoalType = GoalType.NORMAL
    period: MatchPeriod = MatchPeriod.FIRST_HALF


class PenaltyKickRequest(BaseModel):
    """Request to record a shootout kick."""

    team_id: int
    player_id: int
    kick_number: int = Field(ge=1)
    scored: bool


class BookingRequest(BaseModel):
    """Request to record a booking."""

    team_id: int
    player_id: int
    card_type: CardType
    minute: Optional[int] = Field(default=None, ge=0, le=150)
    sent_off: Optional[bool] = None
