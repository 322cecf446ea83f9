"""
SQLAlchemy ORM models for the tournament management system.
"""

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    JSON,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from tournament_api.database.db import Base


class UserRole(str, enum.Enum):
    """User role enum."""

    ADMIN = "admin"
    GUEST = "guest"


class PlayerPosition(str, enum.Enum):
    """Playing position enum."""

    GOALKEEPER = "goalkeeper"
    DEFENDER = "defender"
    MIDFIELDER = "midfielder"
    FORWARD = "forward"


class StaffRole(str, enum.Enum):
    """Team support staff role enum."""

    COACH = "coach"
    ASSISTANT_COACH = "assistant_coach"


class MatchStage(str, enum.Enum):
    """Tournament stage a match is played in."""

    GROUP = "group"
    ROUND_OF_16 = "round_of_16"
    QUARTER_FINAL = "quarter_final"
    SEMI_FINAL = "semi_final"
    FINAL = "final"


class MatchStatus(str, enum.Enum):
    """Match status enum. Fixtures are upcoming until a result is recorded."""

    UPCOMING = "upcoming"
    COMPLETED = "completed"


class DecisionMethod(str, enum.Enum):
    """How a match outcome was decided."""

    NORMAL = "normal"
    PENALTIES = "penalties"


class MatchOutcome(str, enum.Enum):
    """Per-team outcome of a completed match."""

    WIN = "win"
    DRAW = "draw"
    LOSS = "loss"


class GoalType(str, enum.Enum):
    """Goal type enum."""

    NORMAL = "normal"
    PENALTY = "penalty"
    OWN_GOAL = "own_goal"


class MatchPeriod(str, enum.Enum):
    """Period of play a goal was scored in."""

    FIRST_HALF = "first_half"
    SECOND_HALF = "second_half"
    EXTRA_TIME = "extra_time"


class CardType(str, enum.Enum):
    """Booking card type enum."""

    YELLOW = "yellow"
    RED = "red"


class User(Base):
    """User accounts with email/password authentication."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True)
    email = Column(String, nullable=False, unique=True)  # Stored lower-case
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.GUEST, nullable=False)
    settings = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_role", "role"),
    )


class Tournament(Base):
    """Tournaments."""

    __tablename__ = "tournaments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    standings = relationship("TournamentTeam", back_populates="tournament")
    matches = relationship("Match", back_populates="tournament")

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_tournaments_dates"),
        Index("idx_tournaments_start_date", "start_date"),
    )


class Team(Base):
    """Teams. A team can take part in many tournaments."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    tournament_entries = relationship("TournamentTeam", back_populates="team")
    staff = relationship("TeamStaff", back_populates="team")


class TournamentTeam(Base):
    """
    A team's entry in a tournament, doubling as its standings row.

    The counters are a materialized aggregate of the match ledger and are only
    written by standings_service.
    """

    __tablename__ = "tournament_teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tournament_id = Column(
        Integer, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    group_label = Column(String(20), nullable=True)  # e.g. "A", "G1"
    matches_played = Column(Integer, default=0, nullable=False)
    wins = Column(Integer, default=0, nullable=False)
    draws = Column(Integer, default=0, nullable=False)
    losses = Column(Integer, default=0, nullable=False)
    goals_for = Column(Integer, default=0, nullable=False)
    goals_against = Column(Integer, default=0, nullable=False)
    goal_difference = Column(Integer, default=0, nullable=False)
    points = Column(Integer, default=0, nullable=False)
    group_position = Column(Integer, nullable=True)
    penalty_decided = Column(Integer, default=0, nullable=False)  # Draws settled by shootout
    shootout_wins = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    tournament = relationship("Tournament", back_populates="standings")
    team = relationship("Team", back_populates="tournament_entries")

    __table_args__ = (
        UniqueConstraint("tournament_id", "team_id", name="uq_tournament_team"),
        Index("idx_tournament_teams_tournament", "tournament_id"),
        Index("idx_tournament_teams_group", "tournament_id", "group_label"),
    )


class Venue(Base):
    """Match venues."""

    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    city = Column(String, nullable=True)
    capacity = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Player(Base):
    """Player profiles."""

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    date_of_birth = Column(Date, nullable=True)
    jersey_number = Column(Integer, nullable=True)
    position = Column(Enum(PlayerPosition), nullable=True)
    email = Column(String, nullable=True)  # Used for match reminders
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (Index("idx_players_name", "name"),)


class TeamPlayer(Base):
    """Roster assignment of a player to a team for one tournament."""

    __tablename__ = "team_players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    tournament_id = Column(
        Integer, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("team_id", "tournament_id", "player_id", name="uq_team_player"),
        Index("idx_team_players_team", "team_id", "tournament_id"),
        Index("idx_team_players_player", "player_id"),
    )


class TeamStaff(Base):
    """Coaching staff attached to a team."""

    __tablename__ = "team_staff"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    role = Column(Enum(StaffRole), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    team = relationship("Team", back_populates="staff")

    __table_args__ = (Index("idx_team_staff_team", "team_id"),)


class Match(Base):
    """Match fixtures and results (the match ledger header)."""

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tournament_id = Column(
        Integer, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )
    stage = Column(Enum(MatchStage), default=MatchStage.GROUP, nullable=False)
    play_date = Column(DateTime(timezone=True), nullable=False)
    home_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    away_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    venue_id = Column(Integer, ForeignKey("venues.id"), nullable=True)
    audience = Column(Integer, default=0, nullable=False)
    status = Column(Enum(MatchStatus), default=MatchStatus.UPCOMING, nullable=False)
    home_score = Column(Integer, nullable=True)
    away_score = Column(Integer, nullable=True)
    decided_by = Column(Enum(DecisionMethod), nullable=True)
    home_penalties = Column(Integer, nullable=True)  # Shootout tally, only when decided_by=penalties
    away_penalties = Column(Integer, nullable=True)
    player_of_match_id = Column(Integer, ForeignKey("players.id"), nullable=True)
    stoppage_first_half_sec = Column(Integer, default=0, nullable=False)
    stoppage_second_half_sec = Column(Integer, default=0, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    tournament = relationship("Tournament", back_populates="matches")
    home_team = relationship("Team", foreign_keys=[home_team_id])
    away_team = relationship("Team", foreign_keys=[away_team_id])
    venue = relationship("Venue")

    __table_args__ = (
        CheckConstraint("home_team_id <> away_team_id", name="ck_matches_distinct_teams"),
        CheckConstraint("home_score IS NULL OR home_score >= 0", name="ck_matches_home_score"),
        CheckConstraint("away_score IS NULL OR away_score >= 0", name="ck_matches_away_score"),
        Index("idx_matches_tournament", "tournament_id"),
        Index("idx_matches_play_date", "play_date"),
        Index("idx_matches_status", "status"),
        Index("idx_matches_home_team", "home_team_id"),
        Index("idx_matches_away_team", "away_team_id"),
    )


class MatchTeamDetail(Base):
    """Per-team breakdown of a completed match."""

    __tablename__ = "match_team_details"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    outcome = Column(Enum(MatchOutcome), nullable=False)
    goals = Column(Integer, default=0, nullable=False)
    penalties = Column(Integer, nullable=True)
    captain_id = Column(Integer, ForeignKey("players.id"), nullable=True)
    goalkeeper_id = Column(Integer, ForeignKey("players.id"), nullable=True)

    __table_args__ = (
        UniqueConstraint("match_id", "team_id", name="uq_match_team_detail"),
        Index("idx_match_team_details_team", "team_id"),
    )


class GoalEvent(Base):
    """A goal scored in a match. Append-only."""

    __tablename__ = "goal_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    minute = Column(Integer, nullable=False)
    goal_type = Column(Enum(GoalType), default=GoalType.NORMAL, nullable=False)
    period = Column(Enum(MatchPeriod), default=MatchPeriod.FIRST_HALF, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_goal_events_match", "match_id"),
        Index("idx_goal_events_player", "player_id"),
    )


class PenaltyKick(Base):
    """A kick in a penalty shootout. Append-only, ordered by kick_number."""

    __tablename__ = "penalty_kicks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    kick_number = Column(Integer, nullable=False)
    scored = Column(Boolean, nullable=False)

    __table_args__ = (
        UniqueConstraint("match_id", "kick_number", name="uq_penalty_kick_number"),
        Index("idx_penalty_kicks_match", "match_id"),
    )


class Booking(Base):
    """A card shown to a player. Append-only."""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False)
    card_type = Column(Enum(CardType), nullable=False)
    minute = Column(Integer, nullable=True)
    sent_off = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_bookings_match", "match_id"),
        Index("idx_bookings_player_sent_off", "player_id", "sent_off"),
    )
