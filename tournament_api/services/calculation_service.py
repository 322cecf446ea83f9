"""
Standings calculation service.
Replays completed matches into per-team standings records.
"""

from typing import Dict, Iterable, List, Optional, Tuple
from tournament_api.utils.constants import POINTS_PER_WIN, POINTS_PER_DRAW, POINTS_PER_LOSS
from tournament_api.database.models import DecisionMethod, MatchOutcome


# ============================================================================
# Match Processing Helpers
# ============================================================================

def calculate_winner(home_goals: int, away_goals: int) -> int:
    """
    Determine winner: 1 = home, 2 = away, -1 = tie.

    Args:
        home_goals: Goals scored by the home team
        away_goals: Goals scored by the away team

    Returns:
        Winner indicator (1, 2, or -1 for tie)
    """
    if home_goals > away_goals:
        return 1
    elif away_goals > home_goals:
        return 2
    else:
        return -1


def match_outcomes(home_goals: int, away_goals: int) -> Tuple[MatchOutcome, MatchOutcome]:
    """
    Standings outcome for each side.

    A match settled by a shootout is level on goals, so it is a draw here;
    the shootout is tracked separately.
    """
    winner = calculate_winner(home_goals, away_goals)
    if winner == 1:
        return MatchOutcome.WIN, MatchOutcome.LOSS
    if winner == 2:
        return MatchOutcome.LOSS, MatchOutcome.WIN
    return MatchOutcome.DRAW, MatchOutcome.DRAW


def validate_result(
    home_goals: int,
    away_goals: int,
    decided_by: DecisionMethod,
    home_penalties: Optional[int] = None,
    away_penalties: Optional[int] = None,
) -> Optional[str]:
    """
    Check a submitted result.

    Returns:
        An error message, or None if the result is consistent
    """
    for value in (home_goals, away_goals):
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            return "Scores must be non-negative integers"

    if decided_by == DecisionMethod.PENALTIES:
        if home_goals != away_goals:
            return "A shootout can only follow a level score"
        if home_penalties is None or away_penalties is None:
            return "Shootout tallies are required when decided by penalties"
        for value in (home_penalties, away_penalties):
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                return "Shootout tallies must be non-negative integers"
        if home_penalties == away_penalties:
            return "A shootout must have a winner"
    elif home_penalties is not None or away_penalties is not None:
        return "Shootout tallies are only allowed when decided by penalties"

    return None


# ============================================================================
# TeamRecord Class
# ============================================================================

class TeamRecord:
    """Encapsulates the standings tally of one team in one tournament."""

    def __init__(self, team_id: int):
        self.team_id = team_id
        self.wins = 0
        self.draws = 0
        self.losses = 0
        self.goals_for = 0
        self.goals_against = 0
        self.penalty_decided = 0
        self.shootout_wins = 0

    @property
    def matches_played(self) -> int:
        return self.wins + self.draws + self.losses

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    @property
    def points(self) -> int:
        """3 per win, 1 per draw, 0 per loss."""
        return (
            self.wins * POINTS_PER_WIN
            + self.draws * POINTS_PER_DRAW
            + self.losses * POINTS_PER_LOSS
        )

    def record_match(
        self,
        goals_for: int,
        goals_against: int,
        decided_by: Optional[DecisionMethod] = None,
        penalties_for: Optional[int] = None,
        penalties_against: Optional[int] = None,
    ) -> None:
        """Add one completed match to the tally."""
        self.goals_for += goals_for
        self.goals_against += goals_against

        outcome, _ = match_outcomes(goals_for, goals_against)
        if outcome == MatchOutcome.WIN:
            self.wins += 1
        elif outcome == MatchOutcome.LOSS:
            self.losses += 1
        else:
            self.draws += 1
            if decided_by == DecisionMethod.PENALTIES:
                self.penalty_decided += 1
                if (penalties_for or 0) > (penalties_against or 0):
                    self.shootout_wins += 1

    def to_dict(self) -> Dict[str, int]:
        """Counter values in the shape of a standings row."""
        return {
            "matches_played": self.matches_played,
            "wins": self.wins,
            "draws": self.draws,
            "losses": self.losses,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_difference": self.goal_difference,
            "points": self.points,
            "penalty_decided": self.penalty_decided,
            "shootout_wins": self.shootout_wins,
        }


def replay_matches(team_ids: Iterable[int], matches: Iterable) -> Dict[int, TeamRecord]:
    """
    Build TeamRecords for the given teams from completed matches.

    Args:
        team_ids: Teams to tally
        matches: Completed Match rows (anything with the score attributes)

    Returns:
        Dict of team_id -> TeamRecord; teams without matches get empty records
    """
    records = {team_id: TeamRecord(team_id) for team_id in team_ids}
    for match in matches:
        if match.home_score is None or match.away_score is None:
            continue
        home = records.get(match.home_team_id)
        if home is not None:
            home.record_match(
                match.home_score, match.away_score, match.decided_by,
                match.home_penalties, match.away_penalties,
            )
        away = records.get(match.away_team_id)
        if away is not None:
            away.record_match(
                match.away_score, match.home_score, match.decided_by,
                match.away_penalties, match.home_penalties,
            )
    return records


# ============================================================================
# Ranking
# ============================================================================

def standings_sort_key(row: Dict) -> Tuple:
    """Points desc, goal difference desc, goals for desc, then team name asc."""
    return (-row["points"], -row["goal_difference"], -row["goals_for"], row["team_name"])


def rank_rows(rows: List[Dict]) -> List[Dict]:
    """Return standings rows sorted by standings_sort_key."""
    return sorted(rows, key=standings_sort_key)
