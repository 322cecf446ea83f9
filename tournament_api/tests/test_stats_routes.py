"""
Tests for the statistics routes: HTTP-level tests of the public stats endpoints.

Uses FastAPI TestClient to verify status codes, response shapes,
and parameter forwarding without needing a real database.
"""

import pytest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from tournament_api.api.main import app
from tournament_api.utils.exceptions import NotFoundError


@pytest.fixture
def client():
    """Create a TestClient for the app."""
    return TestClient(app)


# ============================================================================
# GET /api/stats/top-scorers
# ============================================================================


@patch("tournament_api.services.stats_service.top_scorers", new_callable=AsyncMock)
def test_top_scorers_returns_envelope(mock_scorers, client):
    """GET /api/stats/top-scorers wraps the list with a count."""
    mock_scorers.return_value = [
        {"player_id": 1, "player_name": "Anna", "goals": 3},
        {"player_id": 2, "player_name": "Bea", "goals": 2},
    ]

    response = client.get("/api/stats/top-scorers")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["count"] == 2
    assert data["data"][0]["player_name"] == "Anna"


@patch("tournament_api.services.stats_service.top_scorers", new_callable=AsyncMock)
def test_top_scorers_forwards_params(mock_scorers, client):
    """Query params are forwarded to the service."""
    mock_scorers.return_value = []

    response = client.get("/api/stats/top-scorers?tournament_id=7&limit=3")
    assert response.status_code == 200
    mock_scorers.assert_called_once()
    assert mock_scorers.call_args.kwargs == {"tournament_id": 7, "limit": 3}


def test_top_scorers_invalid_limit(client):
    """Limit outside 1..100 is a 400."""
    response = client.get("/api/stats/top-scorers?limit=0")
    assert response.status_code == 400
    assert response.json()["success"] is False

    response = client.get("/api/stats/top-scorers?limit=500")
    assert response.status_code == 400


@patch("tournament_api.services.stats_service.top_scorers", new_callable=AsyncMock)
def test_top_scorers_unknown_tournament(mock_scorers, client):
    """Service NotFoundError maps to 404 in the error envelope."""
    mock_scorers.side_effect = NotFoundError("Tournament not found")

    response = client.get("/api/stats/top-scorers?tournament_id=999")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Tournament not found"}


# ============================================================================
# Other leaderboards
# ============================================================================


@patch("tournament_api.services.stats_service.red_card_leaders", new_callable=AsyncMock)
def test_red_cards(mock_red, client):
    mock_red.return_value = [{"player_id": 4, "player_name": "Cleo", "red_cards": 2}]

    response = client.get("/api/stats/red-cards")
    assert response.status_code == 200
    assert response.json()["data"][0]["red_cards"] == 2
    assert mock_red.call_args.kwargs == {"tournament_id": None, "limit": None}


@patch("tournament_api.services.stats_service.red_card_leaders", new_callable=AsyncMock)
def test_red_cards_forwards_limit(mock_red, client):
    mock_red.return_value = []

    response = client.get("/api/stats/red-cards?tournament_id=2&limit=3")
    assert response.status_code == 200
    assert mock_red.call_args.kwargs == {"tournament_id": 2, "limit": 3}


@patch("tournament_api.services.stats_service.top_teams_by_wins", new_callable=AsyncMock)
def test_top_teams(mock_teams, client):
    mock_teams.return_value = [{"team_id": 1, "team_name": "A", "wins": 2, "points": 6}]

    response = client.get("/api/stats/top-teams?tournament_id=1")
    assert response.status_code == 200
    assert response.json()["count"] == 1
    assert mock_teams.call_args.kwargs["tournament_id"] == 1


@patch("tournament_api.services.stats_service.recent_matches", new_callable=AsyncMock)
def test_recent_matches(mock_recent, client):
    mock_recent.return_value = []

    response = client.get("/api/stats/recent-matches?limit=2")
    assert response.status_code == 200
    assert response.json() == {"success": True, "data": [], "count": 0}
    assert mock_recent.call_args.kwargs["limit"] == 2


@patch("tournament_api.services.stats_service.upcoming_matches", new_callable=AsyncMock)
def test_upcoming_matches(mock_upcoming, client):
    mock_upcoming.return_value = [{"id": 5, "status": "upcoming"}]

    response = client.get("/api/stats/upcoming-matches")
    assert response.status_code == 200
    assert response.json()["data"][0]["id"] == 5


# ============================================================================
# Per-tournament reports
# ============================================================================


@patch("tournament_api.services.stats_service.tournament_summary", new_callable=AsyncMock)
def test_tournament_summary(mock_summary, client):
    mock_summary.return_value = {
        "tournament": {"id": 1, "name": "T1"},
        "standings": [],
        "top_scorers": [],
        "recent_matches": [],
        "upcoming_matches": [],
    }

    response = client.get("/api/stats/tournament/1")
    assert response.status_code == 200
    body = response.json()
    assert body["data"]["tournament"]["name"] == "T1"
    # Dict payloads carry no count
    assert "count" not in body


@patch("tournament_api.services.stats_service.tournament_summary", new_callable=AsyncMock)
def test_tournament_summary_not_found(mock_summary, client):
    mock_summary.side_effect = NotFoundError("Tournament not found")

    response = client.get("/api/stats/tournament/999")
    assert response.status_code == 404


def test_tournament_summary_bad_id(client):
    response = client.get("/api/stats/tournament/abc")
    assert response.status_code == 400


@patch("tournament_api.services.stats_service.highest_scorer_per_team", new_callable=AsyncMock)
def test_team_scorers(mock_leaders, client):
    mock_leaders.return_value = [
        {"team_id": 1, "team_name": "A", "player_id": 1, "player_name": "Anna", "goals": 3}
    ]

    response = client.get("/api/stats/tournament/1/team-scorers")
    assert response.status_code == 200
    assert response.json()["count"] == 1


@patch("tournament_api.services.stats_service.player_goal_breakdown", new_callable=AsyncMock)
def test_goal_breakdown(mock_breakdown, client):
    mock_breakdown.return_value = [
        {"player_id": 1, "player_name": "Anna", "total_goals": 3, "penalty_goals": 1, "non_penalty_goals": 2}
    ]

    response = client.get("/api/stats/tournament/1/goal-breakdown")
    assert response.status_code == 200
    assert response.json()["data"][0]["non_penalty_goals"] == 2
