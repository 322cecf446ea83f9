"""
API routes - combined router from all domain modules.

Shared infrastructure (limiter, constants, response envelope) lives here;
every sub-router imports what it needs from this package.
"""

import os
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from slowapi import Limiter
from slowapi.util import get_remote_address

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
if IS_TEST_ENV:
    limiter = Limiter(key_func=get_remote_address)

    def no_op_limit(*args, **kwargs):
        """No-op decorator for test mode - doesn't apply any rate limiting."""
        def decorator(func):
            return func
        return decorator

    limiter.limit = lambda *args, **kwargs: no_op_limit()
else:
    limiter = Limiter(key_func=get_remote_address)

# ---------------------------------------------------------------------------
# Shared constants
# ---------------------------------------------------------------------------
INVALID_CREDENTIALS_RESPONSE = HTTPException(
    status_code=401, detail="Invalid email or password"
)


def envelope(data: Any = None, message: Optional[str] = None, count: Optional[int] = None) -> dict:
    """
    Build the JSON response envelope.

    Lists get a count automatically; keys with no value are left out.
    """
    body = {"success": True}
    if data is not None:
        body["data"] = data
        if count is None and isinstance(data, list):
            count = len(data)
    if message is not None:
        body["message"] = message
    if count is not None:
        body["count"] = count
    return body


# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from tournament_api.api.routes.auth import router as auth_router  # noqa: E402
from tournament_api.api.routes.users import router as users_router  # noqa: E402
from tournament_api.api.routes.admin import router as admin_router  # noqa: E402
from tournament_api.api.routes.tournaments import router as tournaments_router  # noqa: E402
from tournament_api.api.routes.teams import router as teams_router  # noqa: E402
from tournament_api.api.routes.players import router as players_router  # noqa: E402
from tournament_api.api.routes.venues import router as venues_router  # noqa: E402
from tournament_api.api.routes.matches import router as matches_router  # noqa: E402
from tournament_api.api.routes.stats import router as stats_router  # noqa: E402

router = APIRouter()
router.include_router(auth_router)
router.include_router(users_router)
router.include_router(admin_router)
router.include_router(tournaments_router)
router.include_router(teams_router)
router.include_router(players_router)
router.include_router(venues_router)
router.include_router(matches_router)
router.include_router(stats_router)
