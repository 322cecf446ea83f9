"""
User settings, stored per category on the user row.

Each category has a pydantic model; updates are validated against it and
unknown keys are rejected.
"""

import logging
from typing import Dict, Type
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from tournament_api.models.schemas import AppearanceSettings, NotificationSettings, ProfileSettings
from tournament_api.services import user_service
from tournament_api.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

SETTINGS_CATEGORIES: Dict[str, Type[BaseModel]] = {
    "profile": ProfileSettings,
    "appearance": AppearanceSettings,
    "notifications": NotificationSettings,
}


def _defaults(category: str) -> Dict:
    return SETTINGS_CATEGORIES[category]().model_dump(mode="json")


async def get_settings(session: AsyncSession, user_id: int) -> Dict:
    """
    All settings of a user, with defaults filled in for unset keys.

    Returns:
        Dict of category -> settings dict
    """
    stored = await user_service.get_user_settings(session, user_id)
    return {
        category: {**_defaults(category), **(stored.get(category) or {})}
        for category in SETTINGS_CATEGORIES
    }


async def update_settings(session: AsyncSession, user_id: int, category: str, updates: Dict) -> Dict:
    """
    Merge updates into one settings category.

    Args:
        session: Database session
        user_id: Owner of the settings
        category: profile, appearance or notifications
        updates: Partial settings for the category

    Returns:
        The full, updated settings of the category

    Raises:
        ValidationError: Unknown category, unknown key, bad value, or no changes
    """
    model = SETTINGS_CATEGORIES.get(category)
    if model is None:
        raise ValidationError(f"Unknown settings category: {category}")

    try:
        parsed = model.model_validate(updates)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or category}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid {category} settings: {problems}")

    changes = parsed.model_dump(mode="json", exclude_unset=True)
    if not changes:
        raise ValidationError("No settings provided")

    stored = await user_service.get_user_settings(session, user_id)
    current = {**_defaults(category), **(stored.get(category) or {})}
    current.update(changes)
    stored[category] = current
    await user_service.save_user_settings(session, user_id, stored)

    logger.info(f"User {user_id} updated {category} settings: {sorted(changes)}")
    return current
