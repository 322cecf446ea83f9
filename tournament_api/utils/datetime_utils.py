"""
Datetime utility functions.
Provides replacements for deprecated datetime functions.
"""

from datetime import datetime, date
from typing import Optional, Union
import pytz


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def ensure_utc(value: datetime) -> datetime:
    """
    Attach UTC to a naive datetime, or convert an aware one to UTC.

    Match dates arrive from JSON bodies with or without an offset; all of them
    are stored as UTC.
    """
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def isoformat_or_none(value: Optional[Union[datetime, date]]) -> Optional[str]:
    """Serialize a date/datetime column value, passing None through."""
    return value.isoformat() if value is not None else None
