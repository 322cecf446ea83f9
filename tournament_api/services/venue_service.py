"""
Venue registry operations.
"""

from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from tournament_api.database.models import Match, Venue
from tournament_api.utils.datetime_utils import isoformat_or_none
from tournament_api.utils.exceptions import ConflictError, NotFoundError


async def create_venue(
    session: AsyncSession, name: str, city: Optional[str] = None, capacity: Optional[int] = None
) -> Dict:
    """Create a new venue."""
    await _check_name_free(session, name)
    venue = Venue(name=name, city=city, capacity=capacity)
    session.add(venue)
    await session.flush()
    await session.commit()
    await session.refresh(venue)
    return _venue_to_dict(venue)


async def list_venues(session: AsyncSession) -> List[Dict]:
    """List venues by name."""
    result = await session.execute(select(Venue).order_by(Venue.name.asc()))
    return [_venue_to_dict(v) for v in result.scalars().all()]


async def update_venue(
    session: AsyncSession,
    venue_id: int,
    name: Optional[str] = None,
    city: Optional[str] = None,
    capacity: Optional[int] = None,
) -> Dict:
    """Update a venue."""
    venue = await session.get(Venue, venue_id)
    if venue is None:
        raise NotFoundError("Venue not found")

    if name is not None and name != venue.name:
        await _check_name_free(session, name)
        venue.name = name
    if city is not None:
        venue.city = city
    if capacity is not None:
        venue.capacity = capacity

    await session.commit()
    await session.refresh(venue)
    return _venue_to_dict(venue)


async def delete_venue(session: AsyncSession, venue_id: int) -> None:
    """Delete a venue. Matches played there keep their record without a venue."""
    venue = await session.get(Venue, venue_id)
    if venue is None:
        raise NotFoundError("Venue not found")
    await session.execute(update(Match).where(Match.venue_id == venue_id).values(venue_id=None))
    await session.execute(delete(Venue).where(Venue.id == venue_id))
    await session.commit()


async def _check_name_free(session: AsyncSession, name: str) -> None:
    result = await session.execute(select(Venue.id).where(Venue.name == name))
    if result.scalar_one_or_none() is not None:
        raise ConflictError("A venue with this name already exists")


def _venue_to_dict(venue: Venue) -> Dict:
    return {
        "id": venue.id,
        "name": venue.name,
        "city": venue.city,
        "capacity": venue.capacity,
        "created_at": isoformat_or_none(venue.created_at),
    }
