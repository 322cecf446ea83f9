"""Venue route handlers."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_api.api.routes import envelope
from tournament_api.database.db import get_db_session
from tournament_api.services import venue_service
from tournament_api.api.auth_dependencies import require_admin
from tournament_api.models.schemas import CreateVenueRequest, UpdateVenueRequest

router = APIRouter()


@router.get("/api/venues")
async def list_venues(session: AsyncSession = Depends(get_db_session)):
    """List venues."""
    return envelope(await venue_service.list_venues(session))


@router.post("/api/venues", status_code=201)
async def create_venue(
    payload: CreateVenueRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a venue (admin)."""
    venue = await venue_service.create_venue(session, payload.name.strip(), payload.city, payload.capacity)
    return envelope(venue, message="Venue created")


@router.put("/api/venues/{venue_id}")
async def update_venue(
    venue_id: int,
    payload: UpdateVenueRequest,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Update a venue (admin)."""
    venue = await venue_service.update_venue(
        session, venue_id, name=payload.name, city=payload.city, capacity=payload.capacity
    )
    return envelope(venue, message="Venue updated")


@router.delete("/api/venues/{venue_id}")
async def delete_venue(
    venue_id: int,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a venue (admin)."""
    await venue_service.delete_venue(session, venue_id)
    return envelope(message="Venue deleted")
