"""Single booking endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.booking import BookingCreate, BookingRead
from app.services.booking_service import booking_service

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingRead, status_code=201)
async def create_booking(
    request: BookingCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Book a single window on a court.

    The window must lie within the court's working hours and must not overlap
    a booking that already holds the court (409 otherwise).

    Args:
        request: Court, window and customer details
        db: Database session

    Returns:
        Created booking
    """
    return await booking_service.create_booking(db, request)


@router.post("/{booking_id}/cancel", response_model=BookingRead)
async def cancel_booking(booking_id: int, db: AsyncSession = Depends(get_db)):
    """
    Cancel a booking.

    The freed window is offered to the first party on its waitlist.
    """
    return await booking_service.cancel_booking(db, booking_id)
