"""Availability endpoints."""
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.availability import AvailabilityResponse
from app.services.availability_service import availability_service

router = APIRouter(prefix="/courts/{court_id}", tags=["availability"])


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    court_id: int,
    target_date: date = Query(..., alias="date", description="Day to show (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the slot grid for a court on a date.

    Slots are cut from the court's working hours (falling back to the
    facility's) using the court's slot duration. Each slot carries its price
    and whether it can still be booked.

    Args:
        court_id: Court ID
        target_date: Day to show
        db: Database session

    Returns:
        Availability grid
    """
    return await availability_service.get_availability(db, court_id, target_date)
