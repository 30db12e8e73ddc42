"""Seasonal series endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.seasonal import (
    ActivationRequest,
    ActivationResult,
    AutoCompleteResult,
    SeasonalSeriesCreate,
    SeasonalSeriesCreated,
    SeasonalSeriesRead,
    SeriesPreview,
)
from app.services.seasonal_service import seasonal_service

router = APIRouter(prefix="/bookings/seasonal", tags=["seasonal"])


@router.post("", response_model=SeasonalSeriesCreated, status_code=201)
async def create_series(
    request: SeasonalSeriesCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Request a seasonal series.

    One pending booking is created for every date between the start and end
    date (inclusive) that falls on the requested weekday.

    Args:
        request: Court, date range, weekday (0 = Monday) and times
        db: Database session

    Returns:
        Series id and number of bookings created
    """
    return await seasonal_service.create(db, request)


@router.post("/preview", response_model=SeriesPreview)
async def preview_series(request: SeasonalSeriesCreate):
    """
    Preview the dates a series request would book.

    Args:
        request: Same body as for creating a series

    Returns:
        Slot count and dates
    """
    return seasonal_service.preview(request)


@router.post("/auto-complete", response_model=AutoCompleteResult)
async def auto_complete(db: AsyncSession = Depends(get_db)):
    """
    Complete active series whose end date has passed.

    Safe to call repeatedly, on a schedule or on page load.
    """
    return await seasonal_service.auto_complete(db)


@router.get("/{series_id}", response_model=SeasonalSeriesRead)
async def get_series(series_id: str, db: AsyncSession = Depends(get_db)):
    """Get a series and its bookings."""
    return await seasonal_service.get(db, series_id)


@router.post("/{series_id}/confirm", response_model=SeasonalSeriesRead)
async def confirm_series(series_id: str, db: AsyncSession = Depends(get_db)):
    """Confirm a pending series."""
    return await seasonal_service.confirm(db, series_id)


@router.post("/{series_id}/reject", response_model=SeasonalSeriesRead)
async def reject_series(series_id: str, db: AsyncSession = Depends(get_db)):
    """Reject a pending series."""
    return await seasonal_service.reject(db, series_id)


@router.post("/{series_id}/payment", response_model=SeasonalSeriesRead)
async def mark_series_paid(series_id: str, db: AsyncSession = Depends(get_db)):
    """Mark a series as paid so it can be activated."""
    return await seasonal_service.mark_paid(db, series_id)


@router.post("/{series_id}/activate", response_model=ActivationResult)
async def activate_series(
    series_id: str,
    request: ActivationRequest = ActivationRequest(),
    db: AsyncSession = Depends(get_db),
):
    """
    Activate a confirmed, paid series.

    If any occurrence overlaps another booking holding the court, the
    conflicts are returned and nothing changes. Call again with
    ``skip_conflict_check: true`` to activate anyway.

    Args:
        series_id: Series ID
        request: Activation options
        db: Database session

    Returns:
        Conflicts, or the activated series
    """
    return await seasonal_service.activate(
        db, series_id, skip_conflict_check=request.skip_conflict_check
    )
