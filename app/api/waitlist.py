"""Waitlist endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.waitlist import WaitlistEntryRead, WaitlistJoin
from app.services.waitlist_service import waitlist_service

router = APIRouter(prefix="/waitlist", tags=["waitlist"])


@router.post("", response_model=WaitlistEntryRead, status_code=201)
async def join_waitlist(
    request: WaitlistJoin,
    db: AsyncSession = Depends(get_db),
):
    """
    Join the waitlist for a booked slot.

    Args:
        request: Court, slot window and contact details
        db: Database session

    Returns:
        Waitlist entry with its position
    """
    return await waitlist_service.join(db, request)


@router.post("/{entry_id}/fulfil", status_code=204)
async def fulfil_waitlist_entry(entry_id: int, db: AsyncSession = Depends(get_db)):
    """Remove an entry after the offered slot was booked."""
    await waitlist_service.fulfil(db, entry_id)


@router.delete("/{entry_id}", status_code=204)
async def withdraw_waitlist_entry(entry_id: int, db: AsyncSession = Depends(get_db)):
    """Withdraw from the waitlist."""
    await waitlist_service.withdraw(db, entry_id)
