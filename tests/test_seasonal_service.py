import asyncio
from datetime import date, datetime, time
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.core.exceptions import (
    InvalidTransition,
    NotFoundError,
    PaymentRequired,
    ValidationError,
)
from app.models.booking import Booking
from app.models.court import Court
from app.schemas.seasonal import SeasonalSeriesCreate
from app.services.seasonal_service import SeasonalSeriesService, seasonal_service

MONDAY = 0


def series_request(court_id, **overrides):
    values = dict(
        court_id=court_id,
        seasonal_start_date=date(2024, 1, 1),
        seasonal_end_date=date(2024, 1, 31),
        day_of_week=MONDAY,
        start_time=time(18),
        end_time=time(19),
        customer_name="Anna Schmidt",
        customer_email="anna@example.com",
    )
    values.update(overrides)
    return SeasonalSeriesCreate(**values)


async def series_bookings(db, series_id):
    result = await db.execute(
        select(Booking)
        .where(Booking.seasonal_series_id == series_id)
        .order_by(Booking.starts_at)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def confirmed_paid_series(db, court, **overrides):
    created = await seasonal_service.create(db, series_request(court.id, **overrides))
    await seasonal_service.confirm(db, created.series_id)
    await seasonal_service.mark_paid(db, created.series_id)
    return created.series_id


# Creation


@pytest.mark.asyncio
async def test_create_expands_into_pending_bookings(db, court):
    created = await seasonal_service.create(db, series_request(court.id))

    assert created.slot_count == 5
    bookings = await series_bookings(db, created.series_id)
    assert [b.starts_at.date().day for b in bookings] == [1, 8, 15, 22, 29]
    assert all(b.status == "pending" for b in bookings)
    assert all(b.is_seasonal for b in bookings)
    assert all(b.price == Decimal("25.00") for b in bookings)


@pytest.mark.asyncio
async def test_first_occurrence_is_the_parent(db, court):
    created = await seasonal_service.create(db, series_request(court.id))

    bookings = await series_bookings(db, created.series_id)
    parent, children = bookings[0], bookings[1:]

    assert parent.id == created.parent_booking_id
    assert parent.parent_booking_id is None
    assert all(child.parent_booking_id == parent.id for child in children)


@pytest.mark.asyncio
async def test_single_day_range_is_allowed(db, court):
    created = await seasonal_service.create(
        db,
        series_request(
            court.id,
            seasonal_start_date=date(2024, 1, 8),
            seasonal_end_date=date(2024, 1, 8),
        ),
    )

    assert created.slot_count == 1


@pytest.mark.asyncio
async def test_missing_fields_are_reported_together(db, court):
    request = series_request(court.id, day_of_week=None, end_time=None)

    with pytest.raises(ValidationError) as exc_info:
        await seasonal_service.create(db, request)

    assert exc_info.value.details["missing"] == ["day_of_week", "end_time"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"seasonal_start_date": date(2024, 2, 1), "seasonal_end_date": date(2024, 1, 1)},
        {"start_time": time(19), "end_time": time(18)},
        {"start_time": time(18), "end_time": time(18)},
        {"day_of_week": 7},
        {"day_of_week": -1},
    ],
)
async def test_invalid_requests_are_rejected(db, court, overrides):
    with pytest.raises(ValidationError):
        await seasonal_service.create(db, series_request(court.id, **overrides))


@pytest.mark.asyncio
async def test_range_without_matching_weekday_creates_nothing(db, court):
    request = series_request(
        court.id,
        seasonal_start_date=date(2024, 1, 2),
        seasonal_end_date=date(2024, 1, 3),
    )

    with pytest.raises(ValidationError):
        await seasonal_service.create(db, request)

    result = await db.execute(select(Booking))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_unknown_or_inactive_court_is_not_found(db, court):
    court.is_active = False
    await db.commit()
    court_id = court.id

    with pytest.raises(NotFoundError):
        await seasonal_service.create(db, series_request(court_id))
    with pytest.raises(NotFoundError):
        await seasonal_service.create(db, series_request(9999))


def test_preview_lists_dates_without_writing():
    preview = seasonal_service.preview(series_request(1))

    assert preview.slot_count == 5
    assert preview.dates[0] == date(2024, 1, 1)
    assert preview.dates[-1] == date(2024, 1, 29)


# Transitions


@pytest.mark.asyncio
async def test_confirm_moves_every_booking(db, court):
    created = await seasonal_service.create(db, series_request(court.id))

    series = await seasonal_service.confirm(db, created.series_id)

    assert series.status == "confirmed"
    assert all(b.status == "confirmed" for b in series.bookings)


@pytest.mark.asyncio
async def test_reject_is_terminal(db, court):
    created = await seasonal_service.create(db, series_request(court.id))
    await seasonal_service.reject(db, created.series_id)

    with pytest.raises(InvalidTransition):
        await seasonal_service.confirm(db, created.series_id)
    with pytest.raises(InvalidTransition):
        await seasonal_service.reject(db, created.series_id)

    bookings = await series_bookings(db, created.series_id)
    assert all(b.status == "rejected" for b in bookings)


@pytest.mark.asyncio
async def test_confirm_twice_is_invalid(db, court):
    created = await seasonal_service.create(db, series_request(court.id))
    await seasonal_service.confirm(db, created.series_id)

    with pytest.raises(InvalidTransition):
        await seasonal_service.confirm(db, created.series_id)


@pytest.mark.asyncio
async def test_unknown_series_is_not_found(db, court):
    with pytest.raises(NotFoundError):
        await seasonal_service.confirm(db, "missing")
    with pytest.raises(NotFoundError):
        await seasonal_service.activate(db, "missing")


@pytest.mark.asyncio
async def test_mark_paid_is_idempotent(db, court):
    created = await seasonal_service.create(db, series_request(court.id))

    await seasonal_service.mark_paid(db, created.series_id)
    series = await seasonal_service.mark_paid(db, created.series_id)

    assert series.payment_status == "paid"
    assert series.status == "pending"


@pytest.mark.asyncio
async def test_mark_paid_refused_after_rejection(db, court):
    created = await seasonal_service.create(db, series_request(court.id))
    await seasonal_service.reject(db, created.series_id)

    with pytest.raises(InvalidTransition):
        await seasonal_service.mark_paid(db, created.series_id)


# Activation


@pytest.mark.asyncio
async def test_activate_without_conflicts(db, court):
    series_id = await confirmed_paid_series(db, court)

    result = await seasonal_service.activate(db, series_id)

    assert result.has_conflicts is False
    assert result.series.status == "active"
    bookings = await series_bookings(db, series_id)
    assert all(b.status == "active" for b in bookings)


@pytest.mark.asyncio
async def test_unpaid_series_cannot_be_activated(db, court):
    created = await seasonal_service.create(db, series_request(court.id))
    await seasonal_service.confirm(db, created.series_id)

    with pytest.raises(PaymentRequired):
        await seasonal_service.activate(db, created.series_id)

    bookings = await series_bookings(db, created.series_id)
    assert all(b.status == "confirmed" for b in bookings)


@pytest.mark.asyncio
async def test_payment_is_checked_before_conflicts(db, court):
    db.add(
        Booking(
            court_id=court.id,
            starts_at=datetime(2024, 1, 8, 18),
            ends_at=datetime(2024, 1, 8, 19),
            status="confirmed",
        )
    )
    await db.commit()
    created = await seasonal_service.create(db, series_request(court.id))
    await seasonal_service.confirm(db, created.series_id)

    with pytest.raises(PaymentRequired):
        await seasonal_service.activate(db, created.series_id)


@pytest.mark.asyncio
async def test_pending_series_cannot_be_activated(db, court):
    created = await seasonal_service.create(db, series_request(court.id))
    await seasonal_service.mark_paid(db, created.series_id)

    with pytest.raises(InvalidTransition):
        await seasonal_service.activate(db, created.series_id)


@pytest.mark.asyncio
async def test_new_series_always_starts_unpaid(db, court):
    request = SeasonalSeriesCreate(
        **series_request(court.id).model_dump(), payment_status="paid"
    )
    created = await seasonal_service.create(db, request)
    await seasonal_service.confirm(db, created.series_id)

    bookings = await series_bookings(db, created.series_id)
    assert all(b.payment_status == "pending" for b in bookings)
    with pytest.raises(PaymentRequired):
        await seasonal_service.activate(db, created.series_id)


@pytest.mark.asyncio
async def test_conflicts_block_activation_and_change_nothing(db, court):
    existing = Booking(
        court_id=court.id,
        starts_at=datetime(2024, 1, 15, 18, 30),
        ends_at=datetime(2024, 1, 15, 19, 30),
        status="confirmed",
    )
    db.add(existing)
    await db.commit()
    existing_id = existing.id
    series_id = await confirmed_paid_series(db, court)

    result = await seasonal_service.activate(db, series_id)

    assert result.has_conflicts is True
    assert result.series is None
    assert len(result.conflicts) == 1
    assert result.conflicts[0].date == date(2024, 1, 15)
    assert result.conflicts[0].existing_booking_id == existing_id
    bookings = await series_bookings(db, series_id)
    assert all(b.status == "confirmed" for b in bookings)


@pytest.mark.asyncio
async def test_skip_conflict_check_activates_anyway(db, court):
    db.add(
        Booking(
            court_id=court.id,
            starts_at=datetime(2024, 1, 15, 18),
            ends_at=datetime(2024, 1, 15, 19),
            status="active",
        )
    )
    await db.commit()
    series_id = await confirmed_paid_series(db, court)

    result = await seasonal_service.activate(db, series_id, skip_conflict_check=True)

    assert result.has_conflicts is False
    assert len(result.conflicts) == 1
    assert result.series.status == "active"


@pytest.mark.asyncio
async def test_activating_twice_is_invalid(db, court):
    series_id = await confirmed_paid_series(db, court)
    await seasonal_service.activate(db, series_id)

    with pytest.raises(InvalidTransition):
        await seasonal_service.activate(db, series_id)


@pytest.mark.asyncio
async def test_confirmed_series_do_not_block_each_other_until_activated(db, court):
    first = await confirmed_paid_series(db, court)
    second = await confirmed_paid_series(db, court)

    assert (await seasonal_service.activate(db, first)).has_conflicts is False

    result = await seasonal_service.activate(db, second)
    assert result.has_conflicts is True
    assert len(result.conflicts) == 5


@pytest.mark.asyncio
async def test_concurrent_activation_lets_exactly_one_win(session_factory, db, court):
    first = await confirmed_paid_series(db, court)
    second = await confirmed_paid_series(db, court)

    async def activate(series_id):
        async with session_factory() as session:
            return await SeasonalSeriesService().activate(session, series_id)

    results = await asyncio.gather(activate(first), activate(second))

    assert sorted(r.has_conflicts for r in results) == [False, True]
    result = await db.execute(
        select(Booking).where(Booking.status == "active").execution_options(populate_existing=True)
    )
    active = result.scalars().all()
    assert len(active) == 5
    assert len({b.seasonal_series_id for b in active}) == 1


# Auto-complete


@pytest.mark.asyncio
async def test_auto_complete_finishes_expired_series_once(db, court):
    series_id = await confirmed_paid_series(db, court)
    await seasonal_service.activate(db, series_id)

    first = await seasonal_service.auto_complete(db, now=datetime(2024, 2, 1, 9))
    second = await seasonal_service.auto_complete(db, now=datetime(2024, 2, 1, 9))

    assert first.series_completed == 1
    assert first.bookings_updated == 5
    assert second.series_completed == 0
    assert second.bookings_updated == 0
    bookings = await series_bookings(db, series_id)
    assert all(b.status == "completed" for b in bookings)


@pytest.mark.asyncio
async def test_auto_complete_keeps_series_running_through_end_date(db, court):
    series_id = await confirmed_paid_series(db, court)
    await seasonal_service.activate(db, series_id)

    result = await seasonal_service.auto_complete(db, now=datetime(2024, 1, 31, 23))

    assert result.series_completed == 0
    bookings = await series_bookings(db, series_id)
    assert all(b.status == "active" for b in bookings)


@pytest.mark.asyncio
async def test_auto_complete_ignores_series_that_are_not_active(db, court):
    confirmed = await confirmed_paid_series(db, court)
    pending = (await seasonal_service.create(db, series_request(court.id))).series_id

    result = await seasonal_service.auto_complete(db, now=datetime(2024, 3, 1))

    assert result.series_completed == 0
    assert all(b.status == "confirmed" for b in await series_bookings(db, confirmed))
    assert all(b.status == "pending" for b in await series_bookings(db, pending))


@pytest.mark.asyncio
async def test_completed_series_frees_the_court(db, court):
    series_id = await confirmed_paid_series(db, court)
    await seasonal_service.activate(db, series_id)
    await seasonal_service.auto_complete(db, now=datetime(2024, 2, 1))

    other = await confirmed_paid_series(db, court)
    result = await seasonal_service.activate(db, other)

    assert result.has_conflicts is False


@pytest.mark.asyncio
async def test_other_courts_do_not_conflict(db, court, facility):
    other_court = Court(facility_id=facility.id, name="Court 2", slot_duration_minutes=60)
    db.add(other_court)
    await db.commit()
    await db.refresh(other_court, ["facility"])

    first = await confirmed_paid_series(db, court)
    second = await confirmed_paid_series(db, other_court)

    assert (await seasonal_service.activate(db, first)).has_conflicts is False
    assert (await seasonal_service.activate(db, second)).has_conflicts is False
