from __future__ import annotations

import asyncio
from datetime import date, datetime

import pytest
from sqlalchemy import DateTime

from renobook.models.booking import Booking, BookingStatus
from renobook.models.schedule import DateOverride
from renobook.services.availability import get_day_availability
from renobook.services.booking_service import (
    book_slot,
    get_booking,
    list_bookings,
    update_booking_status,
)
from renobook.services.exceptions import BookingNotFound, SlotUnavailable, ValidationError
from renobook.services.schedule_service import add_override

from factories import booking_request

NEXT_MONDAY = date(2026, 10, 26)


async def test_scenario_d_second_booking_is_rejected(session, monday_template, now: datetime) -> None:
    booking = await book_slot(session, booking_request(NEXT_MONDAY, "10:00"), now=now)

    assert booking.id is not None
    assert booking.reference == f"AFS-{booking.created_at.year}-{booking.id:04d}"
    assert booking.status == BookingStatus.PENDING.value

    with pytest.raises(SlotUnavailable) as excinfo:
        await book_slot(session, booking_request(NEXT_MONDAY, "10:00"), now=now)
    assert excinfo.value.reason == "booked"


async def test_booked_slot_disappears_from_availability(session, monday_template, now: datetime) -> None:
    await book_slot(session, booking_request(NEXT_MONDAY, "09:00"), now=now)

    day = await get_day_availability(session, NEXT_MONDAY, now=now)

    assert day.offered_times == ("10:00",)


async def test_concurrent_bookings_have_one_winner(session_maker, monday_template, now: datetime) -> None:
    async def attempt(i: int) -> str:
        async with session_maker() as s:
            try:
                await book_slot(s, booking_request(NEXT_MONDAY, "10:00", full_name=f"Bezoeker {i}"), now=now)
            except SlotUnavailable:
                return "unavailable"
            return "booked"

    results = await asyncio.gather(*(attempt(i) for i in range(8)))

    assert results.count("booked") == 1
    assert results.count("unavailable") == 7


async def test_storage_constraint_catches_a_stale_precheck(
    session, session_maker, monday_template, now: datetime, monkeypatch
) -> None:
    """A request that passed the availability check before another insert still loses."""
    from renobook.services import booking_service

    stale = await get_day_availability(session, NEXT_MONDAY, now=now)
    async with session_maker() as other:
        await book_slot(other, booking_request(NEXT_MONDAY, "10:00"), now=now)

    async def _stale_availability(*args, **kwargs):
        return stale

    monkeypatch.setattr(booking_service, "get_day_availability", _stale_availability)

    with pytest.raises(SlotUnavailable):
        await book_slot(session, booking_request(NEXT_MONDAY, "10:00"), now=now)


async def test_blocked_time_cannot_be_booked(session, monday_template, now: datetime) -> None:
    await add_override(session, NEXT_MONDAY, is_open=True, blocked_times=["09:00"], now=now)

    with pytest.raises(SlotUnavailable):
        await book_slot(session, booking_request(NEXT_MONDAY, "09:00"), now=now)


async def test_closed_day_cannot_be_booked(session, monday_template, now: datetime) -> None:
    tuesday = date(2026, 10, 27)

    with pytest.raises(SlotUnavailable) as excinfo:
        await book_slot(session, booking_request(tuesday, "09:00"), now=now)
    assert excinfo.value.reason == "inactive_weekday"


async def test_past_date_is_validation_error(session, monday_template, now: datetime) -> None:
    with pytest.raises(ValidationError):
        await book_slot(session, booking_request(date(2026, 10, 19), "09:00"), now=now)


async def test_date_beyond_horizon_is_validation_error(session, monday_template, now: datetime) -> None:
    with pytest.raises(ValidationError):
        await book_slot(session, booking_request(date(2027, 2, 1), "09:00"), now=now)


@pytest.mark.parametrize("slot_time", ["9:00", "09:30", "nine"])
async def test_non_canonical_time_is_validation_error(session, monday_template, now: datetime, slot_time: str) -> None:
    with pytest.raises(ValidationError):
        await book_slot(session, booking_request(NEXT_MONDAY, slot_time), now=now)


async def test_blank_contact_is_validation_error(session, monday_template, now: datetime) -> None:
    with pytest.raises(ValidationError) as excinfo:
        await book_slot(session, booking_request(NEXT_MONDAY, "09:00", municipality="  "), now=now)
    assert excinfo.value.details["missing_fields"] == ["municipality"]


async def test_cancelled_booking_releases_slot(session, monday_template, now: datetime) -> None:
    first = await book_slot(session, booking_request(NEXT_MONDAY, "09:00"), now=now)

    await update_booking_status(session, first.id, "cancel", now=now)
    second = await book_slot(session, booking_request(NEXT_MONDAY, "09:00", email="piet@example.be"), now=now)

    assert second.id != first.id


async def test_confirm_then_complete(session, monday_template, now: datetime) -> None:
    booking = await book_slot(session, booking_request(NEXT_MONDAY, "09:00"), now=now)

    confirmed = await update_booking_status(session, booking.id, "confirm", admin_notes="Bel vooraf", now=now)
    assert confirmed.status == BookingStatus.CONFIRMED.value
    assert confirmed.confirmed_at == now

    completed = await update_booking_status(session, booking.id, "complete", now=now)
    assert completed.status == BookingStatus.COMPLETED.value


async def test_reject_requires_reason(session, monday_template, now: datetime) -> None:
    booking = await book_slot(session, booking_request(NEXT_MONDAY, "09:00"), now=now)

    with pytest.raises(ValidationError):
        await update_booking_status(session, booking.id, "reject", now=now)

    rejected = await update_booking_status(session, booking.id, "reject", rejection_reason="Buiten regio", now=now)
    assert rejected.rejection_reason == "Buiten regio"


async def test_cannot_act_on_cancelled_booking(session, monday_template, now: datetime) -> None:
    booking = await book_slot(session, booking_request(NEXT_MONDAY, "09:00"), now=now)
    await update_booking_status(session, booking.id, "cancel", now=now)

    with pytest.raises(ValidationError):
        await update_booking_status(session, booking.id, "confirm", now=now)


async def test_unknown_booking(session) -> None:
    with pytest.raises(BookingNotFound):
        await get_booking(session, 999)


async def test_list_bookings_filters_by_status(session, monday_template, now: datetime) -> None:
    a = await book_slot(session, booking_request(NEXT_MONDAY, "09:00"), now=now)
    await book_slot(session, booking_request(NEXT_MONDAY, "10:00"), now=now)
    await update_booking_status(session, a.id, "confirm", now=now)

    confirmed, total = await list_bookings(session, status="confirmed")
    everything, total_all = await list_bookings(session)

    assert [b.id for b in confirmed] == [a.id]
    assert total == 1
    assert total_all == 2
    assert len(everything) == 2


@pytest.mark.parametrize(
    "column",
    [Booking.__table__.c.created_at, Booking.__table__.c.confirmed_at, DateOverride.__table__.c.created_at],
)
def test_timestamp_columns_store_naive_datetimes(column) -> None:
    assert isinstance(column.type, DateTime)
    assert column.type.timezone is False


async def test_timestamps_persist_as_naive_values(session, session_maker, monday_template, now: datetime) -> None:
    booking = await book_slot(session, booking_request(NEXT_MONDAY, "09:00"), now=now)
    await update_booking_status(session, booking.id, "confirm", now=now)
    override = await add_override(session, date(2026, 10, 27), is_open=False, reason="Opleiding", now=now)

    async with session_maker() as fresh:
        stored = await fresh.get(Booking, booking.id)
        stored_override = await fresh.get(DateOverride, override.id)

    assert stored.confirmed_at == now
    assert stored.created_at.tzinfo is None
    assert stored_override.created_at.tzinfo is None
