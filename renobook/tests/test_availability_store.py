from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy import delete

from renobook.models.booking import Booking, BookingStatus
from renobook.models.schedule import WeeklyTemplateEntry
from renobook.services.availability import DayStatus, get_day_availability, get_month_availability
from renobook.services.booking_service import book_slot
from renobook.services.exceptions import ConfigurationError, ValidationError
from renobook.services.schedule_service import add_override

from factories import booking_request

NEXT_MONDAY = date(2026, 10, 26)


def _booking(slot_date: date, slot_time: str, status: str = BookingStatus.PENDING.value) -> Booking:
    return Booking(
        slot_date=slot_date,
        slot_time=slot_time,
        status=status,
        full_name="An Janssens",
        email="an@example.be",
        phone="+32470000000",
        municipality="Leuven",
    )


async def test_scenario_a_template_only(session, monday_template, now: datetime) -> None:
    day = await get_day_availability(session, NEXT_MONDAY, now=now)

    assert day.is_open
    assert day.offered_times == ("09:00", "10:00")


async def test_scenario_b_blocked_override(session, monday_template, now: datetime) -> None:
    await add_override(session, NEXT_MONDAY, is_open=True, blocked_times=["09:00"], now=now)

    day = await get_day_availability(session, NEXT_MONDAY, now=now)

    assert day.is_open
    assert day.offered_times == ("10:00",)


async def test_scenario_c_existing_booking(session, monday_template, now: datetime) -> None:
    session.add(_booking(NEXT_MONDAY, "10:00"))
    await session.commit()

    day = await get_day_availability(session, NEXT_MONDAY, now=now)

    assert day.is_open
    assert day.offered_times == ("09:00",)


async def test_cancelled_booking_frees_the_slot(session, monday_template, now: datetime) -> None:
    session.add(_booking(NEXT_MONDAY, "10:00", status=BookingStatus.CANCELLED.value))
    await session.commit()

    day = await get_day_availability(session, NEXT_MONDAY, now=now)

    assert day.offered_times == ("09:00", "10:00")


async def test_closed_override_from_store(session, monday_template, now: datetime) -> None:
    await add_override(session, NEXT_MONDAY, is_open=False, reason="Opleiding", now=now)

    day = await get_day_availability(session, NEXT_MONDAY, now=now)

    assert day.status == DayStatus.CLOSED
    assert day.note == "Opleiding"


async def test_month_covers_every_day(session, monday_template, now: datetime) -> None:
    days = await get_month_availability(session, 2026, 11, now=now)

    assert len(days) == 30
    mondays = [d for d in days if d.weekday() == 0]
    assert all(days[d].offered_times == ("09:00", "10:00") for d in mondays)
    assert all(days[d].status == DayStatus.CLOSED for d in days if d.weekday() != 0)


async def test_current_month_closes_past_days(session, monday_template, now: datetime) -> None:
    days = await get_month_availability(session, 2026, 10, now=now)

    assert days[date(2026, 10, 19)].closed_reason == "past"
    assert days[NEXT_MONDAY].is_open


async def test_month_at_horizon_is_allowed(session, monday_template, now: datetime) -> None:
    days = await get_month_availability(session, 2027, 1, now=now)

    assert date(2027, 1, 4) in days


async def test_scenario_e_month_beyond_horizon(session, monday_template, now: datetime) -> None:
    with pytest.raises(ValidationError) as excinfo:
        await get_month_availability(session, 2027, 3, now=now)

    assert excinfo.value.details["max_month"] == "2027-01"


async def test_month_before_current_is_rejected(session, monday_template, now: datetime) -> None:
    with pytest.raises(ValidationError):
        await get_month_availability(session, 2026, 9, now=now)


async def test_invalid_month_number(session, monday_template, now: datetime) -> None:
    with pytest.raises(ValidationError):
        await get_month_availability(session, 2026, 13, now=now)


async def test_missing_weekday_leaves_rest_of_month_bookable(session, monday_template, now: datetime) -> None:
    await session.execute(delete(WeeklyTemplateEntry).where(WeeklyTemplateEntry.day_of_week == 6))
    await session.commit()

    days = await get_month_availability(session, 2026, 11, now=now)

    saturdays = [d for d in days if d.weekday() == 5]
    assert all(days[d].closed_reason == "configuration_error" for d in saturdays)
    assert days[date(2026, 11, 2)].offered_times == ("09:00", "10:00")
    assert days[date(2026, 11, 3)].closed_reason == "inactive_weekday"

    with pytest.raises(ConfigurationError):
        await get_day_availability(session, date(2026, 11, 7), now=now)
    with pytest.raises(ConfigurationError):
        await book_slot(session, booking_request(date(2026, 11, 7), "09:00"), now=now)
    booking = await book_slot(session, booking_request(date(2026, 11, 2), "09:00"), now=now)
    assert booking.id is not None
