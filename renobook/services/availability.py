"""
Availability resolver.

resolve_day / resolve_range are pure: they take the weekly template, the date
overrides and the slot-holding bookings as plain inputs and never touch the
database. The async get_*_availability helpers load those inputs from a session
and feed them through the pure functions.

Precedence for a single date:
  past date            -> closed
  override closed      -> closed
  weekday missing      -> ConfigurationError (resolve_range: closed, "configuration_error")
  weekday inactive     -> closed
  template slots - override.blocked_times - booked times (- elapsed times today)
  nothing left         -> full (still is_open, distinct from closed)
"""
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from renobook.models.booking import RELEASED_STATUSES, Booking
from renobook.models.schedule import DateOverride, WeeklyTemplateEntry
from renobook.services.exceptions import ConfigurationError
from renobook.services.timeslots import (
    day_of_week,
    ensure_month_browsable,
    local_now,
    month_days,
    parse_time,
    sort_times,
)

logger = logging.getLogger(__name__)


class DayStatus(str, Enum):
    OPEN = "open"
    FULL = "full"
    CLOSED = "closed"


@dataclass(frozen=True)
class TemplateDay:
    """Immutable snapshot of one weekly template row."""

    day_of_week: int
    is_active: bool
    time_slots: tuple[str, ...]


@dataclass(frozen=True)
class OverrideDay:
    """Immutable snapshot of one date override."""

    day: date
    is_open: bool
    blocked_times: frozenset[str] = frozenset()
    reason: str | None = None


@dataclass(frozen=True)
class DayAvailability:
    day: date
    status: DayStatus
    offered_times: tuple[str, ...] = ()
    booked_times: tuple[str, ...] = ()
    closed_reason: str | None = None
    note: str | None = field(default=None, compare=False)

    @property
    def is_open(self) -> bool:
        return self.status != DayStatus.CLOSED

    @property
    def is_full(self) -> bool:
        return self.status == DayStatus.FULL

    def offers(self, slot_time: str) -> bool:
        return slot_time in self.offered_times


def _closed(day: date, reason: str, booked: Iterable[str] = (), note: str | None = None) -> DayAvailability:
    return DayAvailability(
        day=day,
        status=DayStatus.CLOSED,
        booked_times=tuple(sort_times(booked)),
        closed_reason=reason,
        note=note,
    )


def resolve_day(
    day: date,
    template: Mapping[int, TemplateDay],
    override: OverrideDay | None,
    booked_times: Iterable[str],
    now: datetime,
) -> DayAvailability:
    """Compute what is offered on `day`. `now` is naive local time."""
    booked = set(booked_times)
    today = now.date()
    if day < today:
        return _closed(day, "past", booked)

    if override is not None and not override.is_open:
        return _closed(day, "override", booked, note=override.reason)

    weekday = day_of_week(day)
    entry = template.get(weekday)
    if entry is None:
        logger.critical("Weekly template has no entry for weekday %d (date %s)", weekday, day)
        raise ConfigurationError(
            f"Weekly schedule is missing weekday {weekday}",
            {"day_of_week": weekday},
        )
    if not entry.is_active:
        return _closed(day, "inactive_weekday", booked)

    candidates = set(entry.time_slots)
    note = None
    if override is not None:
        candidates -= override.blocked_times
        note = override.reason
    candidates -= booked
    if day == today:
        current = now.time()
        candidates = {t for t in candidates if parse_time(t) > current}

    offered = tuple(sort_times(candidates))
    return DayAvailability(
        day=day,
        status=DayStatus.OPEN if offered else DayStatus.FULL,
        offered_times=offered,
        booked_times=tuple(sort_times(booked)),
        note=note,
    )


def resolve_range(
    days: Iterable[date],
    template: Mapping[int, TemplateDay],
    overrides: Mapping[date, OverrideDay],
    bookings: Mapping[date, Iterable[str]],
    now: datetime,
) -> dict[date, DayAvailability]:
    """Resolve many days at once.

    A weekday missing from the template closes only that weekday's dates
    (closed_reason "configuration_error"); the rest of the range still resolves.
    """
    resolved: dict[date, DayAvailability] = {}
    for d in days:
        booked = bookings.get(d, ())
        try:
            resolved[d] = resolve_day(d, template, overrides.get(d), booked, now)
        except ConfigurationError:
            resolved[d] = _closed(d, "configuration_error", booked)
    return resolved


# --- loading from the store ---


def template_snapshot(rows: Iterable[WeeklyTemplateEntry]) -> dict[int, TemplateDay]:
    return {
        r.day_of_week: TemplateDay(
            day_of_week=r.day_of_week,
            is_active=r.is_active,
            time_slots=tuple(r.time_slots or ()),
        )
        for r in rows
    }


def override_snapshot(row: DateOverride) -> OverrideDay:
    return OverrideDay(
        day=row.day,
        is_open=row.is_open,
        blocked_times=frozenset(row.blocked_times or ()),
        reason=row.reason,
    )


async def load_template(session: AsyncSession) -> dict[int, TemplateDay]:
    result = await session.execute(select(WeeklyTemplateEntry))
    return template_snapshot(result.scalars().all())


async def load_overrides(session: AsyncSession, start: date, end: date) -> dict[date, OverrideDay]:
    result = await session.execute(
        select(DateOverride).where(DateOverride.day >= start, DateOverride.day <= end)
    )
    return {row.day: override_snapshot(row) for row in result.scalars().all()}


async def load_booked_times(session: AsyncSession, start: date, end: date) -> dict[date, list[str]]:
    """Times held by bookings between start and end (inclusive), per date."""
    result = await session.execute(
        select(Booking.slot_date, Booking.slot_time).where(
            Booking.slot_date >= start,
            Booking.slot_date <= end,
            Booking.status.not_in(RELEASED_STATUSES),
        )
    )
    booked: dict[date, list[str]] = {}
    for slot_date, slot_time in result.all():
        booked.setdefault(slot_date, []).append(slot_time)
    return booked


async def get_day_availability(
    session: AsyncSession, day: date, now: datetime | None = None
) -> DayAvailability:
    now = now or local_now()
    template = await load_template(session)
    overrides = await load_overrides(session, day, day)
    booked = await load_booked_times(session, day, day)
    return resolve_day(day, template, overrides.get(day), booked.get(day, ()), now)


async def get_month_availability(
    session: AsyncSession, year: int, month: int, now: datetime | None = None
) -> dict[date, DayAvailability]:
    """Resolve every day of a month. Months outside the browsable window raise ValidationError."""
    now = now or local_now()
    ensure_month_browsable(year, month, now.date())
    days = month_days(year, month)
    template = await load_template(session)
    overrides = await load_overrides(session, days[0], days[-1])
    booked = await load_booked_times(session, days[0], days[-1])
    return resolve_range(days, template, overrides, booked, now)
