import logging
from collections import Counter
from collections.abc import Sequence
from datetime import date, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from renobook.models.schedule import DateOverride, WeeklyTemplateEntry, WeeklyTemplateEntryIn
from renobook.services.exceptions import ConfigurationError, ValidationError
from renobook.services.timeslots import canonical_time_slots, local_now, sort_times

logger = logging.getLogger(__name__)

ALL_WEEKDAYS = tuple(range(7))

_WEEKDAY_SLOTS = ["09:00", "10:00", "11:00", "14:00", "15:00", "16:00", "17:00"]

# 0 = Sunday. Weekend closed, Friday ends an hour earlier.
DEFAULT_TEMPLATE: tuple[WeeklyTemplateEntryIn, ...] = (
    WeeklyTemplateEntryIn(day_of_week=0, is_active=False, time_slots=[]),
    WeeklyTemplateEntryIn(day_of_week=1, is_active=True, time_slots=_WEEKDAY_SLOTS),
    WeeklyTemplateEntryIn(day_of_week=2, is_active=True, time_slots=_WEEKDAY_SLOTS),
    WeeklyTemplateEntryIn(day_of_week=3, is_active=True, time_slots=_WEEKDAY_SLOTS),
    WeeklyTemplateEntryIn(day_of_week=4, is_active=True, time_slots=_WEEKDAY_SLOTS),
    WeeklyTemplateEntryIn(day_of_week=5, is_active=True, time_slots=_WEEKDAY_SLOTS[:-1]),
    WeeklyTemplateEntryIn(day_of_week=6, is_active=False, time_slots=[]),
)


def _invalid_times(times: Sequence[str]) -> list[str]:
    allowed = set(canonical_time_slots())
    return sorted({t for t in times if t not in allowed})


def validate_template(entries: Sequence[WeeklyTemplateEntryIn]) -> list[WeeklyTemplateEntryIn]:
    """Check the 7-entry invariant and normalize each entry's slots to a sorted set."""
    counts = Counter(e.day_of_week for e in entries)
    missing = [d for d in ALL_WEEKDAYS if d not in counts]
    duplicate = sorted(d for d, n in counts.items() if n > 1)
    unknown = sorted(d for d in counts if d not in ALL_WEEKDAYS)
    if missing or duplicate or unknown or len(entries) != len(ALL_WEEKDAYS):
        raise ValidationError(
            "Weekly schedule needs exactly one entry for each weekday 0-6",
            {"missing_days": missing, "duplicate_days": duplicate, "unknown_days": unknown},
        )
    invalid = _invalid_times([t for e in entries for t in e.time_slots])
    if invalid:
        raise ValidationError(
            "Weekly schedule contains times outside the offered slot list",
            {"invalid_times": invalid, "allowed": canonical_time_slots()},
        )
    return [
        WeeklyTemplateEntryIn(
            day_of_week=e.day_of_week,
            is_active=e.is_active,
            time_slots=sort_times(e.time_slots),
        )
        for e in sorted(entries, key=lambda e: e.day_of_week)
    ]


async def get_template(session: AsyncSession) -> list[WeeklyTemplateEntry]:
    result = await session.execute(select(WeeklyTemplateEntry).order_by(WeeklyTemplateEntry.day_of_week))
    rows = list(result.scalars().all())
    present = {r.day_of_week for r in rows}
    missing = [d for d in ALL_WEEKDAYS if d not in present]
    if missing:
        logger.critical("Weekly schedule incomplete, missing weekdays %s", missing)
        raise ConfigurationError("Weekly schedule is incomplete", {"missing_days": missing})
    return rows


async def replace_template(
    session: AsyncSession, entries: Sequence[WeeklyTemplateEntryIn]
) -> list[WeeklyTemplateEntry]:
    """Replace all 7 weekday entries in a single transaction."""
    normalized = validate_template(entries)
    result = await session.execute(select(WeeklyTemplateEntry))
    existing = {r.day_of_week: r for r in result.scalars().all()}
    rows: list[WeeklyTemplateEntry] = []
    for entry in normalized:
        row = existing.get(entry.day_of_week)
        if row is None:
            row = WeeklyTemplateEntry(day_of_week=entry.day_of_week)
        row.is_active = entry.is_active
        row.time_slots = list(entry.time_slots)
        session.add(row)
        rows.append(row)
    await session.commit()
    logger.info(
        "Weekly schedule replaced: active days %s",
        [r.day_of_week for r in rows if r.is_active],
    )
    return rows


async def seed_default_template(session: AsyncSession) -> bool:
    """Insert the default week when the schedule table is empty. Returns True if seeded."""
    result = await session.execute(select(WeeklyTemplateEntry.day_of_week))
    present = {row[0] for row in result.all()}
    if present:
        if present != set(ALL_WEEKDAYS):
            logger.warning(
                "Weekly schedule is partially populated (%s); not seeding, fix it via the admin API",
                sorted(present),
            )
        return False
    for entry in validate_template(DEFAULT_TEMPLATE):
        session.add(
            WeeklyTemplateEntry(
                day_of_week=entry.day_of_week,
                is_active=entry.is_active,
                time_slots=list(entry.time_slots),
            )
        )
    await session.commit()
    logger.info("Seeded default weekly schedule")
    return True


async def get_override(session: AsyncSession, day: date) -> DateOverride | None:
    result = await session.execute(select(DateOverride).where(DateOverride.day == day))
    return result.scalar_one_or_none()


async def list_overrides(session: AsyncSession, from_date: date | None = None) -> list[DateOverride]:
    if from_date is None:
        from_date = local_now().date()
    result = await session.execute(
        select(DateOverride).where(DateOverride.day >= from_date).order_by(DateOverride.day)
    )
    return list(result.scalars().all())


async def add_override(
    session: AsyncSession,
    day: date,
    is_open: bool,
    blocked_times: Sequence[str] | None = None,
    reason: str | None = None,
    now: datetime | None = None,
) -> DateOverride:
    """Create the override for `day`, replacing any existing one."""
    now = now or local_now()
    if day < now.date():
        raise ValidationError("Cannot add an override for a past date", {"date": day.isoformat()})
    blocked = list(blocked_times or [])
    invalid = _invalid_times(blocked)
    if invalid:
        raise ValidationError(
            "Blocked times must be offered slot times",
            {"invalid_times": invalid, "allowed": canonical_time_slots()},
        )
    override = await get_override(session, day)
    if override is None:
        override = DateOverride(day=day)
    override.is_open = is_open
    override.blocked_times = sort_times(blocked) if is_open else []
    override.reason = (reason or "").strip() or None
    session.add(override)
    await session.commit()
    await session.refresh(override)
    logger.info(
        "Override for %s stored: is_open=%s blocked=%s",
        day,
        override.is_open,
        override.blocked_times,
    )
    return override


async def remove_override(session: AsyncSession, day: date) -> bool:
    """Delete the override for `day`. Removing a missing override is a no-op returning False."""
    result = await session.execute(delete(DateOverride).where(DateOverride.day == day))
    await session.commit()
    removed = bool(result.rowcount)
    if removed:
        logger.info("Override for %s removed", day)
    return removed
