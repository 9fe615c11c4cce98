import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from renobook.core.config import settings
from renobook.services.exceptions import ValidationError

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def local_now() -> datetime:
    """Naive wall-clock time in the business timezone."""
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def day_of_week(d: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (d.weekday() + 1) % 7


def canonical_time_slots() -> list[str]:
    return settings.time_slots_list


def parse_time(value: str) -> time:
    m = _TIME_RE.match(value or "")
    if not m:
        raise ValidationError(f"Invalid time {value!r}, expected HH:MM", {"time": value})
    return time(int(m.group(1)), int(m.group(2)))


def validate_time(value: str) -> str:
    """Return value if it is one of the canonical slot times."""
    parse_time(value)
    if value not in canonical_time_slots():
        raise ValidationError(
            f"Time {value} is not an offered slot time",
            {"time": value, "allowed": canonical_time_slots()},
        )
    return value


def sort_times(times) -> list[str]:
    return sorted(set(times), key=parse_time)


def parse_month(value: str) -> tuple[int, int]:
    """Parse 'YYYY-MM' into (year, month)."""
    m = _MONTH_RE.match(value or "")
    if not m:
        raise ValidationError(f"Invalid month {value!r}, expected YYYY-MM", {"month": value})
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month {value!r}", {"month": value})
    return year, month


def month_days(year: int, month: int) -> list[date]:
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month number {month}", {"month": month})
    last = calendar.monthrange(year, month)[1]
    return [date(year, month, day) for day in range(1, last + 1)]


def _month_index(year: int, month: int) -> int:
    return year * 12 + (month - 1)


def _from_month_index(index: int) -> tuple[int, int]:
    return index // 12, index % 12 + 1


@dataclass(frozen=True)
class MonthBounds:
    """First and last month a visitor may browse."""

    first: tuple[int, int]
    last: tuple[int, int]

    def contains(self, year: int, month: int) -> bool:
        idx = _month_index(year, month)
        return _month_index(*self.first) <= idx <= _month_index(*self.last)

    def contains_date(self, d: date) -> bool:
        return self.contains(d.year, d.month)

    @property
    def last_day(self) -> date:
        year, month = self.last
        return date(year, month, calendar.monthrange(year, month)[1])

    @staticmethod
    def format(ym: tuple[int, int]) -> str:
        return f"{ym[0]:04d}-{ym[1]:02d}"


def browsable_months(today: date, horizon: int | None = None) -> MonthBounds:
    if horizon is None:
        horizon = settings.booking_horizon_months
    start = _month_index(today.year, today.month)
    return MonthBounds(first=(today.year, today.month), last=_from_month_index(start + horizon))


def ensure_month_browsable(year: int, month: int, today: date) -> MonthBounds:
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month number {month}", {"month": month})
    bounds = browsable_months(today)
    if not bounds.contains(year, month):
        raise ValidationError(
            f"Month {year:04d}-{month:02d} is outside the bookable window",
            {
                "month": f"{year:04d}-{month:02d}",
                "min_month": MonthBounds.format(bounds.first),
                "max_month": MonthBounds.format(bounds.last),
            },
        )
    return bounds
