from datetime import UTC, date, datetime

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class WeeklyTemplateEntry(SQLModel, table=True):
    """Opening hours for one weekday; 0 = Sunday ... 6 = Saturday."""

    __tablename__ = "weekly_schedule"
    id: int | None = Field(default=None, primary_key=True)
    day_of_week: int = Field(unique=True, index=True, ge=0, le=6)
    is_active: bool = True
    time_slots: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))


class DateOverride(SQLModel, table=True):
    """Closes a single date, or blocks some of its times when is_open is true."""

    __tablename__ = "date_overrides"
    id: int | None = Field(default=None, primary_key=True)
    day: date = Field(unique=True, index=True)
    is_open: bool = False
    blocked_times: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    reason: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_column=Column(DateTime, nullable=False))


class WeeklyTemplateEntryIn(SQLModel):
    day_of_week: int
    is_active: bool = True
    time_slots: list[str] = []


class WeeklyTemplateEntryPublic(SQLModel):
    day_of_week: int
    is_active: bool
    time_slots: list[str]


class DateOverridePublic(SQLModel):
    id: int
    day: date
    is_open: bool
    blocked_times: list[str]
    reason: str | None = None
