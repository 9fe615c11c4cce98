from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class DayAvailabilityInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    available: list[str]
    booked: list[str]
    is_open: bool = Field(alias="isOpen")
    status: str  # open | full | closed
    closed_reason: str | None = None


class MonthAvailabilityResponse(BaseModel):
    month: str  # YYYY-MM
    availability: dict[str, DayAvailabilityInfo]  # keyed by YYYY-MM-DD


class DayAvailabilityResponse(DayAvailabilityInfo):
    date: str
    note: str | None = None


class AvailabilityBoundsResponse(BaseModel):
    today: date
    min_month: str
    max_month: str
    horizon_months: int
    time_slots: list[str]
