from datetime import date

from pydantic import BaseModel

from renobook.models.schedule import WeeklyTemplateEntryIn


class ReplaceScheduleRequest(BaseModel):
    entries: list[WeeklyTemplateEntryIn]


class AddOverrideRequest(BaseModel):
    date: date
    is_open: bool = False
    blocked_times: list[str] = []
    reason: str | None = None


class RemoveOverrideResponse(BaseModel):
    date: date
    removed: bool
