from renobook.models.schedule import (
    DateOverride,
    DateOverridePublic,
    WeeklyTemplateEntry,
    WeeklyTemplateEntryIn,
    WeeklyTemplateEntryPublic,
)
from renobook.models.booking import (
    Booking,
    BookingAdminPublic,
    BookingCreate,
    BookingPublic,
    BookingStatus,
)

__all__ = [
    "WeeklyTemplateEntry",
    "WeeklyTemplateEntryIn",
    "WeeklyTemplateEntryPublic",
    "DateOverride",
    "DateOverridePublic",
    "Booking",
    "BookingAdminPublic",
    "BookingCreate",
    "BookingPublic",
    "BookingStatus",
]
