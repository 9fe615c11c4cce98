"""
Exceptions raised by the availability and booking services.
Caught in main.py and turned into HTTP responses.
"""
from datetime import date


class BookingEngineError(Exception):
    """Base exception for all scheduling errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(BookingEngineError):
    """Malformed input: bad date/time, past date, month outside the horizon, bad template."""


class SlotUnavailable(BookingEngineError):
    """The requested (date, time) is closed, blocked or already booked."""

    def __init__(self, slot_date: date, slot_time: str, reason: str | None = None) -> None:
        super().__init__(
            f"Slot {slot_date.isoformat()} {slot_time} is not available",
            {"date": slot_date.isoformat(), "time": slot_time, "reason": reason},
        )
        self.slot_date = slot_date
        self.slot_time = slot_time
        self.reason = reason


class BookingNotFound(BookingEngineError):
    pass


class ConfigurationError(BookingEngineError):
    """Stored schedule data breaks an invariant (e.g. a weekday has no template entry)."""
