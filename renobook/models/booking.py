from datetime import UTC, date, datetime
from enum import Enum

from sqlalchemy import JSON, Column, DateTime, Index, text
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# Bookings in these states give their slot back
RELEASED_STATUSES = (BookingStatus.REJECTED.value, BookingStatus.CANCELLED.value)

_HOLDS_SLOT = text("status NOT IN ('rejected', 'cancelled')")


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    __table_args__ = (
        # One slot-holding booking per (date, time); this index is what stops double-booking
        Index(
            "uq_bookings_slot_active",
            "slot_date",
            "slot_time",
            unique=True,
            postgresql_where=_HOLDS_SLOT,
            sqlite_where=_HOLDS_SLOT,
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    reference: str | None = Field(default=None, unique=True, index=True)
    slot_date: date = Field(index=True)
    slot_time: str
    status: str = Field(default=BookingStatus.PENDING.value, index=True)

    full_name: str
    email: str
    phone: str
    municipality: str

    project_type: str | None = None
    property_type: str | None = None
    property_age: str | None = None
    priorities: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    material_preference: str | None = None
    budget: str | None = None
    timing: str | None = None
    subsidy_interest: bool = False
    payment_spread: bool = False
    motivation: str | None = None
    message: str | None = None

    admin_notes: str | None = None
    rejection_reason: str | None = None
    # Naive wall-clock values, matching sa.DateTime() in the migration
    confirmed_at: datetime | None = Field(default=None, sa_column=Column(DateTime, nullable=True))
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_column=Column(DateTime, nullable=False))

    @property
    def holds_slot(self) -> bool:
        return self.status not in RELEASED_STATUSES


class BookingCreate(SQLModel):
    slot_date: date
    slot_time: str
    full_name: str
    email: str
    phone: str
    municipality: str
    project_type: str | None = None
    property_type: str | None = None
    property_age: str | None = None
    priorities: list[str] = []
    material_preference: str | None = None
    budget: str | None = None
    timing: str | None = None
    subsidy_interest: bool = False
    payment_spread: bool = False
    motivation: str | None = None
    message: str | None = None


class BookingPublic(SQLModel):
    id: int
    reference: str | None = None
    date: str
    time: str
    status: str
    created_at: datetime


class BookingAdminPublic(SQLModel):
    id: int
    reference: str | None = None
    slot_date: date
    slot_time: str
    status: str
    full_name: str
    email: str
    phone: str
    municipality: str
    project_type: str | None = None
    property_type: str | None = None
    property_age: str | None = None
    priorities: list[str] = []
    material_preference: str | None = None
    budget: str | None = None
    timing: str | None = None
    subsidy_interest: bool = False
    payment_spread: bool = False
    motivation: str | None = None
    message: str | None = None
    admin_notes: str | None = None
    rejection_reason: str | None = None
    confirmed_at: datetime | None = None
    created_at: datetime
