from datetime import date
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from renobook.models.booking import BookingAdminPublic


class BookSlotRequest(BaseModel):
    date: date
    time: str = Field(..., min_length=5, max_length=5)  # HH:MM
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    municipality: str = Field(..., min_length=1)
    message: str | None = None
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


class BookingListResponse(BaseModel):
    bookings: list[BookingAdminPublic]
    page: int
    limit: int
    total: int
    total_pages: int


class BookingStatusUpdate(BaseModel):
    action: Literal["confirm", "reject", "complete", "cancel"]
    admin_notes: str | None = None
    rejection_reason: str | None = None
