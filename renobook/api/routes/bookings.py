import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from renobook.api.deps import get_session
from renobook.api.schemas.booking import BookSlotRequest
from renobook.core.config import settings
from renobook.models.booking import Booking, BookingCreate, BookingPublic
from renobook.services.booking_service import book_slot
from renobook.services.email_service import (
    send_admin_booking_notification_email,
    send_booking_confirmation_email,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bookings", tags=["bookings"])


def _to_public(b: Booking) -> BookingPublic:
    return BookingPublic(
        id=int(b.id),
        reference=b.reference,
        date=b.slot_date.isoformat(),
        time=b.slot_time,
        status=b.status,
        created_at=b.created_at,
    )


@router.post("", response_model=BookingPublic, status_code=status.HTTP_201_CREATED)
async def create_booking(
    body: BookSlotRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
) -> BookingPublic:
    data = BookingCreate(
        slot_date=body.date,
        slot_time=body.time,
        full_name=body.name,
        email=str(body.email),
        phone=body.phone,
        municipality=body.municipality,
        project_type=body.project_type,
        property_type=body.property_type,
        property_age=body.property_age,
        priorities=body.priorities,
        material_preference=body.material_preference,
        budget=body.budget,
        timing=body.timing,
        subsidy_interest=body.subsidy_interest,
        payment_spread=body.payment_spread,
        motivation=body.motivation,
        message=body.message,
    )
    booking = await book_slot(session, data)
    # Emails go out after the booking is committed; failures there never undo it
    background_tasks.add_task(send_booking_confirmation_email, booking)
    if settings.notify_admin_on_booking and settings.admin_recipient:
        background_tasks.add_task(
            send_admin_booking_notification_email,
            admin_email=settings.admin_recipient,
            booking=booking,
        )
    return _to_public(booking)
