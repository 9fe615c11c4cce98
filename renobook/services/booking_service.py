import logging
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from renobook.core.config import settings
from renobook.models.booking import Booking, BookingCreate, BookingStatus
from renobook.services.availability import get_day_availability
from renobook.services.exceptions import BookingNotFound, SlotUnavailable, ValidationError
from renobook.services.timeslots import browsable_months, local_now, validate_time

logger = logging.getLogger(__name__)

_CONTACT_FIELDS = ("full_name", "email", "phone", "municipality")

# action -> (allowed current statuses, resulting status)
_TRANSITIONS: dict[str, tuple[tuple[str, ...], BookingStatus]] = {
    "confirm": ((BookingStatus.PENDING.value,), BookingStatus.CONFIRMED),
    "reject": ((BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value), BookingStatus.REJECTED),
    "complete": ((BookingStatus.CONFIRMED.value,), BookingStatus.COMPLETED),
    "cancel": ((BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value), BookingStatus.CANCELLED),
}


def _validate_request(data: BookingCreate, now: datetime) -> None:
    validate_time(data.slot_time)
    today = now.date()
    if data.slot_date < today:
        raise ValidationError("Cannot book a date in the past", {"date": data.slot_date.isoformat()})
    bounds = browsable_months(today)
    if not bounds.contains_date(data.slot_date):
        raise ValidationError(
            "Date is beyond the bookable window",
            {"date": data.slot_date.isoformat(), "last_day": bounds.last_day.isoformat()},
        )
    empty = [f for f in _CONTACT_FIELDS if not (getattr(data, f) or "").strip()]
    if empty:
        raise ValidationError("Missing contact details", {"missing_fields": empty})


def make_reference(booking_id: int, created: datetime) -> str:
    return f"{settings.booking_reference_prefix}-{created.year}-{booking_id:04d}"


async def book_slot(
    session: AsyncSession, data: BookingCreate, now: datetime | None = None
) -> Booking:
    """Reserve (slot_date, slot_time).

    Availability is recomputed here rather than trusted from the client. The
    pre-check only gives a clean early error; the partial unique index on
    bookings(slot_date, slot_time) decides who wins when two requests race.
    """
    now = now or local_now()
    _validate_request(data, now)

    day = await get_day_availability(session, data.slot_date, now=now)
    if not day.offers(data.slot_time):
        reason = day.closed_reason or ("booked" if data.slot_time in day.booked_times else "not_offered")
        raise SlotUnavailable(data.slot_date, data.slot_time, reason=reason)

    booking = Booking(
        slot_date=data.slot_date,
        slot_time=data.slot_time,
        status=BookingStatus.PENDING.value,
        full_name=data.full_name.strip(),
        email=data.email.strip().lower(),
        phone=data.phone.strip(),
        municipality=data.municipality.strip(),
        project_type=data.project_type,
        property_type=data.property_type,
        property_age=data.property_age,
        priorities=list(data.priorities),
        material_preference=data.material_preference,
        budget=data.budget,
        timing=data.timing,
        subsidy_interest=data.subsidy_interest,
        payment_spread=data.payment_spread,
        motivation=data.motivation,
        message=data.message,
    )
    session.add(booking)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        logger.info("Lost booking race for %s %s", data.slot_date, data.slot_time)
        raise SlotUnavailable(data.slot_date, data.slot_time, reason="booked") from None
    booking.reference = make_reference(booking.id, booking.created_at)
    await session.commit()
    logger.info("Booked %s %s as %s", booking.slot_date, booking.slot_time, booking.reference)
    return booking


async def get_booking(session: AsyncSession, booking_id: int) -> Booking:
    booking = await session.get(Booking, booking_id)
    if booking is None:
        raise BookingNotFound(f"Booking {booking_id} not found", {"id": booking_id})
    return booking


async def list_bookings(
    session: AsyncSession,
    status: str | None = None,
    page: int = 1,
    limit: int = 20,
    from_date: date | None = None,
) -> tuple[list[Booking], int]:
    q = select(Booking)
    count_q = select(func.count()).select_from(Booking)
    if status and status != "all":
        q = q.where(Booking.status == status)
        count_q = count_q.where(Booking.status == status)
    if from_date:
        q = q.where(Booking.slot_date >= from_date)
        count_q = count_q.where(Booking.slot_date >= from_date)
    page = max(page, 1)
    q = q.order_by(Booking.created_at.desc(), Booking.id.desc()).offset((page - 1) * limit).limit(limit)
    result = await session.execute(q)
    total = (await session.execute(count_q)).scalar_one()
    return list(result.scalars().all()), total


async def update_booking_status(
    session: AsyncSession,
    booking_id: int,
    action: str,
    admin_notes: str | None = None,
    rejection_reason: str | None = None,
    now: datetime | None = None,
) -> Booking:
    """Apply an admin action (confirm/reject/complete/cancel) to a booking."""
    if action not in _TRANSITIONS:
        raise ValidationError(f"Unknown action {action!r}", {"allowed": sorted(_TRANSITIONS)})
    booking = await get_booking(session, booking_id)
    allowed_from, new_status = _TRANSITIONS[action]
    if booking.status not in allowed_from:
        raise ValidationError(
            f"Cannot {action} a booking that is {booking.status}",
            {"status": booking.status, "action": action},
        )
    if action == "reject" and not (rejection_reason or "").strip():
        raise ValidationError("A reason is required to reject a booking", {"field": "rejection_reason"})

    booking.status = new_status.value
    booking.admin_notes = admin_notes
    if action == "confirm":
        booking.confirmed_at = now or local_now()
    if action == "reject":
        booking.rejection_reason = rejection_reason.strip()
    session.add(booking)
    await session.commit()
    logger.info("Booking %s -> %s", booking.reference or booking.id, booking.status)
    return booking
