import logging
import math
from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from renobook.api.deps import get_current_admin, get_session
from renobook.api.schemas.booking import BookingListResponse, BookingStatusUpdate
from renobook.api.schemas.schedule import (
    AddOverrideRequest,
    RemoveOverrideResponse,
    ReplaceScheduleRequest,
)
from renobook.models.booking import Booking, BookingAdminPublic
from renobook.models.schedule import (
    DateOverride,
    DateOverridePublic,
    WeeklyTemplateEntry,
    WeeklyTemplateEntryPublic,
)
from renobook.services.booking_service import get_booking, list_bookings, update_booking_status
from renobook.services.email_service import send_booking_status_email
from renobook.services.schedule_service import (
    add_override,
    get_template,
    list_overrides,
    remove_override,
    replace_template,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(get_current_admin)])


def _entry_public(e: WeeklyTemplateEntry) -> WeeklyTemplateEntryPublic:
    return WeeklyTemplateEntryPublic(
        day_of_week=e.day_of_week,
        is_active=e.is_active,
        time_slots=list(e.time_slots or []),
    )


def _override_public(o: DateOverride) -> DateOverridePublic:
    return DateOverridePublic(
        id=int(o.id),
        day=o.day,
        is_open=o.is_open,
        blocked_times=list(o.blocked_times or []),
        reason=o.reason,
    )


def _booking_admin(b: Booking) -> BookingAdminPublic:
    return BookingAdminPublic.model_validate(b, from_attributes=True)


# --- weekly schedule ---


@router.get("/schedule", response_model=list[WeeklyTemplateEntryPublic])
async def read_schedule(session: AsyncSession = Depends(get_session)) -> list[WeeklyTemplateEntryPublic]:
    return [_entry_public(e) for e in await get_template(session)]


@router.put("/schedule", response_model=list[WeeklyTemplateEntryPublic])
async def put_schedule(
    body: ReplaceScheduleRequest,
    session: AsyncSession = Depends(get_session),
) -> list[WeeklyTemplateEntryPublic]:
    """Replace the whole week. Exactly one entry per weekday 0 (Sunday) - 6."""
    rows = await replace_template(session, body.entries)
    return [_entry_public(e) for e in rows]


# --- date overrides ---


@router.get("/overrides", response_model=list[DateOverridePublic])
async def read_overrides(
    from_date: date | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> list[DateOverridePublic]:
    return [_override_public(o) for o in await list_overrides(session, from_date=from_date)]


@router.post("/overrides", response_model=DateOverridePublic)
async def post_override(
    body: AddOverrideRequest,
    session: AsyncSession = Depends(get_session),
) -> DateOverridePublic:
    override = await add_override(
        session,
        body.date,
        is_open=body.is_open,
        blocked_times=body.blocked_times,
        reason=body.reason,
    )
    return _override_public(override)


@router.delete("/overrides/{day}", response_model=RemoveOverrideResponse)
async def delete_override(
    day: date,
    session: AsyncSession = Depends(get_session),
) -> RemoveOverrideResponse:
    removed = await remove_override(session, day)
    return RemoveOverrideResponse(date=day, removed=removed)


# --- bookings ---


@router.get("/bookings", response_model=BookingListResponse)
async def read_bookings(
    status: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    from_date: date | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> BookingListResponse:
    bookings, total = await list_bookings(session, status=status, page=page, limit=limit, from_date=from_date)
    return BookingListResponse(
        bookings=[_booking_admin(b) for b in bookings],
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit),
    )


@router.get("/bookings/{booking_id}", response_model=BookingAdminPublic)
async def read_booking(
    booking_id: int,
    session: AsyncSession = Depends(get_session),
) -> BookingAdminPublic:
    return _booking_admin(await get_booking(session, booking_id))


@router.patch("/bookings/{booking_id}", response_model=BookingAdminPublic)
async def patch_booking(
    booking_id: int,
    body: BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
) -> BookingAdminPublic:
    booking = await update_booking_status(
        session,
        booking_id,
        body.action,
        admin_notes=body.admin_notes,
        rejection_reason=body.rejection_reason,
    )
    background_tasks.add_task(send_booking_status_email, booking)
    return _booking_admin(booking)
