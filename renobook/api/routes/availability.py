from datetime import date

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from renobook.api.deps import get_session
from renobook.api.schemas.availability import (
    AvailabilityBoundsResponse,
    DayAvailabilityInfo,
    DayAvailabilityResponse,
    MonthAvailabilityResponse,
)
from renobook.core.config import settings
from renobook.services.availability import (
    DayAvailability,
    get_day_availability,
    get_month_availability,
)
from renobook.services.timeslots import (
    MonthBounds,
    browsable_months,
    canonical_time_slots,
    local_today,
    parse_month,
)

router = APIRouter(prefix="/availability", tags=["availability"])

# Availability changes between visits; the calendar must re-fetch on every month change
_NO_STORE = {"Cache-Control": "no-store"}


def _to_info(day: DayAvailability) -> DayAvailabilityInfo:
    return DayAvailabilityInfo(
        available=list(day.offered_times),
        booked=list(day.booked_times),
        is_open=day.is_open,
        status=day.status.value,
        closed_reason=day.closed_reason,
    )


@router.get("", response_model=MonthAvailabilityResponse)
async def month_availability(
    response: Response,
    month: str = Query(..., description="YYYY-MM"),
    session: AsyncSession = Depends(get_session),
) -> MonthAvailabilityResponse:
    """Availability for every day of a month inside the bookable window."""
    year, month_num = parse_month(month)
    days = await get_month_availability(session, year, month_num)
    response.headers.update(_NO_STORE)
    return MonthAvailabilityResponse(
        month=f"{year:04d}-{month_num:02d}",
        availability={d.isoformat(): _to_info(a) for d, a in days.items()},
    )


@router.get("/bounds", response_model=AvailabilityBoundsResponse)
async def availability_bounds() -> AvailabilityBoundsResponse:
    """First and last month the calendar may navigate to."""
    today = local_today()
    bounds = browsable_months(today)
    return AvailabilityBoundsResponse(
        today=today,
        min_month=MonthBounds.format(bounds.first),
        max_month=MonthBounds.format(bounds.last),
        horizon_months=settings.booking_horizon_months,
        time_slots=canonical_time_slots(),
    )


@router.get("/{day}", response_model=DayAvailabilityResponse)
async def day_availability(
    day: date,
    response: Response,
    session: AsyncSession = Depends(get_session),
) -> DayAvailabilityResponse:
    result = await get_day_availability(session, day)
    response.headers.update(_NO_STORE)
    return DayAvailabilityResponse(
        date=day.isoformat(),
        available=list(result.offered_times),
        booked=list(result.booked_times),
        is_open=result.is_open,
        status=result.status.value,
        closed_reason=result.closed_reason,
        note=result.note,
    )
