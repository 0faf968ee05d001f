"""Recurring booking API routes."""

from datetime import datetime, tzinfo

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.api.deps import get_now, get_studio_tz
from coachstudio.config import Settings, get_settings
from coachstudio.database import get_db
from coachstudio.models.recurring import RecurringBooking
from coachstudio.scheduling.booking import create_recurring_booking
from coachstudio.scheduling.materializer import SessionMaterializer
from coachstudio.schemas.recurring import (
    RecurringBookingCreate,
    RecurringBookingCreated,
    RecurringBookingRead,
    RecurringCancelResult,
)
from coachstudio.schemas.session import CancelRequest

router = APIRouter(prefix="/api/recurring-bookings", tags=["recurring"])


@router.post("", response_model=RecurringBookingCreated, status_code=201)
async def create_recurring(
    body: RecurringBookingCreate,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    tz: tzinfo = Depends(get_studio_tz),
    now: datetime = Depends(get_now),
) -> RecurringBookingCreated:
    """Create a weekly booking and generate its first sessions right away."""
    recurring = await create_recurring_booking(
        session,
        coach_id=body.coach_id,
        member_id=body.member_id,
        day_of_week=body.day_of_week,
        start_time=body.start_time,
        end_time=body.end_time,
        start_date=body.start_date or now.astimezone(tz).date(),
        end_date=body.end_date,
        room_id=body.room_id,
    )
    await session.commit()
    recurring_id = recurring.id

    materializer = SessionMaterializer(session, tz=tz)
    report = await materializer.generate_for(
        recurring_id, settings.default_horizon_weeks, now
    )

    recurring = await session.get(RecurringBooking, recurring_id)
    await session.refresh(recurring)
    return RecurringBookingCreated(
        **RecurringBookingRead.model_validate(recurring).model_dump(),
        sessions_created=report.sessions_created,
    )


@router.get("", response_model=list[RecurringBookingRead])
async def list_recurring(
    member_id: int | None = None,
    coach_id: int | None = None,
    active: bool | None = None,
    session: AsyncSession = Depends(get_db),
) -> list[RecurringBooking]:
    stmt = select(RecurringBooking).order_by(
        RecurringBooking.day_of_week, RecurringBooking.start_time, RecurringBooking.id
    )
    if member_id is not None:
        stmt = stmt.where(RecurringBooking.member_id == member_id)
    if coach_id is not None:
        stmt = stmt.where(RecurringBooking.coach_id == coach_id)
    if active is not None:
        stmt = stmt.where(RecurringBooking.active.is_(active))
    result = await session.execute(stmt)
    return list(result.scalars().all())


@router.post("/{recurring_booking_id}/cancel", response_model=RecurringCancelResult)
async def cancel_recurring(
    recurring_booking_id: int,
    body: CancelRequest | None = None,
    session: AsyncSession = Depends(get_db),
    tz: tzinfo = Depends(get_studio_tz),
    now: datetime = Depends(get_now),
) -> RecurringCancelResult:
    """Stop a weekly booking and cancel its sessions that have not started yet."""
    materializer = SessionMaterializer(session, tz=tz)
    cancelled = await materializer.cancel(
        recurring_booking_id,
        now,
        cancelled_by=body.cancelled_by if body else "member",
    )
    await session.commit()
    return RecurringCancelResult(
        recurring_booking_id=recurring_booking_id, sessions_cancelled=cancelled
    )
