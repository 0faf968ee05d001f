"""Booking API routes: one-off bookings, moving and cancelling sessions."""

from datetime import datetime, tzinfo

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.api.deps import get_now, get_studio_tz
from coachstudio.database import get_db
from coachstudio.models.session import TrainingSession
from coachstudio.scheduling.booking import book_slot, reschedule_session
from coachstudio.scheduling.transitions import cancel_session
from coachstudio.schemas.session import (
    BookingCreate,
    CancelRequest,
    RescheduleRequest,
    TrainingSessionRead,
)

router = APIRouter(prefix="/api", tags=["bookings"])


@router.post("/bookings", response_model=TrainingSessionRead, status_code=201)
async def create_booking(
    body: BookingCreate,
    session: AsyncSession = Depends(get_db),
    tz: tzinfo = Depends(get_studio_tz),
    now: datetime = Depends(get_now),
) -> TrainingSession:
    """Book a member into an offered slot.

    Responds 409 when the slot was taken in the meantime.
    """
    training = await book_slot(
        session,
        coach_id=body.coach_id,
        member_id=body.member_id,
        start=body.start_time,
        end=body.end_time,
        kind=body.session_kind,
        room_id=body.room_id,
        tz=tz,
        now=now,
    )
    await session.commit()
    await session.refresh(training)
    return training


@router.post("/sessions/{session_id}/cancel", response_model=TrainingSessionRead)
async def cancel_training_session(
    session_id: int,
    body: CancelRequest | None = None,
    session: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> TrainingSession:
    cancelled_by = body.cancelled_by if body else "coach"
    training = await cancel_session(session, session_id, now, cancelled_by=cancelled_by)
    await session.commit()
    await session.refresh(training)
    return training


@router.post("/sessions/{session_id}/reschedule", response_model=TrainingSessionRead)
async def reschedule_training_session(
    session_id: int,
    body: RescheduleRequest,
    session: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> TrainingSession:
    """Move a session; responds 409 when the new time overlaps another session."""
    training = await reschedule_session(
        session, session_id, body.start_time, body.end_time, now=now
    )
    await session.commit()
    await session.refresh(training)
    return training
