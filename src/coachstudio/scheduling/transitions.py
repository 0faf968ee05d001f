"""StatusTransitioner: forward-only session lifecycle changes."""

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.errors import NotFoundError, ValidationError
from coachstudio.models.enums import BookingStatus, SessionStatus
from coachstudio.models.session import Booking, TrainingSession

logger = logging.getLogger(__name__)

CANCELLED_BY = {
    "member": BookingStatus.CANCELLED_BY_MEMBER,
    "coach": BookingStatus.CANCELLED_BY_COACH,
}


async def advance(session: AsyncSession, now: datetime) -> int:
    """Mark every scheduled session that ended before `now` as completed.

    Monotonic and idempotent: only `scheduled` rows are touched, so re-running
    with the same or a later `now` never reverts or cancels anything.

    Returns the number of sessions transitioned. The caller commits.
    """
    if now.tzinfo is None:
        raise ValidationError("`now` must carry an explicit UTC offset")
    result = await session.execute(
        update(TrainingSession)
        .where(
            TrainingSession.status == SessionStatus.SCHEDULED,
            TrainingSession.end_time < now,
        )
        .values(status=SessionStatus.COMPLETED)
        .execution_options(synchronize_session=False)
    )
    count = result.rowcount or 0
    if count:
        logger.info("Marked %d session(s) as completed (now=%s)", count, now.isoformat())
    return count


async def cancel_session(
    session: AsyncSession,
    session_id: int,
    now: datetime,
    cancelled_by: str = "coach",
) -> TrainingSession:
    """Cancel one scheduled session and its confirmed bookings.

    Raises:
        NotFoundError: If the session does not exist.
        ValidationError: If the session is already completed or cancelled.
    """
    booking_status = booking_status_for(cancelled_by)
    training = await session.get(TrainingSession, session_id)
    if training is None:
        raise NotFoundError(f"Session {session_id} not found", {"session_id": session_id})
    if training.status != SessionStatus.SCHEDULED:
        raise ValidationError(
            f"Session {session_id} is already {training.status.value}",
            {"session_id": session_id, "status": training.status.value},
        )

    training.status = SessionStatus.CANCELLED
    await cancel_bookings(session, [training.id], booking_status, now)
    await session.flush()
    return training


async def cancel_bookings(
    session: AsyncSession,
    session_ids: list[int],
    status: BookingStatus,
    now: datetime,
) -> None:
    """Move CONFIRMED bookings of the given sessions to a cancelled status."""
    if not session_ids:
        return
    result = await session.execute(
        select(Booking).where(
            Booking.session_id.in_(session_ids),
            Booking.status == BookingStatus.CONFIRMED,
        )
    )
    for booking in result.scalars().all():
        booking.status = status
        booking.cancelled_at = now


def booking_status_for(cancelled_by: str) -> BookingStatus:
    try:
        return CANCELLED_BY[cancelled_by]
    except KeyError:
        raise ValidationError(
            f"cancelled_by must be one of {sorted(CANCELLED_BY)}"
        ) from None
