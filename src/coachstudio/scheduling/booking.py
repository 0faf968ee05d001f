"""Booking flows built on the resolver and the conflict guard."""

import logging
from datetime import date, datetime, time, timezone, tzinfo

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.errors import ConflictError, NotFoundError, ValidationError
from coachstudio.models.availability import WeeklyAvailabilityRule
from coachstudio.models.enums import BookingStatus, SessionKind, SessionStatus
from coachstudio.models.recurring import RecurringBooking
from coachstudio.models.room import Room
from coachstudio.models.session import Booking, TrainingSession
from coachstudio.models.user import User
from coachstudio.scheduling.dates import day_bounds
from coachstudio.scheduling.guard import (
    SLOT_TAKEN_MESSAGE,
    ensure_free,
    ensure_valid_range,
    lock_scope,
    reserve,
)
from coachstudio.scheduling.intervals import OpenWindow
from coachstudio.scheduling.policies import policy_for
from coachstudio.scheduling.resolver import resolve_day
from coachstudio.scheduling.snapshot import load_snapshot

logger = logging.getLogger(__name__)


async def book_slot(
    session: AsyncSession,
    *,
    coach_id: int,
    member_id: int,
    start: datetime,
    end: datetime,
    kind: SessionKind = SessionKind.INDIVIDUAL,
    room_id: int | None = None,
    tz: tzinfo = timezone.utc,
    now: datetime | None = None,
) -> TrainingSession:
    """Book a member into an offered slot.

    INDIVIDUAL slots get a new session. GROUP slots reuse the session already
    created for the window, or create it on first booking.

    The caller commits.

    Raises:
        ValidationError: If the window is not an offered slot or lies in the past.
        NotFoundError: If the coach, member or room does not exist.
        ConflictError: If the slot was taken, the group is full, or the member
            already holds a booking for it.
    """
    ensure_valid_range(start, end)
    if now is not None and start < now:
        raise ValidationError("Cannot book a slot in the past", {"start": start.isoformat()})
    await _get_member(session, member_id)

    day = start.astimezone(tz).date()
    day_start, day_end = day_bounds(day, tz)
    snapshot = await load_snapshot(session, coach_id, day_start, day_end)
    window = _offering_window(resolve_day(snapshot, day, tz), kind, start, end)

    room_id = window.room_id or room_id
    if room_id is None:
        raise ValidationError("A room is required for this slot")
    if await session.get(Room, room_id) is None:
        raise NotFoundError(f"Room {room_id} not found", {"room_id": room_id})

    if kind == SessionKind.INDIVIDUAL:
        training = await reserve(
            session,
            coach_id=coach_id,
            room_id=room_id,
            start=start,
            end=end,
            member_id=member_id,
        )
    else:
        training = await _join_group(
            session,
            coach_id=coach_id,
            member_id=member_id,
            room_id=room_id,
            start=start,
            end=end,
            capacity=policy_for(kind).session_capacity(window),
        )
    logger.info(
        "Booked member %s into %s session %s (%s)",
        member_id,
        kind.value,
        training.id,
        start.isoformat(),
    )
    return training


async def reschedule_session(
    session: AsyncSession,
    session_id: int,
    start: datetime,
    end: datetime,
    now: datetime | None = None,
) -> TrainingSession:
    """Move a scheduled session to [start, end), keeping its coach, room and bookings.

    The session's own current time does not count as a conflict, so it can move
    into a range overlapping or adjacent to where it was.

    The caller commits.

    Raises:
        ValidationError: If the range is invalid or in the past, or the session
            is no longer scheduled.
        NotFoundError: If the session does not exist.
        ConflictError: If another live session of the coach or room overlaps.
    """
    ensure_valid_range(start, end)
    if now is not None and start < now:
        raise ValidationError(
            "Cannot move a session into the past", {"start": start.isoformat()}
        )
    training = await session.get(TrainingSession, session_id)
    if training is None:
        raise NotFoundError(f"Session {session_id} not found", {"session_id": session_id})
    if training.status != SessionStatus.SCHEDULED:
        raise ValidationError(
            f"Session {session_id} is already {training.status.value}",
            {"session_id": session_id, "status": training.status.value},
        )
    if training.recurring_booking_id is not None:
        # Occurrences are keyed on their start; a moved one would be regenerated.
        raise ValidationError(
            "Sessions of a recurring booking cannot be moved; cancel this one instead",
            {"session_id": session_id, "recurring_booking_id": training.recurring_booking_id},
        )

    await ensure_free(
        session, training.coach_id, training.room_id, start, end, exclude_session_id=training.id
    )
    previous = training.start_time
    training.start_time = start
    training.end_time = end
    try:
        await session.flush()
    except IntegrityError as exc:
        raise ConflictError(SLOT_TAKEN_MESSAGE, {"session_id": session_id}) from exc
    logger.info(
        "Moved session %s from %s to %s", training.id, previous.isoformat(), start.isoformat()
    )
    return training


async def create_recurring_booking(
    session: AsyncSession,
    *,
    coach_id: int,
    member_id: int,
    day_of_week: int,
    start_time: time,
    end_time: time,
    start_date: date,
    end_date: date | None = None,
    room_id: int | None = None,
) -> RecurringBooking:
    """Create a weekly template for a member with a coach.

    The window must fit inside one of the coach's INDIVIDUAL weekly rules for
    that weekday and must not overlap another active recurring booking of the
    coach. The room defaults to the matching rule's room.

    The caller commits, then materializes the booking.
    """
    if not 0 <= day_of_week <= 6:
        raise ValidationError("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
    if end_time <= start_time:
        raise ValidationError("End time must be after start time")
    if end_date is not None and end_date < start_date:
        raise ValidationError("End date must not be before start date")

    coach = await session.get(User, coach_id)
    if coach is None or not coach.can_coach:
        raise NotFoundError(f"Coach {coach_id} not found", {"coach_id": coach_id})
    await _get_member(session, member_id)

    rule_result = await session.execute(
        select(WeeklyAvailabilityRule)
        .where(
            WeeklyAvailabilityRule.coach_id == coach_id,
            WeeklyAvailabilityRule.day_of_week == day_of_week,
            WeeklyAvailabilityRule.session_kind == SessionKind.INDIVIDUAL,
            WeeklyAvailabilityRule.start_time <= start_time,
            WeeklyAvailabilityRule.end_time >= end_time,
        )
        .order_by(WeeklyAvailabilityRule.start_time)
        .limit(1)
    )
    rule = rule_result.scalar_one_or_none()
    if rule is None:
        raise ValidationError(
            "Selected time is outside the coach's individual availability",
            {"day_of_week": day_of_week},
        )

    room_id = room_id or rule.room_id
    if room_id is None:
        raise ValidationError("A room is required for a recurring booking")
    if await session.get(Room, room_id) is None:
        raise NotFoundError(f"Room {room_id} not found", {"room_id": room_id})

    clash_result = await session.execute(
        select(RecurringBooking.id).where(
            RecurringBooking.coach_id == coach_id,
            RecurringBooking.day_of_week == day_of_week,
            RecurringBooking.active.is_(True),
            RecurringBooking.start_time < end_time,
            RecurringBooking.end_time > start_time,
        )
    )
    clashing = list(clash_result.scalars().all())
    if clashing:
        raise ConflictError(
            "The coach already has a recurring booking at this time",
            {"recurring_booking_ids": clashing},
        )

    recurring = RecurringBooking(
        coach_id=coach_id,
        member_id=member_id,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        room_id=room_id,
        start_date=start_date,
        end_date=end_date,
    )
    session.add(recurring)
    await session.flush()
    return recurring


def _offering_window(
    windows: list[OpenWindow], kind: SessionKind, start: datetime, end: datetime
) -> OpenWindow:
    policy = policy_for(kind)
    for window in windows:
        if window.kind != kind or not window.contains(start, end):
            continue
        if (start, end) in policy.candidates(window):
            return window
    raise ValidationError(
        "Requested time is not an offered slot",
        {"start": start.isoformat(), "end": end.isoformat(), "kind": kind.value},
    )


async def _join_group(
    session: AsyncSession,
    *,
    coach_id: int,
    member_id: int,
    room_id: int,
    start: datetime,
    end: datetime,
    capacity: int,
) -> TrainingSession:
    await lock_scope(session, coach_id, room_id)
    result = await session.execute(
        select(TrainingSession).where(
            TrainingSession.coach_id == coach_id,
            TrainingSession.session_kind == SessionKind.GROUP,
            TrainingSession.status == SessionStatus.SCHEDULED,
            TrainingSession.start_time == start,
            TrainingSession.end_time == end,
        )
    )
    training = result.scalars().first()
    if training is None:
        training = await reserve(
            session,
            coach_id=coach_id,
            room_id=room_id,
            start=start,
            end=end,
            kind=SessionKind.GROUP,
            capacity=capacity,
            member_id=member_id,
        )
        return training

    booked = await session.scalar(
        select(func.count(Booking.id)).where(
            Booking.session_id == training.id,
            Booking.status == BookingStatus.CONFIRMED,
        )
    )
    existing = await session.scalar(
        select(Booking).where(
            Booking.session_id == training.id, Booking.member_id == member_id
        )
    )
    if existing is not None and existing.status == BookingStatus.CONFIRMED:
        raise ConflictError(
            "Member is already booked into this session",
            {"session_id": training.id, "member_id": member_id},
        )
    if (booked or 0) >= training.capacity:
        raise ConflictError("Session is full", {"session_id": training.id})

    if existing is not None:
        existing.status = BookingStatus.CONFIRMED
        existing.cancelled_at = None
    else:
        session.add(Booking(session_id=training.id, member_id=member_id))
    await session.flush()
    return training


async def _get_member(session: AsyncSession, member_id: int) -> User:
    member = await session.get(User, member_id)
    if member is None:
        raise NotFoundError(f"Member {member_id} not found", {"member_id": member_id})
    return member
