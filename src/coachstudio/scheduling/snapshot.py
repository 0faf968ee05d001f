"""Point-in-time snapshot of everything the read path needs for one coach.

The resolver and slicer are pure functions over a `CoachSnapshot`; the caller
fetches it once per request with `load_snapshot`.
"""

from dataclasses import dataclass
from datetime import datetime, time

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.errors import NotFoundError
from coachstudio.models.availability import (
    DEFAULT_SLOT_DURATION_MINUTES,
    AvailabilityAddition,
    BlockedSlot,
    WeeklyAvailabilityRule,
)
from coachstudio.models.enums import BookingStatus, SessionKind, SessionStatus
from coachstudio.models.session import Booking, TrainingSession
from coachstudio.models.user import User


@dataclass(frozen=True)
class RuleSnapshot:
    day_of_week: int
    start_time: time
    end_time: time
    session_kind: SessionKind = SessionKind.INDIVIDUAL
    capacity: int | None = None
    room_id: int | None = None
    slot_duration_minutes: int = DEFAULT_SLOT_DURATION_MINUTES

    @classmethod
    def from_model(cls, rule: WeeklyAvailabilityRule) -> "RuleSnapshot":
        return cls(
            day_of_week=rule.day_of_week,
            start_time=rule.start_time,
            end_time=rule.end_time,
            session_kind=rule.session_kind,
            capacity=rule.capacity,
            room_id=rule.room_id,
            slot_duration_minutes=rule.slot_duration_minutes,
        )


@dataclass(frozen=True)
class BlockSnapshot:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class AdditionSnapshot:
    start: datetime
    end: datetime
    session_kind: SessionKind = SessionKind.INDIVIDUAL
    capacity: int | None = None
    room_id: int | None = None
    slot_duration_minutes: int = DEFAULT_SLOT_DURATION_MINUTES

    @classmethod
    def from_model(cls, addition: AvailabilityAddition) -> "AdditionSnapshot":
        return cls(
            start=addition.start_time,
            end=addition.end_time,
            session_kind=addition.session_kind,
            capacity=addition.capacity,
            room_id=addition.room_id,
            slot_duration_minutes=addition.slot_duration_minutes,
        )


@dataclass(frozen=True)
class SessionSnapshot:
    id: int
    coach_id: int
    room_id: int
    start: datetime
    end: datetime
    session_kind: SessionKind
    capacity: int = 1
    booked_count: int = 0
    recurring_booking_id: int | None = None


@dataclass(frozen=True)
class CoachSnapshot:
    coach_id: int
    coach_name: str | None = None
    rules: tuple[RuleSnapshot, ...] = ()
    blocks: tuple[BlockSnapshot, ...] = ()
    additions: tuple[AdditionSnapshot, ...] = ()
    sessions: tuple[SessionSnapshot, ...] = ()


async def load_snapshot(
    session: AsyncSession, coach_id: int, start: datetime, end: datetime
) -> CoachSnapshot:
    """Fetch a coach's rules, exceptions and live sessions overlapping [start, end).

    Sessions are those of the coach plus any session held in a room the coach's
    rules or additions use, so room double-booking is visible to the slicer.

    Raises:
        NotFoundError: If the coach does not exist.
    """
    coach = await session.get(User, coach_id)
    if coach is None or not coach.can_coach:
        raise NotFoundError(f"Coach {coach_id} not found", {"coach_id": coach_id})

    rules_result = await session.execute(
        select(WeeklyAvailabilityRule)
        .where(WeeklyAvailabilityRule.coach_id == coach_id)
        .order_by(WeeklyAvailabilityRule.day_of_week, WeeklyAvailabilityRule.start_time)
    )
    rules = tuple(RuleSnapshot.from_model(r) for r in rules_result.scalars().all())

    blocks_result = await session.execute(
        select(BlockedSlot).where(
            BlockedSlot.coach_id == coach_id,
            BlockedSlot.start_time < end,
            BlockedSlot.end_time > start,
        )
    )
    blocks = tuple(
        BlockSnapshot(start=b.start_time, end=b.end_time)
        for b in blocks_result.scalars().all()
    )

    additions_result = await session.execute(
        select(AvailabilityAddition)
        .where(
            AvailabilityAddition.coach_id == coach_id,
            AvailabilityAddition.start_time < end,
            AvailabilityAddition.end_time > start,
        )
        .order_by(AvailabilityAddition.start_time)
    )
    additions = tuple(
        AdditionSnapshot.from_model(a) for a in additions_result.scalars().all()
    )

    room_ids = {r.room_id for r in rules if r.room_id is not None}
    room_ids |= {a.room_id for a in additions if a.room_id is not None}
    sessions = await load_live_sessions(
        session, start, end, coach_id=coach_id, room_ids=room_ids
    )
    return CoachSnapshot(
        coach_id=coach.id,
        coach_name=coach.name,
        rules=rules,
        blocks=blocks,
        additions=additions,
        sessions=tuple(sessions),
    )


async def load_live_sessions(
    session: AsyncSession,
    start: datetime,
    end: datetime,
    coach_id: int | None = None,
    room_ids: set[int] | None = None,
) -> list[SessionSnapshot]:
    """Non-cancelled sessions overlapping [start, end) for a coach and/or rooms,
    each with its count of CONFIRMED bookings."""
    scope = []
    if coach_id is not None:
        scope.append(TrainingSession.coach_id == coach_id)
    if room_ids:
        scope.append(TrainingSession.room_id.in_(room_ids))
    if not scope:
        return []

    booked = (
        select(Booking.session_id, func.count(Booking.id).label("booked"))
        .where(Booking.status == BookingStatus.CONFIRMED)
        .group_by(Booking.session_id)
        .subquery()
    )
    stmt = (
        select(TrainingSession, func.coalesce(booked.c.booked, 0))
        .outerjoin(booked, booked.c.session_id == TrainingSession.id)
        .where(
            TrainingSession.status != SessionStatus.CANCELLED,
            TrainingSession.start_time < end,
            TrainingSession.end_time > start,
            or_(*scope),
        )
        .order_by(TrainingSession.start_time, TrainingSession.id)
    )
    result = await session.execute(stmt)
    return [
        SessionSnapshot(
            id=row.id,
            coach_id=row.coach_id,
            room_id=row.room_id,
            start=row.start_time,
            end=row.end_time,
            session_kind=row.session_kind,
            capacity=row.capacity,
            booked_count=booked_count,
            recurring_booking_id=row.recurring_booking_id,
        )
        for row, booked_count in result.all()
    ]
