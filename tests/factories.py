"""Shared test database, clock and helpers that seed it."""

from datetime import date, datetime, time, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from coachstudio.models.availability import (
    AvailabilityAddition,
    BlockedSlot,
    WeeklyAvailabilityRule,
)
from coachstudio.models.enums import SessionKind, SessionStatus, UserRole
from coachstudio.models.recurring import RecurringBooking
from coachstudio.models.room import Room
from coachstudio.models.session import TrainingSession
from coachstudio.models.user import User

COACH_ID = 1
MEMBER_ID = 2
OTHER_MEMBER_ID = 3
OTHER_COACH_ID = 4
ROOM_ID = 1
OTHER_ROOM_ID = 2

test_engine = create_async_engine("sqlite+aiosqlite://", echo=False)
test_session = async_sessionmaker(test_engine, expire_on_commit=False)

# Monday 2 June 2025, 08:00 UTC
NOW = datetime(2025, 6, 2, 8, 0, tzinfo=timezone.utc)

CRON_SECRET = "test-cron-secret"
ADMIN_TOKEN = "test-admin-token"


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)


async def seed_studio(session: AsyncSession) -> None:
    """Two coaches, two members and two rooms."""
    session.add_all(
        [
            User(id=COACH_ID, name="Carla Coach", email="carla@example.com", role=UserRole.COACH),
            User(id=MEMBER_ID, name="Mia Member", email="mia@example.com"),
            User(id=OTHER_MEMBER_ID, name="Max Member", email="max@example.com"),
            User(
                id=OTHER_COACH_ID, name="Otto Owner", email="otto@example.com", role=UserRole.OWNER
            ),
            Room(id=ROOM_ID, name="Studio A", capacity=12),
            Room(id=OTHER_ROOM_ID, name="Studio B", capacity=4),
        ]
    )
    await session.commit()


async def add_rule(
    session: AsyncSession,
    day_of_week: int,
    start: time,
    end: time,
    *,
    coach_id: int = COACH_ID,
    kind: SessionKind = SessionKind.INDIVIDUAL,
    capacity: int | None = None,
    room_id: int | None = ROOM_ID,
    slot_minutes: int = 60,
) -> WeeklyAvailabilityRule:
    rule = WeeklyAvailabilityRule(
        coach_id=coach_id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        session_kind=kind,
        capacity=capacity,
        room_id=room_id,
        slot_duration_minutes=slot_minutes,
    )
    session.add(rule)
    await session.commit()
    return rule


async def add_block(
    session: AsyncSession, start: datetime, end: datetime, coach_id: int = COACH_ID
) -> BlockedSlot:
    block = BlockedSlot(coach_id=coach_id, start_time=start, end_time=end, reason="Away")
    session.add(block)
    await session.commit()
    return block


async def add_addition(
    session: AsyncSession,
    start: datetime,
    end: datetime,
    *,
    coach_id: int = COACH_ID,
    kind: SessionKind = SessionKind.INDIVIDUAL,
    capacity: int | None = None,
    room_id: int | None = ROOM_ID,
) -> AvailabilityAddition:
    addition = AvailabilityAddition(
        coach_id=coach_id,
        start_time=start,
        end_time=end,
        session_kind=kind,
        capacity=capacity,
        room_id=room_id,
    )
    session.add(addition)
    await session.commit()
    return addition


async def add_session(
    session: AsyncSession,
    start: datetime,
    end: datetime,
    *,
    coach_id: int = COACH_ID,
    room_id: int = ROOM_ID,
    kind: SessionKind = SessionKind.INDIVIDUAL,
    capacity: int = 1,
    status: SessionStatus = SessionStatus.SCHEDULED,
    recurring_booking_id: int | None = None,
) -> TrainingSession:
    training = TrainingSession(
        coach_id=coach_id,
        room_id=room_id,
        start_time=start,
        end_time=end,
        session_kind=kind,
        capacity=capacity,
        status=status,
        recurring_booking_id=recurring_booking_id,
    )
    session.add(training)
    await session.commit()
    return training


async def add_recurring(
    session: AsyncSession,
    day_of_week: int,
    start: time,
    end: time,
    *,
    start_date: date,
    end_date: date | None = None,
    coach_id: int = COACH_ID,
    member_id: int = MEMBER_ID,
    room_id: int = ROOM_ID,
) -> RecurringBooking:
    recurring = RecurringBooking(
        coach_id=coach_id,
        member_id=member_id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        room_id=room_id,
        start_date=start_date,
        end_date=end_date,
    )
    session.add(recurring)
    await session.commit()
    return recurring
