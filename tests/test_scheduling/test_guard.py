"""Tests for the atomic overlap check used before any session is created."""

from datetime import date, time
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.errors import ConflictError, ValidationError
from coachstudio.models.enums import BookingStatus, SessionKind, SessionStatus
from coachstudio.models.session import Booking, TrainingSession
from coachstudio.scheduling.guard import _insert_occurrence, find_conflicts, reserve
from tests.factories import (
    COACH_ID,
    MEMBER_ID,
    OTHER_COACH_ID,
    OTHER_ROOM_ID,
    ROOM_ID,
    add_recurring,
    add_session,
    at,
    seed_studio,
)

DAY = date(2025, 6, 4)


@pytest.fixture
async def studio(db: AsyncSession) -> AsyncSession:
    await seed_studio(db)
    return db


async def test_rejects_overlap_for_same_coach(studio: AsyncSession) -> None:
    existing = await add_session(studio, at(DAY, 10, 30), at(DAY, 11, 30), room_id=OTHER_ROOM_ID)

    with pytest.raises(ConflictError) as exc_info:
        await reserve(
            studio, coach_id=COACH_ID, room_id=ROOM_ID, start=at(DAY, 10), end=at(DAY, 11)
        )
    assert exc_info.value.details["conflicting_session_ids"] == [existing.id]
    assert exc_info.value.status_code == 409


async def test_accepts_back_to_back(studio: AsyncSession) -> None:
    await add_session(studio, at(DAY, 10), at(DAY, 11))

    training = await reserve(
        studio, coach_id=COACH_ID, room_id=ROOM_ID, start=at(DAY, 9), end=at(DAY, 10)
    )
    await studio.commit()
    assert training is not None
    assert training.status == SessionStatus.SCHEDULED


async def test_rejects_overlap_in_same_room(studio: AsyncSession) -> None:
    await add_session(studio, at(DAY, 10), at(DAY, 11), coach_id=OTHER_COACH_ID)

    with pytest.raises(ConflictError):
        await reserve(
            studio, coach_id=COACH_ID, room_id=ROOM_ID, start=at(DAY, 10, 30), end=at(DAY, 11, 30)
        )


async def test_other_coach_other_room_is_free(studio: AsyncSession) -> None:
    await add_session(studio, at(DAY, 10), at(DAY, 11), coach_id=OTHER_COACH_ID)

    training = await reserve(
        studio, coach_id=COACH_ID, room_id=OTHER_ROOM_ID, start=at(DAY, 10), end=at(DAY, 11)
    )
    assert training is not None


async def test_cancelled_sessions_do_not_conflict(studio: AsyncSession) -> None:
    await add_session(studio, at(DAY, 10), at(DAY, 11), status=SessionStatus.CANCELLED)
    assert await find_conflicts(studio, COACH_ID, ROOM_ID, at(DAY, 10), at(DAY, 11)) == []


async def test_excluded_session_ignored(studio: AsyncSession) -> None:
    existing = await add_session(studio, at(DAY, 10), at(DAY, 11))
    conflicts = await find_conflicts(
        studio, COACH_ID, ROOM_ID, at(DAY, 10), at(DAY, 11), exclude_session_id=existing.id
    )
    assert conflicts == []


async def test_inverted_range_is_validation_error(studio: AsyncSession) -> None:
    with pytest.raises(ValidationError):
        await reserve(
            studio, coach_id=COACH_ID, room_id=ROOM_ID, start=at(DAY, 11), end=at(DAY, 10)
        )


async def test_member_gets_confirmed_booking(studio: AsyncSession) -> None:
    training = await reserve(
        studio,
        coach_id=COACH_ID,
        room_id=ROOM_ID,
        start=at(DAY, 9),
        end=at(DAY, 10),
        member_id=MEMBER_ID,
    )
    await studio.commit()

    booking = await studio.scalar(select(Booking).where(Booking.session_id == training.id))
    assert booking.member_id == MEMBER_ID
    assert booking.status == BookingStatus.CONFIRMED
    assert training.member_id == MEMBER_ID


async def test_duplicate_occurrence_is_ignored(studio: AsyncSession) -> None:
    recurring = await add_recurring(studio, 3, time(9), time(10), start_date=DAY)
    await add_session(studio, at(DAY, 9), at(DAY, 10), recurring_booking_id=recurring.id)

    values = {
        "coach_id": COACH_ID,
        "room_id": OTHER_ROOM_ID,
        "start_time": at(DAY, 9),
        "end_time": at(DAY, 10),
        "session_kind": SessionKind.INDIVIDUAL,
        "capacity": 1,
        "status": SessionStatus.SCHEDULED,
        "recurring_booking_id": recurring.id,
        "member_id": MEMBER_ID,
    }
    assert await _insert_occurrence(studio, values) is None
    await studio.commit()

    count = await studio.scalar(
        select(func.count(TrainingSession.id)).where(
            TrainingSession.recurring_booking_id == recurring.id
        )
    )
    assert count == 1


async def test_occurrence_insert_on_unsupported_dialect_raises() -> None:
    conn = MagicMock()
    conn.dialect.name = "mssql"
    session = AsyncMock(spec=AsyncSession)
    session.connection.return_value = conn

    with pytest.raises(NotImplementedError):
        await _insert_occurrence(session, {"start_time": at(DAY, 9)})
    session.execute.assert_not_called()
