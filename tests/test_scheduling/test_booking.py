"""Tests for one-off and recurring booking flows."""

from datetime import date, time

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.errors import ConflictError, NotFoundError, ValidationError
from coachstudio.models.enums import BookingStatus, SessionKind, SessionStatus
from coachstudio.models.session import Booking, TrainingSession
from coachstudio.scheduling.booking import book_slot, create_recurring_booking, reschedule_session
from tests.factories import (
    COACH_ID,
    MEMBER_ID,
    NOW,
    OTHER_MEMBER_ID,
    OTHER_ROOM_ID,
    ROOM_ID,
    add_recurring,
    add_rule,
    add_session,
    at,
    seed_studio,
)

MONDAY = date(2025, 6, 9)
WEDNESDAY = date(2025, 6, 4)
MON, WED = 1, 3


@pytest.fixture
async def studio(db: AsyncSession) -> AsyncSession:
    await seed_studio(db)
    await add_rule(db, WED, time(9), time(12))
    await add_rule(db, MON, time(18), time(19), kind=SessionKind.GROUP, capacity=2)
    return db


async def _confirmed(session: AsyncSession, session_id: int) -> int:
    return await session.scalar(
        select(func.count(Booking.id)).where(
            Booking.session_id == session_id, Booking.status == BookingStatus.CONFIRMED
        )
    )


class TestBookIndividual:
    async def test_books_offered_slot(self, studio: AsyncSession) -> None:
        training = await book_slot(
            studio,
            coach_id=COACH_ID,
            member_id=MEMBER_ID,
            start=at(WEDNESDAY, 10),
            end=at(WEDNESDAY, 11),
            now=NOW,
        )
        await studio.commit()

        assert training.member_id == MEMBER_ID
        assert training.room_id == ROOM_ID
        assert await _confirmed(studio, training.id) == 1

    async def test_second_booking_of_same_slot_conflicts(self, studio: AsyncSession) -> None:
        kwargs = {"coach_id": COACH_ID, "start": at(WEDNESDAY, 10), "end": at(WEDNESDAY, 11)}
        await book_slot(studio, member_id=MEMBER_ID, **kwargs)
        await studio.commit()

        with pytest.raises(ConflictError):
            await book_slot(studio, member_id=OTHER_MEMBER_ID, **kwargs)

    async def test_misaligned_window_rejected(self, studio: AsyncSession) -> None:
        with pytest.raises(ValidationError):
            await book_slot(
                studio,
                coach_id=COACH_ID,
                member_id=MEMBER_ID,
                start=at(WEDNESDAY, 9, 30),
                end=at(WEDNESDAY, 10, 30),
            )

    async def test_outside_availability_rejected(self, studio: AsyncSession) -> None:
        with pytest.raises(ValidationError):
            await book_slot(
                studio,
                coach_id=COACH_ID,
                member_id=MEMBER_ID,
                start=at(WEDNESDAY, 14),
                end=at(WEDNESDAY, 15),
            )

    async def test_past_slot_rejected(self, studio: AsyncSession) -> None:
        with pytest.raises(ValidationError):
            await book_slot(
                studio,
                coach_id=COACH_ID,
                member_id=MEMBER_ID,
                start=at(WEDNESDAY, 10),
                end=at(WEDNESDAY, 11),
                now=at(WEDNESDAY, 12),
            )

    async def test_unknown_member(self, studio: AsyncSession) -> None:
        with pytest.raises(NotFoundError):
            await book_slot(
                studio,
                coach_id=COACH_ID,
                member_id=999,
                start=at(WEDNESDAY, 10),
                end=at(WEDNESDAY, 11),
            )


class TestBookGroup:
    async def _book(self, session: AsyncSession, member_id: int):
        return await book_slot(
            session,
            coach_id=COACH_ID,
            member_id=member_id,
            start=at(MONDAY, 18),
            end=at(MONDAY, 19),
            kind=SessionKind.GROUP,
        )

    async def test_members_share_one_session(self, studio: AsyncSession) -> None:
        first = await self._book(studio, MEMBER_ID)
        await studio.commit()
        second = await self._book(studio, OTHER_MEMBER_ID)
        await studio.commit()

        assert first.id == second.id
        assert first.capacity == 2
        assert first.member_id is None
        assert await _confirmed(studio, first.id) == 2

    async def test_full_group_conflicts(self, studio: AsyncSession) -> None:
        await self._book(studio, MEMBER_ID)
        await self._book(studio, OTHER_MEMBER_ID)
        await studio.commit()

        with pytest.raises(ConflictError, match="full"):
            await self._book(studio, COACH_ID)

    async def test_member_cannot_book_twice(self, studio: AsyncSession) -> None:
        await self._book(studio, MEMBER_ID)
        await studio.commit()

        with pytest.raises(ConflictError, match="already booked"):
            await self._book(studio, MEMBER_ID)


class TestCreateRecurring:
    async def test_room_defaults_to_rule_room(self, studio: AsyncSession) -> None:
        recurring = await create_recurring_booking(
            studio,
            coach_id=COACH_ID,
            member_id=MEMBER_ID,
            day_of_week=WED,
            start_time=time(10),
            end_time=time(11),
            start_date=NOW.date(),
        )
        assert recurring.room_id == ROOM_ID
        assert recurring.active is True

    async def test_outside_individual_rule_rejected(self, studio: AsyncSession) -> None:
        with pytest.raises(ValidationError):
            await create_recurring_booking(
                studio,
                coach_id=COACH_ID,
                member_id=MEMBER_ID,
                day_of_week=MON,
                start_time=time(18),
                end_time=time(19),
                start_date=NOW.date(),
            )

    async def test_overlapping_active_recurring_conflicts(self, studio: AsyncSession) -> None:
        await add_recurring(
            studio, WED, time(10), time(11), start_date=NOW.date(), member_id=OTHER_MEMBER_ID
        )
        with pytest.raises(ConflictError):
            await create_recurring_booking(
                studio,
                coach_id=COACH_ID,
                member_id=MEMBER_ID,
                day_of_week=WED,
                start_time=time(10, 30),
                end_time=time(11, 30),
                start_date=NOW.date(),
                room_id=OTHER_ROOM_ID,
            )

    async def test_unknown_coach(self, studio: AsyncSession) -> None:
        with pytest.raises(NotFoundError):
            await create_recurring_booking(
                studio,
                coach_id=MEMBER_ID,
                member_id=OTHER_MEMBER_ID,
                day_of_week=WED,
                start_time=time(10),
                end_time=time(11),
                start_date=NOW.date(),
            )


class TestReschedule:
    async def test_move_back_to_back_with_old_slot(self, studio: AsyncSession) -> None:
        training = await add_session(studio, at(WEDNESDAY, 10), at(WEDNESDAY, 11))

        moved = await reschedule_session(
            studio, training.id, at(WEDNESDAY, 11), at(WEDNESDAY, 12), now=NOW
        )
        await studio.commit()

        assert moved.id == training.id
        assert (moved.start_time, moved.end_time) == (at(WEDNESDAY, 11), at(WEDNESDAY, 12))
        total = await studio.scalar(select(func.count(TrainingSession.id)))
        assert total == 1

    async def test_move_overlapping_own_time(self, studio: AsyncSession) -> None:
        training = await add_session(studio, at(WEDNESDAY, 10), at(WEDNESDAY, 11))

        moved = await reschedule_session(
            studio, training.id, at(WEDNESDAY, 10, 30), at(WEDNESDAY, 11, 30), now=NOW
        )
        assert moved.start_time == at(WEDNESDAY, 10, 30)

    async def test_overlapping_another_session_conflicts(self, studio: AsyncSession) -> None:
        training = await add_session(studio, at(WEDNESDAY, 9), at(WEDNESDAY, 10))
        other = await add_session(studio, at(WEDNESDAY, 11), at(WEDNESDAY, 12))

        with pytest.raises(ConflictError) as exc_info:
            await reschedule_session(
                studio, training.id, at(WEDNESDAY, 10, 30), at(WEDNESDAY, 11, 30), now=NOW
            )
        assert exc_info.value.details["conflicting_session_ids"] == [other.id]

    async def test_cancelled_session_cannot_move(self, studio: AsyncSession) -> None:
        training = await add_session(
            studio, at(WEDNESDAY, 10), at(WEDNESDAY, 11), status=SessionStatus.CANCELLED
        )
        with pytest.raises(ValidationError):
            await reschedule_session(studio, training.id, at(WEDNESDAY, 11), at(WEDNESDAY, 12))

    async def test_recurring_occurrence_cannot_move(self, studio: AsyncSession) -> None:
        recurring = await add_recurring(studio, WED, time(10), time(11), start_date=NOW.date())
        training = await add_session(
            studio, at(WEDNESDAY, 10), at(WEDNESDAY, 11), recurring_booking_id=recurring.id
        )
        with pytest.raises(ValidationError):
            await reschedule_session(studio, training.id, at(WEDNESDAY, 11), at(WEDNESDAY, 12))

    async def test_move_into_past_rejected(self, studio: AsyncSession) -> None:
        training = await add_session(studio, at(WEDNESDAY, 10), at(WEDNESDAY, 11))
        with pytest.raises(ValidationError):
            await reschedule_session(
                studio, training.id, at(date(2025, 6, 1), 10), at(date(2025, 6, 1), 11), now=NOW
            )

    async def test_unknown_session(self, studio: AsyncSession) -> None:
        with pytest.raises(NotFoundError):
            await reschedule_session(studio, 999, at(WEDNESDAY, 11), at(WEDNESDAY, 12))
