"""ConflictGuard: the atomic check-then-insert every session creation goes through.

Mutual exclusion is scoped to the coach and room being reserved. On PostgreSQL
transaction-level advisory locks serialize competing reservations for the same
coach or room. On SQLite every transaction opens with BEGIN IMMEDIATE (see
`coachstudio.database.enable_write_locking`), so the overlap check already runs
under the database write lock. Uniqueness constraints back both, and their
violations surface as `ConflictError`. Other backends are not supported.
"""

import logging
from datetime import datetime

from sqlalchemy import or_, select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.errors import ConflictError, ValidationError
from coachstudio.models.enums import SessionKind, SessionStatus
from coachstudio.models.session import Booking, TrainingSession

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "Slot no longer available"

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def ensure_valid_range(start: datetime, end: datetime) -> None:
    """Reject naive timestamps and empty or inverted ranges."""
    if start.tzinfo is None or end.tzinfo is None:
        raise ValidationError("Timestamps must carry an explicit UTC offset")
    if end <= start:
        raise ValidationError(
            "End time must be after start time",
            {"start": start.isoformat(), "end": end.isoformat()},
        )


async def find_conflicts(
    session: AsyncSession,
    coach_id: int,
    room_id: int | None,
    start: datetime,
    end: datetime,
    exclude_session_id: int | None = None,
) -> list[TrainingSession]:
    """Non-cancelled sessions of the coach or in the room overlapping [start, end).

    Back-to-back sessions (one ends exactly when the other starts) do not count.
    """
    scope = [TrainingSession.coach_id == coach_id]
    if room_id is not None:
        scope.append(TrainingSession.room_id == room_id)
    stmt = select(TrainingSession).where(
        TrainingSession.status != SessionStatus.CANCELLED,
        TrainingSession.start_time < end,
        TrainingSession.end_time > start,
        or_(*scope),
    )
    if exclude_session_id is not None:
        stmt = stmt.where(TrainingSession.id != exclude_session_id)
    result = await session.execute(stmt.order_by(TrainingSession.start_time))
    return list(result.scalars().all())


async def ensure_free(
    session: AsyncSession,
    coach_id: int,
    room_id: int | None,
    start: datetime,
    end: datetime,
    exclude_session_id: int | None = None,
) -> None:
    """Take the coach and room locks, then fail if [start, end) is not free.

    The locks are held until the caller's transaction ends, so the write that
    follows is covered by the same check.
    """
    ensure_valid_range(start, end)
    await lock_scope(session, coach_id, room_id)

    conflicts = await find_conflicts(
        session, coach_id, room_id, start, end, exclude_session_id=exclude_session_id
    )
    if conflicts:
        logger.warning(
            "Rejected reservation for coach %s room %s at %s-%s: overlaps session(s) %s",
            coach_id,
            room_id,
            start.isoformat(),
            end.isoformat(),
            [c.id for c in conflicts],
        )
        raise ConflictError(
            SLOT_TAKEN_MESSAGE,
            {"conflicting_session_ids": [c.id for c in conflicts]},
        )


async def reserve(
    session: AsyncSession,
    *,
    coach_id: int,
    room_id: int,
    start: datetime,
    end: datetime,
    kind: SessionKind = SessionKind.INDIVIDUAL,
    capacity: int = 1,
    member_id: int | None = None,
    recurring_booking_id: int | None = None,
    exclude_session_id: int | None = None,
) -> TrainingSession | None:
    """Check for overlaps and create the session in the caller's transaction.

    When `member_id` is given a CONFIRMED booking is created alongside. When
    `recurring_booking_id` is given the insert is keyed on
    (recurring_booking_id, start_time): a duplicate occurrence is ignored and
    None is returned.

    `exclude_session_id` only drops that session from the overlap check; a new
    row is still inserted. Moving a session is `booking.reschedule_session`.

    The caller commits.

    Raises:
        ValidationError: If the range is empty, inverted or naive.
        ConflictError: If another live session of the coach or room overlaps.
    """
    await ensure_free(
        session, coach_id, room_id, start, end, exclude_session_id=exclude_session_id
    )

    values = {
        "coach_id": coach_id,
        "room_id": room_id,
        "start_time": start,
        "end_time": end,
        "session_kind": kind,
        "capacity": capacity,
        "status": SessionStatus.SCHEDULED,
        "recurring_booking_id": recurring_booking_id,
        "member_id": member_id if kind == SessionKind.INDIVIDUAL else None,
    }
    try:
        if recurring_booking_id is None:
            training = TrainingSession(**values)
            session.add(training)
            await session.flush()
        else:
            training = await _insert_occurrence(session, values)
            if training is None:
                return None
        if member_id is not None:
            session.add(Booking(session_id=training.id, member_id=member_id))
            await session.flush()
    except IntegrityError as exc:
        raise ConflictError(SLOT_TAKEN_MESSAGE) from exc
    return training


async def lock_scope(session: AsyncSession, coach_id: int, room_id: int | None) -> None:
    # On SQLite the write lock is taken when the transaction begins.
    conn = await session.connection()
    if conn.dialect.name != "postgresql":
        return
    # Fixed order so two reservations never wait on each other crosswise.
    keys = sorted({f"coach:{coach_id}", f"room:{room_id}"} if room_id else {f"coach:{coach_id}"})
    for key in keys:
        await session.execute(text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key})


async def _insert_occurrence(
    session: AsyncSession, values: dict
) -> TrainingSession | None:
    """Insert a materialized occurrence, ignoring it if its key already exists."""
    conn = await session.connection()
    insert = _UPSERT_INSERTS.get(conn.dialect.name)
    if insert is None:
        raise NotImplementedError(
            f"Materializing occurrences is not supported on {conn.dialect.name}"
        )

    stmt = (
        insert(TrainingSession)
        .values(**values)
        .on_conflict_do_nothing(index_elements=["recurring_booking_id", "start_time"])
        .returning(TrainingSession.id)
    )
    new_id = (await session.execute(stmt)).scalar_one_or_none()
    if new_id is None:
        return None
    return await session.get(TrainingSession, new_id)
