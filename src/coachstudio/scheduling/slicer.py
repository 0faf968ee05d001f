"""SlotSlicer: resolved windows -> offerable slots, plus the multi-coach read path."""

import logging
from datetime import date, datetime, timezone, tzinfo
from itertools import chain

from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.errors import ValidationError
from coachstudio.models.enums import SessionKind
from coachstudio.scheduling.dates import day_bounds, iter_days
from coachstudio.scheduling.intervals import OpenWindow
from coachstudio.scheduling.policies import Slot, policy_for
from coachstudio.scheduling.resolver import resolve_day
from coachstudio.scheduling.snapshot import CoachSnapshot, load_snapshot

logger = logging.getLogger(__name__)

MAX_RANGE_DAYS = 62


def slice_windows(
    snapshot: CoachSnapshot,
    windows: list[OpenWindow],
    kind: SessionKind | None = None,
    now: datetime | None = None,
    include_full: bool = False,
) -> list[Slot]:
    """Cut windows into slots, dropping those taken by existing sessions.

    Args:
        snapshot: Coach snapshot whose sessions are checked for overlap.
        windows: Output of `resolve_day` for that coach.
        kind: Only slice windows of this kind.
        now: Slots starting before this instant are not offered.
        include_full: Keep full group slots (flagged by `Slot.is_full`).
    """
    slots: list[Slot] = []
    for window in windows:
        if kind is not None and window.kind != kind:
            continue
        policy = policy_for(window.kind)
        for start, end in policy.candidates(window):
            if now is not None and start < now:
                continue
            slot = policy.offer(snapshot, window, start, end)
            if slot is None:
                continue
            if slot.is_full and not include_full:
                continue
            slots.append(slot)
    return sort_slots(slots)


def slice_day(
    snapshot: CoachSnapshot,
    day: date,
    tz: tzinfo = timezone.utc,
    kind: SessionKind | None = None,
    now: datetime | None = None,
    include_full: bool = False,
) -> list[Slot]:
    return slice_windows(
        snapshot, resolve_day(snapshot, day, tz), kind=kind, now=now, include_full=include_full
    )


def sort_slots(slots: list[Slot]) -> list[Slot]:
    """Ascending by start; ties broken by coach id for stable multi-coach merges."""
    return sorted(slots, key=lambda s: (s.start, s.coach_id, s.end))


def merge_slots(*slot_lists: list[Slot]) -> list[Slot]:
    return sort_slots(list(chain.from_iterable(slot_lists)))


async def resolve_slots(
    session: AsyncSession,
    coach_ids: list[int],
    start_date: date,
    end_date: date,
    tz: tzinfo = timezone.utc,
    kind: SessionKind | None = None,
    now: datetime | None = None,
    include_full: bool = False,
) -> list[Slot]:
    """Open slots for one or several coaches over an inclusive date range.

    Fetches one snapshot per coach, then runs the pure resolve/slice pipeline
    for every day.

    Raises:
        ValidationError: If the range is inverted or too long.
        NotFoundError: If a coach does not exist.
    """
    if end_date < start_date:
        raise ValidationError(
            "End date must not be before start date",
            {"start": start_date.isoformat(), "end": end_date.isoformat()},
        )
    if (end_date - start_date).days >= MAX_RANGE_DAYS:
        raise ValidationError(f"Date range is limited to {MAX_RANGE_DAYS} days")

    range_start, _ = day_bounds(start_date, tz)
    _, range_end = day_bounds(end_date, tz)

    per_coach: list[list[Slot]] = []
    for coach_id in dict.fromkeys(coach_ids):
        snapshot = await load_snapshot(session, coach_id, range_start, range_end)
        slots = [
            slot
            for day in iter_days(start_date, end_date)
            for slot in slice_day(
                snapshot, day, tz, kind=kind, now=now, include_full=include_full
            )
        ]
        per_coach.append(slots)

    merged = merge_slots(*per_coach)
    logger.debug(
        "Resolved %d slot(s) for %d coach(es) between %s and %s",
        len(merged),
        len(per_coach),
        start_date,
        end_date,
    )
    return merged
