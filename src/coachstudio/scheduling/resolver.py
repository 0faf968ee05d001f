"""AvailabilityResolver: weekly template + exceptions -> open windows for a date.

Pure functions over a `CoachSnapshot`; nothing here touches storage.
"""

from dataclasses import replace
from datetime import date, timezone, tzinfo

from coachstudio.scheduling.dates import anchor, day_bounds, day_of_week, iter_days
from coachstudio.scheduling.intervals import OpenWindow, overlaps
from coachstudio.scheduling.snapshot import AdditionSnapshot, CoachSnapshot, RuleSnapshot


def resolve_day(
    snapshot: CoachSnapshot, day: date, tz: tzinfo = timezone.utc
) -> list[OpenWindow]:
    """Resolve a coach's open windows for one calendar date.

    1. Every weekly rule for the date's weekday gives a base window.
    2. Blocked slots are subtracted, possibly splitting a window in two.
    3. Additions are unioned in, clipped to the date.
    4. Windows are normalised to a sorted, pairwise disjoint list.
    """
    day_start, day_end = day_bounds(day, tz)
    weekday = day_of_week(day)

    blocks = [b for b in snapshot.blocks if overlaps(b.start, b.end, day_start, day_end)]

    templates: list[OpenWindow] = []
    for rule in snapshot.rules:
        if rule.day_of_week != weekday:
            continue
        window = _rule_window(rule, day, tz)
        if window is None:
            continue
        pieces = [window]
        for block in blocks:
            pieces = [p for piece in pieces for p in piece.subtract(block.start, block.end)]
        templates.extend(pieces)

    additions: list[OpenWindow] = []
    for addition in snapshot.additions:
        window = _addition_window(addition).clip(day_start, day_end)
        if window is not None:
            additions.append(window)

    # Template windows are placed first so they keep their ground against
    # additions of another kind.
    templates.sort(key=lambda w: (w.start, w.kind.value))
    additions.sort(key=lambda w: (w.start, w.kind.value))
    return _normalize(templates + additions)


def resolve_range(
    snapshot: CoachSnapshot, start: date, end: date, tz: tzinfo = timezone.utc
) -> dict[date, list[OpenWindow]]:
    """Resolve every date from `start` to `end` inclusive."""
    return {day: resolve_day(snapshot, day, tz) for day in iter_days(start, end)}


def _rule_window(rule: RuleSnapshot, day: date, tz: tzinfo) -> OpenWindow | None:
    start = anchor(day, rule.start_time, tz)
    end = anchor(day, rule.end_time, tz)
    if end <= start:
        return None
    return OpenWindow(
        start=start,
        end=end,
        kind=rule.session_kind,
        room_id=rule.room_id,
        capacity=rule.capacity,
        slot_duration_minutes=rule.slot_duration_minutes,
    )


def _addition_window(addition: AdditionSnapshot) -> OpenWindow:
    return OpenWindow(
        start=addition.start,
        end=addition.end,
        kind=addition.session_kind,
        room_id=addition.room_id,
        capacity=addition.capacity,
        slot_duration_minutes=addition.slot_duration_minutes,
        from_addition=True,
    )


def _normalize(candidates: list[OpenWindow]) -> list[OpenWindow]:
    """Fold candidates into a disjoint list, in priority order.

    A candidate loses whatever part of it overlaps an already accepted window
    of another kind; what is left merges with overlapping windows of its own
    kind into the union of their bounds. Touching windows stay separate.
    """
    result: list[OpenWindow] = []
    for candidate in candidates:
        pieces = [candidate]
        for accepted in result:
            if accepted.kind != candidate.kind:
                pieces = [
                    p for piece in pieces for p in piece.subtract(accepted.start, accepted.end)
                ]
        for piece in pieces:
            result = _merge_into(result, piece)
    return sorted(result, key=lambda w: (w.start, w.end))


def _merge_into(result: list[OpenWindow], piece: OpenWindow) -> list[OpenWindow]:
    same_kind = [w for w in result if w.kind == piece.kind and w.overlaps(piece)]
    if not same_kind:
        return [*result, piece]
    group = [*same_kind, piece]
    # The earliest window, preferring template over addition, keeps its offering.
    first = min(group, key=lambda w: (w.start, w.from_addition))
    merged = replace(
        first,
        start=min(w.start for w in group),
        end=max(w.end for w in group),
    )
    kept = [w for w in result if not any(w is s for s in same_kind)]
    return [*kept, merged]
