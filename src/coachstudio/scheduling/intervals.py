"""Half-open time intervals.

Two intervals [a.start, a.end) and [b.start, b.end) overlap iff
a.start < b.end and b.start < a.end, so back-to-back intervals do not.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Self

from coachstudio.models.availability import DEFAULT_SLOT_DURATION_MINUTES
from coachstudio.models.enums import SessionKind


def overlaps(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    return a_start < b_end and b_start < a_end


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self.start, self.end, other.start, other.end)

    def contains(self, start: datetime, end: datetime) -> bool:
        return self.start <= start and end <= self.end

    def clip(self, start: datetime, end: datetime) -> Self | None:
        """Restrict to [start, end); None when nothing is left."""
        clipped = replace(self, start=max(self.start, start), end=min(self.end, end))
        return None if clipped.is_empty else clipped

    def subtract(self, start: datetime, end: datetime) -> list[Self]:
        """Remove [start, end) from this interval.

        Yields zero pieces (fully covered), one (trimmed at an edge) or two
        (split by a removal strictly inside).
        """
        if not overlaps(self.start, self.end, start, end):
            return [self]
        pieces = []
        if self.start < start:
            pieces.append(replace(self, end=start))
        if end < self.end:
            pieces.append(replace(self, start=end))
        return pieces


@dataclass(frozen=True)
class OpenWindow(Interval):
    """A resolved open interval and the offering attached to it."""

    kind: SessionKind = SessionKind.INDIVIDUAL
    room_id: int | None = None
    capacity: int | None = None
    slot_duration_minutes: int = DEFAULT_SLOT_DURATION_MINUTES
    from_addition: bool = False
