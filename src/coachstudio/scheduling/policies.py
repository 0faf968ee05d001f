"""Per-kind slicing policies.

INDIVIDUAL and GROUP windows behave differently at every stage (how they are
cut into slots, what makes a slot unavailable, how capacity is counted). Each
kind is one `SlicingPolicy`; `policy_for` is the single dispatch point.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from coachstudio.models.enums import SessionKind
from coachstudio.scheduling.intervals import OpenWindow, overlaps
from coachstudio.scheduling.snapshot import CoachSnapshot, SessionSnapshot


@dataclass(frozen=True)
class Slot:
    """A single bookable unit offered to members."""

    coach_id: int
    coach_name: str | None
    start: datetime
    end: datetime
    kind: SessionKind
    room_id: int | None = None
    capacity: int | None = None
    booked_count: int | None = None
    session_id: int | None = None

    @property
    def is_full(self) -> bool:
        if self.capacity is None or self.booked_count is None:
            return False
        return self.booked_count >= self.capacity


class SlicingPolicy(ABC):
    """How one session kind turns open windows into slots."""

    kind: SessionKind

    @abstractmethod
    def candidates(self, window: OpenWindow) -> Iterator[tuple[datetime, datetime]]:
        """Yield the [start, end) candidates a window is cut into."""
        ...

    @abstractmethod
    def offer(
        self, snapshot: CoachSnapshot, window: OpenWindow, start: datetime, end: datetime
    ) -> Slot | None:
        """Build the slot for a candidate, or None if it cannot be offered."""
        ...

    @abstractmethod
    def session_capacity(self, window: OpenWindow) -> int:
        """Capacity of a session created from this window."""
        ...


class IndividualPolicy(SlicingPolicy):
    kind = SessionKind.INDIVIDUAL

    def candidates(self, window: OpenWindow) -> Iterator[tuple[datetime, datetime]]:
        if window.slot_duration_minutes <= 0:
            return
        step = timedelta(minutes=window.slot_duration_minutes)
        tz = window.start.tzinfo
        # Stepped in UTC: every slot lasts exactly `step`, DST changes included.
        slot_start = window.start.astimezone(timezone.utc)
        end = window.end.astimezone(timezone.utc)
        # A trailing remainder shorter than one slot is dropped.
        while slot_start + step <= end:
            yield slot_start.astimezone(tz), (slot_start + step).astimezone(tz)
            slot_start += step

    def offer(
        self, snapshot: CoachSnapshot, window: OpenWindow, start: datetime, end: datetime
    ) -> Slot | None:
        if blocking_sessions(snapshot, window.room_id, start, end):
            return None
        return Slot(
            coach_id=snapshot.coach_id,
            coach_name=snapshot.coach_name,
            start=start,
            end=end,
            kind=self.kind,
            room_id=window.room_id,
        )

    def session_capacity(self, window: OpenWindow) -> int:
        return 1


class GroupPolicy(SlicingPolicy):
    kind = SessionKind.GROUP

    def candidates(self, window: OpenWindow) -> Iterator[tuple[datetime, datetime]]:
        yield window.start, window.end

    def offer(
        self, snapshot: CoachSnapshot, window: OpenWindow, start: datetime, end: datetime
    ) -> Slot | None:
        instance = find_group_instance(snapshot, start, end)
        others = [
            s
            for s in blocking_sessions(snapshot, window.room_id, start, end)
            if instance is None or s.id != instance.id
        ]
        if others:
            return None
        return Slot(
            coach_id=snapshot.coach_id,
            coach_name=snapshot.coach_name,
            start=start,
            end=end,
            kind=self.kind,
            room_id=window.room_id,
            capacity=instance.capacity if instance else self.session_capacity(window),
            booked_count=instance.booked_count if instance else 0,
            session_id=instance.id if instance else None,
        )

    def session_capacity(self, window: OpenWindow) -> int:
        return window.capacity or 1


_POLICIES: dict[SessionKind, SlicingPolicy] = {
    SessionKind.INDIVIDUAL: IndividualPolicy(),
    SessionKind.GROUP: GroupPolicy(),
}


def policy_for(kind: SessionKind | str) -> SlicingPolicy:
    return _POLICIES[SessionKind(kind)]


def blocking_sessions(
    snapshot: CoachSnapshot, room_id: int | None, start: datetime, end: datetime
) -> list[SessionSnapshot]:
    """Live sessions of the coach, or in the room, overlapping [start, end)."""
    return [
        s
        for s in snapshot.sessions
        if overlaps(s.start, s.end, start, end)
        and (s.coach_id == snapshot.coach_id or (room_id is not None and s.room_id == room_id))
    ]


def find_group_instance(
    snapshot: CoachSnapshot, start: datetime, end: datetime
) -> SessionSnapshot | None:
    """The coach's group session occupying exactly [start, end), if created."""
    for s in snapshot.sessions:
        if (
            s.coach_id == snapshot.coach_id
            and s.session_kind == SessionKind.GROUP
            and s.start == start
            and s.end == end
        ):
            return s
    return None
