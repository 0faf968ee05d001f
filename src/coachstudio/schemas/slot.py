from datetime import datetime

from pydantic import BaseModel

from coachstudio.models.enums import SessionKind
from coachstudio.scheduling.policies import Slot


class SlotRead(BaseModel):
    coach_id: int
    coach_name: str | None = None
    start_time: datetime
    end_time: datetime
    session_kind: SessionKind
    room_id: int | None = None
    capacity: int | None = None
    booked_count: int | None = None
    session_id: int | None = None
    is_full: bool = False

    @classmethod
    def from_slot(cls, slot: Slot) -> "SlotRead":
        return cls(
            coach_id=slot.coach_id,
            coach_name=slot.coach_name,
            start_time=slot.start,
            end_time=slot.end,
            session_kind=slot.kind,
            room_id=slot.room_id,
            capacity=slot.capacity,
            booked_count=slot.booked_count,
            session_id=slot.session_id,
            is_full=slot.is_full,
        )
