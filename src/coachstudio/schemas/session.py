from datetime import datetime
from typing import Self

from pydantic import AwareDatetime, BaseModel, Field, model_validator

from coachstudio.models.enums import BookingStatus, SessionKind, SessionStatus

CANCELLED_BY_PATTERN = r"^(member|coach)$"


class BookingCreate(BaseModel):
    coach_id: int
    member_id: int
    start_time: AwareDatetime
    end_time: AwareDatetime
    session_kind: SessionKind = SessionKind.INDIVIDUAL
    room_id: int | None = None

    @model_validator(mode="after")
    def check_range(self) -> Self:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class BookingRead(BaseModel):
    id: int
    session_id: int
    member_id: int
    status: BookingStatus
    created_at: datetime
    cancelled_at: datetime | None = None

    model_config = {"from_attributes": True}


class TrainingSessionRead(BaseModel):
    id: int
    coach_id: int
    room_id: int
    start_time: datetime
    end_time: datetime
    session_kind: SessionKind
    capacity: int
    status: SessionStatus
    recurring_booking_id: int | None = None
    member_id: int | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CancelRequest(BaseModel):
    cancelled_by: str = Field(default="member", pattern=CANCELLED_BY_PATTERN)


class RescheduleRequest(BaseModel):
    start_time: AwareDatetime
    end_time: AwareDatetime

    @model_validator(mode="after")
    def check_range(self) -> Self:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self
