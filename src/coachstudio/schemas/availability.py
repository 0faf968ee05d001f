from datetime import datetime
from typing import Self

from pydantic import AwareDatetime, BaseModel, Field, model_validator

from coachstudio.models.availability import DEFAULT_SLOT_DURATION_MINUTES
from coachstudio.models.enums import SessionKind
from coachstudio.schemas.common import HHMM


class WeeklyRuleBase(BaseModel):
    start_time: HHMM
    end_time: HHMM
    session_kind: SessionKind = SessionKind.INDIVIDUAL
    capacity: int | None = Field(default=None, ge=1)
    room_id: int | None = None
    slot_duration_minutes: int = Field(default=DEFAULT_SLOT_DURATION_MINUTES, gt=0, le=480)


class WeeklyRuleCreate(WeeklyRuleBase):
    @model_validator(mode="after")
    def check_window(self) -> Self:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        if self.session_kind == SessionKind.GROUP and self.capacity is None:
            raise ValueError("capacity is required for GROUP availability")
        return self


class WeeklyRuleRead(WeeklyRuleBase):
    id: int
    coach_id: int
    day_of_week: int

    model_config = {"from_attributes": True}


class BlockedSlotCreate(BaseModel):
    start_time: AwareDatetime
    end_time: AwareDatetime
    reason: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def check_range(self) -> Self:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class BlockedSlotRead(BaseModel):
    id: int
    coach_id: int
    start_time: datetime
    end_time: datetime
    reason: str | None = None

    model_config = {"from_attributes": True}


class AvailabilityAdditionCreate(BlockedSlotCreate):
    session_kind: SessionKind = SessionKind.INDIVIDUAL
    capacity: int | None = Field(default=None, ge=1)
    room_id: int | None = None
    slot_duration_minutes: int = Field(default=DEFAULT_SLOT_DURATION_MINUTES, gt=0, le=480)

    @model_validator(mode="after")
    def check_capacity(self) -> Self:
        if self.session_kind == SessionKind.GROUP and self.capacity is None:
            raise ValueError("capacity is required for GROUP availability")
        return self


class AvailabilityAdditionRead(BlockedSlotRead):
    session_kind: SessionKind
    capacity: int | None = None
    room_id: int | None = None
    slot_duration_minutes: int
