from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from coachstudio.schemas.common import HHMM


class RecurringBookingCreate(BaseModel):
    coach_id: int
    member_id: int
    day_of_week: int = Field(ge=0, le=6)  # 0=Sunday
    start_time: HHMM
    end_time: HHMM
    room_id: int | None = None
    start_date: date | None = None  # defaults to today in the studio timezone
    end_date: date | None = None

    @model_validator(mode="after")
    def check_window(self) -> Self:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class RecurringBookingRead(BaseModel):
    id: int
    coach_id: int
    member_id: int
    day_of_week: int
    start_time: HHMM
    end_time: HHMM
    room_id: int
    start_date: date
    end_date: date | None = None
    active: bool
    created_at: datetime
    cancelled_at: datetime | None = None

    model_config = {"from_attributes": True}


class RecurringBookingCreated(RecurringBookingRead):
    sessions_created: int = 0


class RecurringCancelResult(BaseModel):
    recurring_booking_id: int
    sessions_cancelled: int
