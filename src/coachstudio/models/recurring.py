from datetime import date, datetime, time

from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from coachstudio.database import Base
from coachstudio.models.types import UTCDateTime, utcnow


class RecurringBooking(Base):
    """Weekly template a member books with a coach; materialized into sessions."""

    __tablename__ = "recurring_bookings"
    __table_args__ = (Index("ix_recurring_active_coach", "active", "coach_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    coach_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    member_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    day_of_week: Mapped[int]  # 0=Sunday, 6=Saturday
    start_time: Mapped[time]
    end_time: Mapped[time]
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"))
    start_date: Mapped[date]
    end_date: Mapped[date | None] = mapped_column(default=None)  # None = indefinite
    active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime, default=None)
