from datetime import datetime, time

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from coachstudio.database import Base
from coachstudio.models.enums import SessionKind
from coachstudio.models.types import UTCDateTime, enum_type, utcnow

DEFAULT_SLOT_DURATION_MINUTES = 60


class WeeklyAvailabilityRule(Base):
    """A coach's standing weekly template for one weekday."""

    __tablename__ = "weekly_availability_rules"
    __table_args__ = (Index("ix_weekly_rules_coach_day", "coach_id", "day_of_week"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    coach_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    day_of_week: Mapped[int]  # 0=Sunday, 6=Saturday
    start_time: Mapped[time]
    end_time: Mapped[time]
    session_kind: Mapped[SessionKind] = mapped_column(
        enum_type(SessionKind), default=SessionKind.INDIVIDUAL
    )
    capacity: Mapped[int | None] = mapped_column(default=None)  # GROUP only
    room_id: Mapped[int | None] = mapped_column(ForeignKey("rooms.id"), default=None)
    slot_duration_minutes: Mapped[int] = mapped_column(
        default=DEFAULT_SLOT_DURATION_MINUTES
    )  # INDIVIDUAL only
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)


class BlockedSlot(Base):
    """One-off removal of availability, regardless of the weekly template."""

    __tablename__ = "blocked_slots"
    __table_args__ = (Index("ix_blocked_slots_coach_start", "coach_id", "start_time"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    coach_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    start_time: Mapped[datetime] = mapped_column(UTCDateTime)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime)
    reason: Mapped[str | None] = mapped_column(String(255), default=None)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)


class AvailabilityAddition(Base):
    """One-off availability outside the weekly template."""

    __tablename__ = "availability_additions"
    __table_args__ = (Index("ix_additions_coach_start", "coach_id", "start_time"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    coach_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    start_time: Mapped[datetime] = mapped_column(UTCDateTime)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime)
    session_kind: Mapped[SessionKind] = mapped_column(
        enum_type(SessionKind), default=SessionKind.INDIVIDUAL
    )
    capacity: Mapped[int | None] = mapped_column(default=None)
    room_id: Mapped[int | None] = mapped_column(ForeignKey("rooms.id"), default=None)
    slot_duration_minutes: Mapped[int] = mapped_column(
        default=DEFAULT_SLOT_DURATION_MINUTES
    )
    reason: Mapped[str | None] = mapped_column(String(255), default=None)  # e.g. make-up class
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
