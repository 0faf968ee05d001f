from datetime import datetime

from sqlalchemy import ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from coachstudio.database import Base
from coachstudio.models.enums import BookingStatus, SessionKind, SessionStatus
from coachstudio.models.types import UTCDateTime, enum_type, utcnow


class TrainingSession(Base):
    __tablename__ = "training_sessions"
    __table_args__ = (
        # Idempotency key for materialization: one session per occurrence.
        UniqueConstraint(
            "recurring_booking_id", "start_time", name="uq_sessions_recurring_occurrence"
        ),
        Index("ix_sessions_coach_start", "coach_id", "start_time"),
        Index("ix_sessions_room_start", "room_id", "start_time"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    coach_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"))
    start_time: Mapped[datetime] = mapped_column(UTCDateTime)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime)
    session_kind: Mapped[SessionKind] = mapped_column(enum_type(SessionKind))
    capacity: Mapped[int] = mapped_column(default=1)
    status: Mapped[SessionStatus] = mapped_column(
        enum_type(SessionStatus), default=SessionStatus.SCHEDULED
    )  # scheduled -> completed | cancelled
    recurring_booking_id: Mapped[int | None] = mapped_column(
        ForeignKey("recurring_bookings.id"), default=None
    )
    member_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id"), default=None
    )  # direct individual bookings
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("session_id", "member_id", name="uq_bookings_session_member"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    session_id: Mapped[int] = mapped_column(ForeignKey("training_sessions.id"))
    member_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    status: Mapped[BookingStatus] = mapped_column(
        enum_type(BookingStatus), default=BookingStatus.CONFIRMED
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime, default=None)
