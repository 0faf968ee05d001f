from coachstudio.models.availability import (
    AvailabilityAddition,
    BlockedSlot,
    WeeklyAvailabilityRule,
)
from coachstudio.models.enums import BookingStatus, SessionKind, SessionStatus, UserRole
from coachstudio.models.recurring import RecurringBooking
from coachstudio.models.room import Room
from coachstudio.models.session import Booking, TrainingSession
from coachstudio.models.user import User

__all__ = [
    "AvailabilityAddition",
    "BlockedSlot",
    "Booking",
    "BookingStatus",
    "RecurringBooking",
    "Room",
    "SessionKind",
    "SessionStatus",
    "TrainingSession",
    "User",
    "UserRole",
    "WeeklyAvailabilityRule",
]
