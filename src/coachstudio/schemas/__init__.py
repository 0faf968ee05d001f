from coachstudio.schemas.availability import (
    AvailabilityAdditionCreate,
    AvailabilityAdditionRead,
    BlockedSlotCreate,
    BlockedSlotRead,
    WeeklyRuleCreate,
    WeeklyRuleRead,
)
from coachstudio.schemas.jobs import (
    AdvanceResult,
    GenerationGapRead,
    MaterializationReportRead,
    StatusResponse,
)
from coachstudio.schemas.recurring import (
    RecurringBookingCreate,
    RecurringBookingCreated,
    RecurringBookingRead,
    RecurringCancelResult,
)
from coachstudio.schemas.session import (
    BookingCreate,
    BookingRead,
    CancelRequest,
    RescheduleRequest,
    TrainingSessionRead,
)
from coachstudio.schemas.slot import SlotRead
from coachstudio.schemas.user import UserRead

__all__ = [
    "AdvanceResult",
    "AvailabilityAdditionCreate",
    "AvailabilityAdditionRead",
    "BlockedSlotCreate",
    "BlockedSlotRead",
    "BookingCreate",
    "BookingRead",
    "CancelRequest",
    "GenerationGapRead",
    "MaterializationReportRead",
    "RecurringBookingCreate",
    "RecurringBookingCreated",
    "RecurringBookingRead",
    "RecurringCancelResult",
    "RescheduleRequest",
    "SlotRead",
    "StatusResponse",
    "TrainingSessionRead",
    "UserRead",
    "WeeklyRuleCreate",
    "WeeklyRuleRead",
]
