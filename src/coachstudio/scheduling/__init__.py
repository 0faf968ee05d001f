from coachstudio.scheduling.booking import book_slot, create_recurring_booking, reschedule_session
from coachstudio.scheduling.guard import find_conflicts, reserve
from coachstudio.scheduling.intervals import Interval, OpenWindow
from coachstudio.scheduling.materializer import (
    GenerationGap,
    MaterializationReport,
    SessionMaterializer,
)
from coachstudio.scheduling.policies import Slot, SlicingPolicy, policy_for
from coachstudio.scheduling.resolver import resolve_day, resolve_range
from coachstudio.scheduling.slicer import merge_slots, resolve_slots, slice_day, slice_windows
from coachstudio.scheduling.snapshot import CoachSnapshot, load_snapshot
from coachstudio.scheduling.transitions import advance, cancel_session

__all__ = [
    "CoachSnapshot",
    "GenerationGap",
    "Interval",
    "MaterializationReport",
    "OpenWindow",
    "SessionMaterializer",
    "SlicingPolicy",
    "Slot",
    "advance",
    "book_slot",
    "cancel_session",
    "create_recurring_booking",
    "find_conflicts",
    "load_snapshot",
    "merge_slots",
    "policy_for",
    "reschedule_session",
    "reserve",
    "resolve_day",
    "resolve_range",
    "resolve_slots",
    "slice_day",
    "slice_windows",
]
