"""
Domain layer - Pure scheduling logic without external dependencies.
"""

from .analytics import EfficiencyAnalyzer, WorkloadForecaster
from .calendar import WorkingHoursCalendar
from .conflicts import ConflictDetector
from .day_plan import DayPlanEntry, DayPlanner
from .intervals import contains, overlaps
from .lifecycle import LifecyclePolicy, PolicyDecision
from .models import (
    Booking,
    BookingStatus,
    BookingType,
    DayHours,
    RankedSlot,
    Slot,
    TimeOfDay,
    Trainer,
    WorkingHours,
)
from .recommender import SlotRecommender
from .slot_generator import SlotGenerator
from .validation import SessionValidator, ValidationResult, Violation

__all__ = [
    "Booking",
    "BookingStatus",
    "BookingType",
    "ConflictDetector",
    "DayHours",
    "DayPlanEntry",
    "DayPlanner",
    "EfficiencyAnalyzer",
    "LifecyclePolicy",
    "PolicyDecision",
    "RankedSlot",
    "SessionValidator",
    "Slot",
    "SlotGenerator",
    "SlotRecommender",
    "TimeOfDay",
    "Trainer",
    "ValidationResult",
    "Violation",
    "WorkingHours",
    "WorkingHoursCalendar",
    "WorkloadForecaster",
    "contains",
    "overlaps",
]
