"""
Domain layer - Pure business logic without external dependencies.
"""

from .conflicts import find_conflicts, has_conflict, is_available
from .models import (
    BookingInterval,
    BookingStatus,
    CompanySchedule,
    ServiceProfile,
    Slot,
    TimeOfDay,
    TimeRange,
    WorkingWindow,
)
from .slot_generator import SlotGenerator

__all__ = [
    "BookingInterval",
    "BookingStatus",
    "CompanySchedule",
    "ServiceProfile",
    "Slot",
    "SlotGenerator",
    "TimeOfDay",
    "TimeRange",
    "WorkingWindow",
    "find_conflicts",
    "has_conflict",
    "is_available",
]
