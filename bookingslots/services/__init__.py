"""
Service layer helpers that orchestrate repositories and domain logic.
"""

from .availability import AvailabilityEngine
from .booking import BookingService
from .booking_guard import BookingConflictGuard, KeyedLocks
from .protocols import BookingRepositoryProtocol, CatalogRepositoryProtocol

__all__ = [
    "AvailabilityEngine",
    "BookingConflictGuard",
    "BookingRepositoryProtocol",
    "BookingService",
    "CatalogRepositoryProtocol",
    "KeyedLocks",
]
