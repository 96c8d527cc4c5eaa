"""
Overlap predicates between a candidate range and existing bookings.

These functions hold no state and are safe to call from concurrent readers.
"""

from typing import Iterable, List, Union

from .models import BookingInterval, TimeRange

Occupied = Union[TimeRange, BookingInterval]


def _as_range(item: Occupied) -> TimeRange:
    if isinstance(item, BookingInterval):
        return item.time_range
    return item


def find_conflicts(candidate: TimeRange, existing: Iterable[Occupied]) -> List[TimeRange]:
    """Return the existing ranges that overlap the candidate, in input order."""
    return [
        occupied for occupied in map(_as_range, existing)
        if candidate.overlaps(occupied)
    ]


def has_conflict(candidate: TimeRange, existing: Iterable[Occupied]) -> bool:
    """True if the candidate overlaps any existing range."""
    return any(candidate.overlaps(_as_range(item)) for item in existing)


def is_available(candidate: TimeRange, existing: Iterable[Occupied]) -> bool:
    """True if the candidate overlaps none of the existing ranges."""
    return not has_conflict(candidate, existing)
