"""
Booking lifecycle rules: status transitions, cancellation and booking window.

Plain functions over ``BookingInterval`` data; none of them touch storage.
"""

from datetime import date
from typing import Dict, FrozenSet

import pendulum
from pendulum import DateTime

from .exceptions import BookingWindowError, InvalidStatusTransitionError
from .models import BookingInterval, BookingStatus

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.IN_PROGRESS,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.IN_PROGRESS,
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

CANCELLABLE_STATUSES: FrozenSet[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    """
    Validate a status change.

    Raises:
        InvalidStatusTransitionError: If the table does not allow the change
    """
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(
            f"Cannot change booking status from '{current.value}' to '{target.value}'"
        )


def booking_start(interval: BookingInterval, timezone: str) -> DateTime:
    """Start of the booking as an aware datetime in the company timezone."""
    start = interval.time_range.start
    day = interval.booking_date
    return pendulum.datetime(
        day.year, day.month, day.day, start.hour, start.minute, tz=timezone
    )


def is_upcoming(interval: BookingInterval, now: DateTime, timezone: str = "UTC") -> bool:
    """Booking starts in the future and is still pending or confirmed."""
    return (
        interval.status in CANCELLABLE_STATUSES
        and booking_start(interval, timezone) > now
    )


def can_be_cancelled(
    interval: BookingInterval,
    now: DateTime,
    cancellation_hours: int = 0,
    timezone: str = "UTC",
) -> bool:
    """
    Check whether a booking may still be cancelled.

    A booking is cancellable while pending or confirmed and more than
    ``cancellation_hours`` before its start.
    """
    if interval.status not in CANCELLABLE_STATUSES:
        return False
    deadline = booking_start(interval, timezone).subtract(hours=cancellation_hours)
    return now < deadline


def ensure_bookable_date(booking_date: date, today: date, advance_days: int) -> None:
    """
    Ensure a date lies between today and the company's advance booking limit.

    Raises:
        BookingWindowError: If the date is in the past or too far ahead
    """
    if booking_date < today:
        raise BookingWindowError(f"Booking date {booking_date} is in the past")

    last_day = pendulum.date(today.year, today.month, today.day).add(days=advance_days)
    if booking_date > last_day:
        raise BookingWindowError(
            f"Booking date {booking_date} is more than {advance_days} days ahead"
        )
