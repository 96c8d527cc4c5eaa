"""
Domain-specific exception hierarchy for the booking core.

Each error carries an ``http_status`` hint so a web layer can map it without
knowing the individual classes.
"""

from typing import Sequence


class BookingError(Exception):
    """Base class for all application-level errors."""

    http_status = 400


class InvalidRangeError(BookingError, ValueError):
    """Raised when a time or time range is malformed (end <= start, out of day)."""


class InvalidConfigurationError(BookingError, ValueError):
    """Raised when a schedule or service setting is outside its allowed values."""


class CompanyNotFoundError(BookingError):
    """Raised when a company is missing or inactive."""

    http_status = 404


class ServiceNotFoundError(BookingError):
    """Raised when a service is missing, inactive or owned by another company."""

    http_status = 404


class BookingNotFoundError(BookingError):
    """Raised when a booking id is unknown to the repository."""

    http_status = 404


class SlotUnavailableError(BookingError):
    """Raised when a proposed booking overlaps an active booking."""

    http_status = 409

    def __init__(self, message: str, conflicts: Sequence = ()) -> None:
        super().__init__(message)
        self.conflicts = list(conflicts)


class InvalidStatusTransitionError(BookingError):
    """Raised when a booking cannot move from its current status to the target."""

    http_status = 409


class CancellationNotAllowedError(BookingError):
    """Raised when a booking is past its cancellation deadline or not cancellable."""

    http_status = 409


class InvalidBookingStateError(BookingError, ValueError):
    """Raised when an interval with an inactive status is proposed for booking."""

    http_status = 409


class BookingWindowError(BookingError):
    """Raised when a date is in the past or beyond the advance booking window."""

    http_status = 422


class OutsideWorkingWindowError(BookingError):
    """Raised when a booking does not fit inside the company's working hours."""

    http_status = 422
