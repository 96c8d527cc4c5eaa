"""
Domain models for time ranges, schedules and bookings.
"""

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import FrozenSet, Optional, Union

from .exceptions import InvalidConfigurationError, InvalidRangeError

MINUTES_PER_DAY = 24 * 60

ALLOWED_INTERVALS: FrozenSet[int] = frozenset({15, 30, 60})
MIN_SERVICE_DURATION = 15
MAX_SERVICE_DURATION = 480
MAX_BUFFER_MINUTES = 60


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """
    Wall-clock time with minute resolution, stored as minutes since midnight.

    Invariant: 0 <= minutes < 1440.
    """
    minutes: int

    def __post_init__(self):
        if not 0 <= self.minutes < MINUTES_PER_DAY:
            raise InvalidRangeError(
                f"Time of day must be between 00:00 and 23:59, got {self.minutes} minutes"
            )

    @classmethod
    def parse(cls, value: Union[str, time, "TimeOfDay"]) -> "TimeOfDay":
        """
        Build a TimeOfDay from "HH:MM", "HH:MM:SS" or a ``datetime.time``.

        Seconds are accepted only when zero, since slots have minute resolution.
        """
        if isinstance(value, TimeOfDay):
            return value
        if isinstance(value, time):
            if value.second or value.microsecond:
                raise InvalidRangeError(f"Time {value} has sub-minute precision")
            return cls(value.hour * 60 + value.minute)

        parts = str(value).strip().split(":")
        if len(parts) not in (2, 3) or not all(p.isascii() and p.isdigit() for p in parts):
            raise InvalidRangeError(f"Invalid time format '{value}', expected HH:MM")

        hour, minute = int(parts[0]), int(parts[1])
        second = int(parts[2]) if len(parts) == 3 else 0
        if hour > 23 or minute > 59 or second != 0:
            raise InvalidRangeError(f"Invalid time '{value}'")

        return cls(hour * 60 + minute)

    @property
    def hour(self) -> int:
        return self.minutes // 60

    @property
    def minute(self) -> int:
        return self.minutes % 60

    def plus_minutes(self, minutes: int) -> "TimeOfDay":
        """Return a new TimeOfDay shifted by ``minutes``; fails past 23:59."""
        return TimeOfDay(self.minutes + minutes)

    def to_time(self) -> time:
        return time(hour=self.hour, minute=self.minute)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open range [start, end) on a single day.

    Invariant: start must be before end.
    """
    start: TimeOfDay
    end: TimeOfDay

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidRangeError(f"Start time {self.start} must be before end time {self.end}")

    @classmethod
    def from_strings(cls, start: str, end: str) -> "TimeRange":
        """Build a range from two "HH:MM" strings."""
        return cls(start=TimeOfDay.parse(start), end=TimeOfDay.parse(end))

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end.minutes - self.start.minutes

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ranges do not overlap."""
        return self.start < other.end and other.start < self.end

    def contains(self, point: TimeOfDay) -> bool:
        """Check if a point lies in the range (end excluded)."""
        return self.start <= point < self.end

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        start = max(self.start, other.start)
        end = min(self.end, other.end)

        return TimeRange(start=start, end=end)

    def __str__(self) -> str:
        return f"{self.start} - {self.end}"


@dataclass(frozen=True)
class WorkingWindow:
    """
    Daily opening hours of a company.

    The same window applies to every day of the week.
    """
    open: TimeOfDay
    close: TimeOfDay

    def __post_init__(self):
        if self.open >= self.close:
            raise InvalidRangeError(f"Opening time {self.open} must be before closing time {self.close}")

    def as_range(self) -> TimeRange:
        return TimeRange(start=self.open, end=self.close)

    def length_minutes(self) -> int:
        return self.close.minutes - self.open.minutes

    def fits(self, time_range: TimeRange) -> bool:
        """Check whether a range lies completely inside the window."""
        return self.open <= time_range.start and time_range.end <= self.close


def validate_interval(interval_minutes: int) -> int:
    """Ensure a booking interval is one of the supported grid steps."""
    if interval_minutes not in ALLOWED_INTERVALS:
        raise InvalidConfigurationError(
            f"Booking interval must be one of {sorted(ALLOWED_INTERVALS)}, got {interval_minutes}"
        )
    return interval_minutes


def validate_service_duration(duration_minutes: int, buffer_minutes: int = 0) -> None:
    """Ensure service duration and buffer are inside the supported bounds."""
    if not MIN_SERVICE_DURATION <= duration_minutes <= MAX_SERVICE_DURATION:
        raise InvalidConfigurationError(
            f"Service duration must be between {MIN_SERVICE_DURATION} and "
            f"{MAX_SERVICE_DURATION} minutes, got {duration_minutes}"
        )
    if not 0 <= buffer_minutes <= MAX_BUFFER_MINUTES:
        raise InvalidConfigurationError(
            f"Buffer time must be between 0 and {MAX_BUFFER_MINUTES} minutes, got {buffer_minutes}"
        )


@dataclass(frozen=True)
class ServiceProfile:
    """Scheduling-relevant view of a service offered by a company."""
    service_id: str
    company_id: str
    duration_minutes: int
    buffer_minutes: int = 0
    is_active: bool = True
    name: str = ""

    def __post_init__(self):
        validate_service_duration(self.duration_minutes, self.buffer_minutes)

    def total_duration(self) -> int:
        """Minutes the professional is occupied, including buffer time."""
        return self.duration_minutes + self.buffer_minutes


@dataclass(frozen=True)
class CompanySchedule:
    """Booking configuration of a company."""
    company_id: str
    working_window: WorkingWindow
    interval_minutes: int = 30
    is_active: bool = True
    booking_advance_days: int = 30
    cancellation_hours: int = 2
    timezone: str = "America/Sao_Paulo"
    name: str = ""

    def __post_init__(self):
        validate_interval(self.interval_minutes)


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_active(self) -> bool:
        """Active bookings block overlapping slots."""
        return self not in INACTIVE_STATUSES


INACTIVE_STATUSES: FrozenSet[BookingStatus] = frozenset(
    {BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
)


@dataclass(frozen=True)
class BookingInterval:
    """
    Occupied span of a booking for one professional on one date.

    ``time_range`` covers the service duration plus buffer time.
    """
    booking_id: str
    professional_id: str
    booking_date: date
    time_range: TimeRange
    status: BookingStatus = BookingStatus.CONFIRMED
    company_id: Optional[str] = None
    service_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def with_status(self, status: BookingStatus) -> "BookingInterval":
        """Return a copy of this interval with another status."""
        return BookingInterval(
            booking_id=self.booking_id,
            professional_id=self.professional_id,
            booking_date=self.booking_date,
            time_range=self.time_range,
            status=status,
            company_id=self.company_id,
            service_id=self.service_id,
        )


@dataclass(frozen=True)
class Slot:
    """
    A computed, never persisted, bookable candidate.

    ``end`` is the nominal service end; ``occupied`` includes buffer time and is
    the span checked for conflicts.
    """
    start: TimeOfDay
    end: TimeOfDay
    available: bool
    occupied: Optional[TimeRange] = field(default=None, compare=False)

    def format_display(self) -> str:
        """Format: HH:MM – HH:MM (available|booked)"""
        state = "available" if self.available else "booked"
        return f"{self.start} – {self.end} ({state})"
