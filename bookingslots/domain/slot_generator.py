"""
Generation of grid-aligned candidate slots inside a working window.

Pure domain logic without any external dependencies (no I/O, no clock).
"""

from typing import List

from .models import TimeOfDay, TimeRange, WorkingWindow, validate_interval, validate_service_duration


class SlotGenerator:
    """
    Walks a working window in fixed steps and emits candidate ranges.

    Algorithm:
    1. Start the cursor at the opening time
    2. While the occupied span (duration + buffer) ends at or before closing,
       emit it
    3. Advance the cursor by the booking interval (buffer never affects the step)
    """

    def __init__(self, working_window: WorkingWindow, interval_minutes: int):
        self.working_window = working_window
        self.interval_minutes = validate_interval(interval_minutes)

    def generate(self, duration_minutes: int, buffer_minutes: int = 0) -> List[TimeRange]:
        """
        Enumerate every candidate occupied span for a service.

        Args:
            duration_minutes: Nominal service duration
            buffer_minutes: Dead time attached after the service

        Returns:
            Ranges ordered by start time; empty when the service does not fit.
        """
        validate_service_duration(duration_minutes, buffer_minutes)
        occupied = duration_minutes + buffer_minutes

        close = self.working_window.close.minutes
        cursor = self.working_window.open.minutes
        candidates: List[TimeRange] = []

        while cursor + occupied <= close:
            candidates.append(
                TimeRange(start=TimeOfDay(cursor), end=TimeOfDay(cursor + occupied))
            )
            cursor += self.interval_minutes

        return candidates
