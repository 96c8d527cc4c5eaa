"""
Write-time gate that keeps a professional's active bookings non-overlapping.

Check and insert run as one unit per ``(professional_id, booking_date)``: an
in-process lock serializes attempts handled by this process, and the
repository's transaction scope serializes them across processes.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Dict, Hashable, Tuple

from ..domain.conflicts import find_conflicts
from ..domain.exceptions import InvalidBookingStateError, SlotUnavailableError
from ..domain.models import BookingInterval
from .protocols import BookingRepositoryProtocol

logger = logging.getLogger(__name__)

BookingKey = Tuple[str, date]


class KeyedLocks:
    """
    Registry of asyncio locks, one per key, dropped once nobody holds or waits.
    """

    def __init__(self) -> None:
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]


class BookingConflictGuard:
    """
    Accepts or rejects proposed booking intervals.

    The guard re-reads the active intervals inside the serialized scope, so a
    slot shown as available earlier can still be rejected here.
    """

    def __init__(self, bookings: BookingRepositoryProtocol, locks: KeyedLocks | None = None) -> None:
        self._bookings = bookings
        self._locks = locks if locks is not None else KeyedLocks()

    async def accept(self, interval: BookingInterval) -> BookingInterval:
        """
        Persist the interval if it overlaps no active booking.

        Raises:
            InvalidBookingStateError: If the interval's status is not active
            SlotUnavailableError: If an active booking overlaps the interval
        """
        if not interval.is_active:
            raise InvalidBookingStateError(
                f"Cannot book an interval with status '{interval.status.value}'"
            )

        key: BookingKey = (interval.professional_id, interval.booking_date)

        async with self._locks.hold(key):
            async with self._bookings.transaction(*key):
                existing = await self._bookings.get_active_intervals(*key)
                conflicts = find_conflicts(interval.time_range, existing)

                if conflicts:
                    logger.warning(
                        "Rejected booking %s for professional %s on %s (%s): overlaps %s",
                        interval.booking_id,
                        interval.professional_id,
                        interval.booking_date,
                        interval.time_range,
                        ", ".join(str(c) for c in conflicts),
                    )
                    raise SlotUnavailableError(
                        f"Time {interval.time_range} on {interval.booking_date} is no longer available",
                        conflicts=conflicts,
                    )

                await self._bookings.add_interval(interval)

        logger.info(
            "Accepted booking %s for professional %s on %s (%s)",
            interval.booking_id,
            interval.professional_id,
            interval.booking_date,
            interval.time_range,
        )
        return interval
