"""
In-memory repositories for tests, demos and the CLI.

They implement the catalog and booking protocols without a database and can
be seeded from ``AppConfig``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Dict, Iterable, List, Optional

from ..config import AppConfig
from ..domain.conflicts import find_conflicts
from ..domain.exceptions import BookingNotFoundError, InvalidBookingStateError, SlotUnavailableError
from ..domain.models import BookingInterval, BookingStatus, CompanySchedule, ServiceProfile
from ..services.booking_guard import KeyedLocks


class InMemoryCatalog:
    """Company and service lookup backed by dictionaries."""

    def __init__(
        self,
        companies: Iterable[CompanySchedule] = (),
        services: Iterable[ServiceProfile] = (),
    ) -> None:
        self._companies: Dict[str, CompanySchedule] = {c.company_id: c for c in companies}
        self._services: Dict[str, ServiceProfile] = {s.service_id: s for s in services}

    @classmethod
    def from_config(cls, config: AppConfig) -> "InMemoryCatalog":
        return cls(
            companies=[company.to_schedule() for company in config.companies],
            services=[service.to_profile() for service in config.services],
        )

    async def get_company(self, company_id: str) -> Optional[CompanySchedule]:
        return self._companies.get(company_id)

    async def get_service(self, service_id: str) -> Optional[ServiceProfile]:
        return self._services.get(service_id)


class InMemoryBookingStore:
    """
    Booking intervals kept in a dict, with one lock per professional and date.

    Every insert, seeded or added, goes through the same checks, playing the
    role of storage-level constraints: ids are unique and active intervals of
    a professional never overlap on a date.
    """

    def __init__(self, intervals: Iterable[BookingInterval] = ()) -> None:
        self._intervals: Dict[str, BookingInterval] = {}
        self._locks = KeyedLocks()
        for interval in intervals:
            self._insert(interval)

    @classmethod
    def from_config(cls, config: AppConfig) -> "InMemoryBookingStore":
        return cls(
            seed.to_interval(fallback_id=f"seed-{index}")
            for index, seed in enumerate(config.bookings, 1)
        )

    def all_intervals(self) -> List[BookingInterval]:
        return list(self._intervals.values())

    def _active_for(self, professional_id: str, booking_date: date) -> List[BookingInterval]:
        intervals = [
            interval for interval in self._intervals.values()
            if interval.professional_id == professional_id
            and interval.booking_date == booking_date
            and interval.is_active
        ]
        return sorted(intervals, key=lambda i: i.time_range.start)

    def _insert(self, interval: BookingInterval) -> None:
        if interval.booking_id in self._intervals:
            raise InvalidBookingStateError(
                f"Booking '{interval.booking_id}' already exists"
            )

        if interval.is_active:
            conflicts = find_conflicts(
                interval.time_range,
                self._active_for(interval.professional_id, interval.booking_date),
            )
            if conflicts:
                raise SlotUnavailableError(
                    f"Interval {interval.time_range} overlaps an active booking",
                    conflicts=conflicts,
                )

        self._intervals[interval.booking_id] = interval

    async def get_active_intervals(
        self,
        professional_id: str,
        booking_date: date,
    ) -> List[BookingInterval]:
        return self._active_for(professional_id, booking_date)

    async def get_interval(self, booking_id: str) -> Optional[BookingInterval]:
        return self._intervals.get(booking_id)

    async def add_interval(self, interval: BookingInterval) -> None:
        self._insert(interval)

    async def update_status(self, booking_id: str, status: BookingStatus) -> BookingInterval:
        interval = self._intervals.get(booking_id)
        if interval is None:
            raise BookingNotFoundError(f"Booking '{booking_id}' not found")
        updated = interval.with_status(status)
        self._intervals[booking_id] = updated
        return updated

    @asynccontextmanager
    async def transaction(self, professional_id: str, booking_date: date) -> AsyncIterator[None]:
        async with self._locks.hold((professional_id, booking_date)):
            yield
