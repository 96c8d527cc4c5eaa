"""
Protocols describing the storage collaborators needed by the services.

Implementations live outside the core (an ORM-backed store in production, the
in-memory adapter in tests and the CLI).
"""

from __future__ import annotations

from datetime import date
from typing import AsyncContextManager, List, Optional, Protocol

from ..domain.models import BookingInterval, BookingStatus, CompanySchedule, ServiceProfile


class CatalogRepositoryProtocol(Protocol):
    """Read access to company schedules and services."""

    async def get_company(self, company_id: str) -> Optional[CompanySchedule]:
        """Return the company schedule, or None if unknown."""

    async def get_service(self, service_id: str) -> Optional[ServiceProfile]:
        """Return the service profile, or None if unknown."""


class BookingRepositoryProtocol(Protocol):
    """Storage of booking intervals, pre-scoped to one tenant."""

    async def get_active_intervals(
        self,
        professional_id: str,
        booking_date: date,
    ) -> List[BookingInterval]:
        """Return intervals whose status is neither cancelled nor no_show."""

    async def get_interval(self, booking_id: str) -> Optional[BookingInterval]:
        """Return a booking interval by id, or None if unknown."""

    async def add_interval(self, interval: BookingInterval) -> None:
        """
        Persist a new interval. Called inside ``transaction``.

        Must reject a ``booking_id`` that already exists: an interval leaves
        the active set only through ``update_status``.
        """

    async def update_status(self, booking_id: str, status: BookingStatus) -> BookingInterval:
        """Persist a status change and return the updated interval."""

    def transaction(
        self,
        professional_id: str,
        booking_date: date,
    ) -> AsyncContextManager[None]:
        """
        Serializable scope for one professional and date.

        Reads and writes issued inside it must not interleave with another
        scope for the same key (e.g. SELECT ... FOR UPDATE, advisory lock).
        """
