"""
Read-path slot listing for a professional, service and date.

The engine fetches the company schedule, the service and the active bookings
through repository protocols, then delegates the computation to the domain
``SlotGenerator`` and conflict predicates. It never writes.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Tuple

from ..domain.conflicts import is_available
from ..domain.exceptions import CompanyNotFoundError, ServiceNotFoundError
from ..domain.models import BookingInterval, CompanySchedule, ServiceProfile, Slot, TimeRange
from ..domain.slot_generator import SlotGenerator
from .protocols import BookingRepositoryProtocol, CatalogRepositoryProtocol

logger = logging.getLogger(__name__)


async def resolve_company_and_service(
    catalog: CatalogRepositoryProtocol,
    company_id: str,
    service_id: str,
) -> Tuple[CompanySchedule, ServiceProfile]:
    """
    Load an active company and one of its active services.

    Raises:
        CompanyNotFoundError: If the company is missing or inactive
        ServiceNotFoundError: If the service is missing, inactive or foreign
    """
    company = await catalog.get_company(company_id)
    if company is None or not company.is_active:
        raise CompanyNotFoundError(f"Company '{company_id}' not found or inactive")

    service = await catalog.get_service(service_id)
    if service is None or not service.is_active or service.company_id != company.company_id:
        raise ServiceNotFoundError(f"Service '{service_id}' not found or inactive")

    return company, service


class AvailabilityEngine:
    """
    Orchestrates repository reads and slot calculation.

    Every grid slot is returned with an ``available`` flag; hiding booked slots
    is left to the caller via ``include_unavailable``.
    """

    def __init__(
        self,
        catalog: CatalogRepositoryProtocol,
        bookings: BookingRepositoryProtocol,
    ) -> None:
        self._catalog = catalog
        self._bookings = bookings

    async def list_slots(
        self,
        *,
        company_id: str,
        professional_id: str,
        service_id: str,
        booking_date: date,
        include_unavailable: bool = True,
    ) -> List[Slot]:
        """
        Compute the day's slots for a professional and service.

        An empty list means the day is fully booked or the service does not
        fit into the working window.
        """
        company, service = await resolve_company_and_service(
            self._catalog, company_id, service_id
        )

        existing = await self._bookings.get_active_intervals(professional_id, booking_date)

        slots = self.calculate_slots(company=company, service=service, existing=existing)

        logger.debug(
            "Computed %d slots (%d available) for professional %s on %s",
            len(slots),
            sum(1 for slot in slots if slot.available),
            professional_id,
            booking_date,
        )

        if include_unavailable:
            return slots
        return [slot for slot in slots if slot.available]

    @staticmethod
    def calculate_slots(
        *,
        company: CompanySchedule,
        service: ServiceProfile,
        existing: List[BookingInterval],
    ) -> List[Slot]:
        """Flag each generated candidate against a snapshot of active bookings."""
        generator = SlotGenerator(company.working_window, company.interval_minutes)
        occupied: List[TimeRange] = [
            interval.time_range for interval in existing if interval.is_active
        ]

        return [
            Slot(
                start=candidate.start,
                end=candidate.start.plus_minutes(service.duration_minutes),
                available=is_available(candidate, occupied),
                occupied=candidate,
            )
            for candidate in generator.generate(service.duration_minutes, service.buffer_minutes)
        ]
