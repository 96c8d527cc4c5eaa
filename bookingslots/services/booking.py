"""
Booking creation and status changes.

``BookingService`` turns a booking request (company, professional, service,
date, start time) into an occupied interval, validates it against the company
rules and hands it to the ``BookingConflictGuard``.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional, Union

import pendulum
from pendulum import DateTime

from ..domain.exceptions import (
    BookingNotFoundError,
    CancellationNotAllowedError,
    CompanyNotFoundError,
    InvalidRangeError,
    OutsideWorkingWindowError,
)
from ..domain.models import BookingInterval, BookingStatus, CompanySchedule, TimeOfDay, TimeRange
from ..domain.policy import can_be_cancelled, ensure_bookable_date, ensure_transition
from .availability import resolve_company_and_service
from .booking_guard import BookingConflictGuard
from .protocols import BookingRepositoryProtocol, CatalogRepositoryProtocol

logger = logging.getLogger(__name__)


class BookingService:
    """Write-path operations on bookings."""

    def __init__(
        self,
        catalog: CatalogRepositoryProtocol,
        bookings: BookingRepositoryProtocol,
        guard: BookingConflictGuard | None = None,
    ) -> None:
        self._catalog = catalog
        self._bookings = bookings
        self._guard = guard if guard is not None else BookingConflictGuard(bookings)

    async def book(
        self,
        *,
        company_id: str,
        professional_id: str,
        service_id: str,
        booking_date: date,
        start: Union[str, TimeOfDay],
        today: Optional[date] = None,
    ) -> BookingInterval:
        """
        Create a confirmed booking.

        Raises:
            CompanyNotFoundError / ServiceNotFoundError: Unknown or inactive entities
            BookingWindowError: Date in the past or beyond the advance window
            OutsideWorkingWindowError: Service plus buffer does not fit the day
            SlotUnavailableError: Overlaps an active booking
        """
        company, service = await resolve_company_and_service(
            self._catalog, company_id, service_id
        )

        if today is None:
            today = pendulum.today(company.timezone).date()
        ensure_bookable_date(booking_date, today, company.booking_advance_days)

        start_time = TimeOfDay.parse(start)
        try:
            occupied = TimeRange(
                start=start_time,
                end=start_time.plus_minutes(service.total_duration()),
            )
        except InvalidRangeError as exc:
            raise OutsideWorkingWindowError(
                f"Service starting at {start_time} runs past midnight"
            ) from exc

        if not company.working_window.fits(occupied):
            raise OutsideWorkingWindowError(
                f"Booking {occupied} is outside working hours "
                f"{company.working_window.open} - {company.working_window.close}"
            )

        interval = BookingInterval(
            booking_id=uuid.uuid4().hex,
            professional_id=professional_id,
            booking_date=booking_date,
            time_range=occupied,
            status=BookingStatus.CONFIRMED,
            company_id=company.company_id,
            service_id=service.service_id,
        )

        return await self._guard.accept(interval)

    async def change_status(self, booking_id: str, status: BookingStatus) -> BookingInterval:
        """
        Move a booking to another status.

        Leaving the active set (cancelled, no_show) is only possible here.
        """
        key = await self._get(booking_id)

        async with self._bookings.transaction(key.professional_id, key.booking_date):
            # the status read before entering the scope may already be stale
            current = await self._get(booking_id)
            ensure_transition(current.status, status)
            updated = await self._bookings.update_status(booking_id, status)

        logger.info(
            "Booking %s status changed: %s -> %s",
            booking_id,
            current.status.value,
            status.value,
        )
        return updated

    async def cancel(self, booking_id: str, now: Optional[DateTime] = None) -> BookingInterval:
        """
        Cancel a booking if it is still before the company's cancellation deadline.

        Raises:
            CancellationNotAllowedError: Wrong status or too close to the start
        """
        interval = await self._get(booking_id)
        company = await self._get_company_for(interval)

        cancellation_hours = company.cancellation_hours if company else 0
        timezone = company.timezone if company else "UTC"
        if now is None:
            now = pendulum.now(timezone)

        if not can_be_cancelled(interval, now, cancellation_hours, timezone):
            raise CancellationNotAllowedError(
                f"Booking {booking_id} can no longer be cancelled "
                f"(status '{interval.status.value}', {cancellation_hours}h notice required)"
            )

        return await self.change_status(booking_id, BookingStatus.CANCELLED)

    async def _get(self, booking_id: str) -> BookingInterval:
        interval = await self._bookings.get_interval(booking_id)
        if interval is None:
            raise BookingNotFoundError(f"Booking '{booking_id}' not found")
        return interval

    async def _get_company_for(self, interval: BookingInterval) -> CompanySchedule | None:
        if interval.company_id is None:
            return None
        company = await self._catalog.get_company(interval.company_id)
        if company is None:
            raise CompanyNotFoundError(f"Company '{interval.company_id}' not found")
        return company
