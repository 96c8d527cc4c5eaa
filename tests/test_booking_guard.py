"""
Tests for the write-time BookingConflictGuard.
"""

import asyncio
import itertools
from contextlib import asynccontextmanager
from datetime import date
from typing import List

import pytest

from bookingslots.adapters.memory_store import InMemoryBookingStore
from bookingslots.domain.exceptions import InvalidBookingStateError, SlotUnavailableError
from bookingslots.domain.models import BookingInterval, BookingStatus, TimeRange
from bookingslots.services.booking_guard import BookingConflictGuard, KeyedLocks

DAY = date(2024, 11, 25)


def _interval(booking_id: str, start: str, end: str, professional: str = "ana", **kwargs) -> BookingInterval:
    return BookingInterval(
        booking_id=booking_id,
        professional_id=professional,
        booking_date=DAY,
        time_range=TimeRange.from_strings(start, end),
        **kwargs,
    )


class YieldingStore:
    """
    Store without any locking that yields to the event loop between read and
    write, so an unguarded check-then-insert would interleave.
    """

    def __init__(self) -> None:
        self.intervals: List[BookingInterval] = []

    async def get_active_intervals(self, professional_id, booking_date):
        await asyncio.sleep(0)
        return [
            i for i in self.intervals
            if i.professional_id == professional_id
            and i.booking_date == booking_date
            and i.is_active
        ]

    async def add_interval(self, interval):
        await asyncio.sleep(0)
        self.intervals.append(interval)

    @asynccontextmanager
    async def transaction(self, professional_id, booking_date):
        yield


def _assert_pairwise_disjoint(intervals: List[BookingInterval]) -> None:
    active = [i for i in intervals if i.is_active]
    for a, b in itertools.combinations(active, 2):
        if a.professional_id == b.professional_id and a.booking_date == b.booking_date:
            assert not a.time_range.overlaps(b.time_range)


class TestBookingConflictGuard:
    """Tests for BookingConflictGuard."""

    def test_accepts_free_interval(self):
        store = InMemoryBookingStore()
        guard = BookingConflictGuard(store)

        accepted = asyncio.run(guard.accept(_interval("b1", "09:00", "10:00")))

        assert accepted.booking_id == "b1"
        assert store.all_intervals() == [accepted]

    def test_rejects_overlapping_interval(self):
        store = InMemoryBookingStore([_interval("b1", "09:00", "10:00")])
        guard = BookingConflictGuard(store)

        with pytest.raises(SlotUnavailableError) as exc_info:
            asyncio.run(guard.accept(_interval("b2", "09:30", "10:30")))

        assert exc_info.value.http_status == 409
        assert exc_info.value.conflicts == [TimeRange.from_strings("09:00", "10:00")]
        assert [i.booking_id for i in store.all_intervals()] == ["b1"]

    def test_accepts_touching_interval(self):
        store = InMemoryBookingStore([_interval("b1", "09:00", "10:00")])
        guard = BookingConflictGuard(store)

        asyncio.run(guard.accept(_interval("b2", "10:00", "11:00")))

        assert len(store.all_intervals()) == 2

    def test_cancelled_booking_frees_the_time(self):
        store = InMemoryBookingStore([
            _interval("b1", "09:00", "10:00", status=BookingStatus.CANCELLED),
            _interval("b2", "10:00", "11:00", status=BookingStatus.NO_SHOW),
        ])
        guard = BookingConflictGuard(store)

        asyncio.run(guard.accept(_interval("b3", "09:00", "11:00")))

        _assert_pairwise_disjoint(store.all_intervals())

    def test_completed_booking_still_blocks(self):
        store = InMemoryBookingStore([_interval("b1", "09:00", "10:00", status=BookingStatus.COMPLETED)])
        guard = BookingConflictGuard(store)

        with pytest.raises(SlotUnavailableError):
            asyncio.run(guard.accept(_interval("b2", "09:00", "10:00")))

    def test_inactive_interval_cannot_be_booked(self):
        guard = BookingConflictGuard(InMemoryBookingStore())

        with pytest.raises(InvalidBookingStateError):
            asyncio.run(guard.accept(_interval("b1", "09:00", "10:00", status=BookingStatus.CANCELLED)))

    def test_concurrent_overlapping_requests_only_one_wins(self):
        """Two clients racing for the same slot: exactly one succeeds."""
        store = YieldingStore()
        guard = BookingConflictGuard(store)

        async def race():
            return await asyncio.gather(
                guard.accept(_interval("first", "09:00", "10:00")),
                guard.accept(_interval("second", "09:30", "10:30")),
                return_exceptions=True,
            )

        results = asyncio.run(race())

        accepted = [r for r in results if isinstance(r, BookingInterval)]
        rejected = [r for r in results if isinstance(r, SlotUnavailableError)]
        assert len(accepted) == 1
        assert len(rejected) == 1
        assert len(store.intervals) == 1
        _assert_pairwise_disjoint(store.intervals)

    def test_many_concurrent_requests_keep_invariant(self):
        """A burst of overlapping requests never produces overlapping bookings."""
        store = YieldingStore()
        guard = BookingConflictGuard(store)
        starts = ["09:00", "09:15", "09:30", "09:45", "10:00", "10:15", "10:30"]

        async def burst():
            return await asyncio.gather(
                *[
                    guard.accept(
                        _interval(f"b{n}", start, f"{int(start[:2]) + 1:02d}{start[2:]}")
                    )
                    for n, start in enumerate(starts)
                ],
                return_exceptions=True,
            )

        results = asyncio.run(burst())

        assert all(isinstance(r, (BookingInterval, SlotUnavailableError)) for r in results)
        assert len(store.intervals) == sum(isinstance(r, BookingInterval) for r in results)
        _assert_pairwise_disjoint(store.intervals)

    def test_different_professionals_do_not_block_each_other(self):
        store = YieldingStore()
        guard = BookingConflictGuard(store)

        async def both():
            return await asyncio.gather(
                guard.accept(_interval("b1", "09:00", "10:00", professional="ana")),
                guard.accept(_interval("b2", "09:00", "10:00", professional="bia")),
            )

        asyncio.run(both())

        assert len(store.intervals) == 2

    def test_store_constraint_rejects_unguarded_overlap(self):
        """The in-memory store refuses overlaps even without the guard."""
        store = InMemoryBookingStore([_interval("b1", "09:00", "10:00")])

        with pytest.raises(SlotUnavailableError):
            asyncio.run(store.add_interval(_interval("b2", "09:30", "10:00")))

    def test_existing_booking_id_is_rejected(self):
        """Reusing an id must not overwrite the stored interval."""
        store = InMemoryBookingStore([_interval("b1", "09:00", "10:00")])
        guard = BookingConflictGuard(store)

        with pytest.raises(InvalidBookingStateError, match="already exists"):
            asyncio.run(guard.accept(_interval("b1", "14:00", "15:00")))

        stored = asyncio.run(store.get_interval("b1"))
        assert stored.time_range == TimeRange.from_strings("09:00", "10:00")
        assert len(store.all_intervals()) == 1

    def test_seeding_rejects_duplicate_ids(self):
        with pytest.raises(InvalidBookingStateError):
            InMemoryBookingStore([
                _interval("b1", "09:00", "10:00"),
                _interval("b1", "14:00", "15:00"),
            ])

    def test_seeding_rejects_overlapping_active_intervals(self):
        with pytest.raises(SlotUnavailableError):
            InMemoryBookingStore([
                _interval("b1", "09:00", "10:00"),
                _interval("b2", "09:30", "10:30"),
            ])

    def test_store_transaction_locks_are_released(self):
        """Each (professional, date) scope leaves nothing behind once finished."""
        store = InMemoryBookingStore()
        guard = BookingConflictGuard(store)

        async def book_many_days():
            for day in range(1, 11):
                await guard.accept(
                    BookingInterval(
                        booking_id=f"b{day}",
                        professional_id="ana",
                        booking_date=date(2024, 12, day),
                        time_range=TimeRange.from_strings("09:00", "10:00"),
                    )
                )

        asyncio.run(book_many_days())

        assert len(store.all_intervals()) == 10
        assert len(store._locks) == 0


class TestKeyedLocks:
    """Tests for the per-key lock registry."""

    def test_locks_are_released_after_use(self):
        locks = KeyedLocks()

        async def use():
            async with locks.hold(("ana", DAY)):
                assert len(locks) == 1
            async with locks.hold(("ana", DAY)):
                pass

        asyncio.run(use())

        assert len(locks) == 0

    def test_lock_released_when_body_raises(self):
        locks = KeyedLocks()

        async def fail():
            async with locks.hold("key"):
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            asyncio.run(fail())

        assert len(locks) == 0

    def test_same_key_is_serialized(self):
        locks = KeyedLocks()
        events: List[str] = []

        async def worker(name: str):
            async with locks.hold("key"):
                events.append(f"{name}-in")
                await asyncio.sleep(0)
                await asyncio.sleep(0)
                events.append(f"{name}-out")

        async def run():
            await asyncio.gather(worker("a"), worker("b"))

        asyncio.run(run())

        assert events == ["a-in", "a-out", "b-in", "b-out"]
