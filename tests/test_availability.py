"""
Tests for availability tier resolution.
"""

from datetime import date

import pytest

from conftest import DAY, t
from app.core.errors import StoreError
from app.models import Tier, TimeSlot
from app.services.availability import AvailabilityResolver


def slot(start, end, slot_date=DAY):
    return TimeSlot(slot_date, t(start), t(end), id=f"{slot_date}-{start}")


def test_no_window_is_unavailable(store, retry):
    resolver = AvailabilityResolver(store, retry=retry)
    assert resolver.resolve("nobody", slot("09:00", "09:30")) is Tier.UNAVAILABLE


def test_containing_window_gives_its_tier(store, retry):
    store.add_availability("ind", DAY, "08:00", "12:00", 2)
    resolver = AvailabilityResolver(store, retry=retry)

    assert resolver.resolve("ind", slot("09:00", "09:30")) is Tier.SECOND
    assert resolver.resolve("ind", slot("11:30", "12:00")) is Tier.SECOND


def test_partial_overlap_is_unavailable(store, retry):
    store.add_availability("ind", DAY, "09:00", "09:15", 1)
    resolver = AvailabilityResolver(store, retry=retry)

    assert resolver.resolve("ind", slot("09:00", "09:30")) is Tier.UNAVAILABLE


def test_other_dates_are_ignored(store, retry):
    store.add_availability("ind", date(2024, 1, 2), "09:00", "10:00", 1)
    resolver = AvailabilityResolver(store, retry=retry)

    assert resolver.resolve("ind", slot("09:00", "09:30")) is Tier.UNAVAILABLE


def test_first_matching_window_wins(store, retry):
    """Overlapping windows resolve to the first one in store order, not the narrowest."""
    store.add_availability("ind", DAY, "08:00", "17:00", 3)
    store.add_availability("ind", DAY, "09:00", "10:00", 1)
    resolver = AvailabilityResolver(store, retry=retry)

    assert resolver.resolve("ind", slot("09:00", "09:30")) is Tier.THIRD


def test_explicit_unavailable_window(store, retry):
    store.add_availability("ind", DAY, "09:00", "10:00", 4)
    resolver = AvailabilityResolver(store, retry=retry)

    assert resolver.resolve("ind", slot("09:00", "09:30")) is Tier.UNAVAILABLE


def test_window_cache_reads_once_per_individual_and_date(store, retry):
    store.add_availability("ind", DAY, "09:00", "10:00", 1)
    resolver = AvailabilityResolver(store, retry=retry, cache_windows=True)

    resolver.resolve("ind", slot("09:00", "09:30"))
    resolver.resolve("ind", slot("09:30", "10:00"))
    assert store.calls["load_availability_windows"] == 1

    uncached = AvailabilityResolver(store, retry=retry)
    uncached.resolve("ind", slot("09:00", "09:30"))
    uncached.resolve("ind", slot("09:30", "10:00"))
    assert store.calls["load_availability_windows"] == 3


def test_store_read_is_retried(store, retry, sleep):
    store.add_availability("ind", DAY, "09:00", "10:00", 1)
    store.fail("load_availability_windows", ConnectionError("reset"))
    resolver = AvailabilityResolver(store, retry=retry)

    assert resolver.resolve("ind", slot("09:00", "09:30")) is Tier.FIRST
    assert store.calls["load_availability_windows"] == 2
    assert sleep.delays == [1.0]


def test_exhausted_retries_raise_store_error(store, retry):
    store.fail("load_availability_windows", *[ConnectionError("down")] * 3)
    resolver = AvailabilityResolver(store, retry=retry)

    with pytest.raises(StoreError) as exc_info:
        resolver.resolve("ind", slot("09:00", "09:30"))
    assert exc_info.value.code == "DATABASE_ERROR"
    assert store.calls["load_availability_windows"] == 3
