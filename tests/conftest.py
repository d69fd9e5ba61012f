# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Shared fixtures for the booking engine test suite.

Time never advances on its own: every component reads the FrozenClock, and
tests move it explicitly with ``clock.advance(...)``.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from prometheus_client import CollectorRegistry

from booking_engine import (
    BookingCoordinator,
    CapacityModel,
    EngineConfig,
    Facility,
    FacilityType,
    MemoryFacilityCatalog,
    MemoryLedger,
    MemoryReservationStore,
    TimeWindow,
)
from booking_engine.catalog import seed_facilities
from booking_engine.observability import MetricsCollector

CLOCK_START = datetime(2030, 3, 1, 6, 0, tzinfo=timezone.utc)
WINDOW_START = datetime(2030, 3, 1, 10, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = CLOCK_START):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float = 0, **kwargs: float) -> datetime:
        self._now += timedelta(seconds=seconds, **kwargs)
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def registry():
    """Fresh Prometheus registry so collectors never collide across tests."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    return MetricsCollector(registry=registry)


@pytest.fixture
def single_unit_lounge():
    """Lounge with exactly one unit per window."""
    return Facility(
        id="lounge-single",
        facility_type=FacilityType.LOUNGE,
        code="LG_SINGLE",
        name="Single Seat Lounge",
        price_base=Decimal("500.00"),
        currency_code="INR",
        capacity=CapacityModel(units_per_window=1),
    )


@pytest.fixture
def facilities(single_unit_lounge):
    """Seed facilities keyed by code, plus the single-unit lounge."""
    by_code = {facility.code: facility for facility in seed_facilities()}
    by_code[single_unit_lounge.code] = single_unit_lounge
    return by_code


@pytest.fixture
def catalog(facilities):
    return MemoryFacilityCatalog(list(facilities.values()))


@pytest.fixture
def ledger(clock):
    return MemoryLedger(clock=clock)


@pytest.fixture
def store():
    return MemoryReservationStore()


@pytest.fixture
def payments():
    mock = AsyncMock()
    mock.verify.return_value = True
    mock.refund.return_value = True
    return mock


@pytest.fixture
def notifications():
    return AsyncMock()


@pytest.fixture
def audit_sink():
    return AsyncMock()


@pytest.fixture
def config():
    return EngineConfig(default_hold_seconds=600, sweep_interval=0.01)


@pytest.fixture
def engine(
    catalog, ledger, store, config, clock, payments, notifications, audit_sink, metrics
):
    return BookingCoordinator(
        catalog=catalog,
        ledger=ledger,
        store=store,
        config=config,
        clock=clock,
        payments=payments,
        notifications=notifications,
        audit_sink=audit_sink,
        metrics=metrics,
    )


@pytest.fixture
def window():
    """Three-hour window later on the clock's day."""
    return TimeWindow.starting_at(WINDOW_START, hours=3)


@pytest.fixture
def parking_details():
    return {"vehicle_number": "ka01ab1234"}
