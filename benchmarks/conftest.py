"""
Shared fixtures for benchmark tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from booking_engine import (
    CapacityModel,
    EngineConfig,
    Facility,
    FacilityType,
    MemoryFacilityCatalog,
    TimeWindow,
    create_engine,
)

BENCH_START = datetime(2030, 1, 1, 6, tzinfo=timezone.utc)


@pytest.fixture
def benchmark_facility():
    """Lounge with enough capacity that benchmarks never run out."""
    return Facility(
        id="bench-lounge",
        facility_type=FacilityType.LOUNGE,
        code="BENCH_LOUNGE",
        name="Benchmark Lounge",
        price_base="899.00",
        currency_code="INR",
        capacity=CapacityModel(units_per_window=1_000_000),
    )


@pytest.fixture
def benchmark_config():
    """Configuration optimized for benchmarking."""
    return EngineConfig(max_quantity_per_booking=10, reconcile_on_sweep=False)


@pytest.fixture
def benchmark_engine(benchmark_facility, benchmark_config):
    """Memory-backed coordinator; the sweeper is not started."""
    return create_engine(
        catalog=MemoryFacilityCatalog([benchmark_facility]),
        config=benchmark_config,
    )


@pytest.fixture
def window_at():
    """Three-hour window starting ``offset_hours`` after the benchmark epoch."""

    def _window(offset_hours: int) -> TimeWindow:
        return TimeWindow.starting_at(
            BENCH_START + timedelta(hours=offset_hours), hours=3
        )

    return _window
