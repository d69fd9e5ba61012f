"""
Benchmark: Booking Throughput

Measures how create_booking scales with concurrency when every request hits
the same inventory unit (worst-case lock contention) versus when requests
spread across many units (no contention).

Usage:
    uv run pytest benchmarks/test_bench_booking_throughput.py -v -s --no-cov
"""

import asyncio
import statistics
import time

import pytest

from booking_engine import PaymentConfirmation


class TestBookingThroughput:
    """Throughput of the booking path under concurrency."""

    @pytest.mark.asyncio
    async def test_scaling_single_unit_vs_many_units(
        self, benchmark_engine, benchmark_facility, window_at
    ):
        """
        Compare contended and uncontended hold placement.

        A single unit serializes every reserve on one lock; distinct units
        should scale at least as well.
        """
        concurrency_levels = [1, 10, 50, 100]
        results: list[tuple[int, float, float]] = []

        for concurrency in concurrency_levels:

            async def hold(offset: int) -> None:
                await benchmark_engine.create_booking(
                    f"bench-{concurrency}-{offset}",
                    benchmark_facility.id,
                    window_at(offset),
                )

            round_times_single = []
            round_times_many = []
            for round_no in range(3):
                base = (round_no + 1) * 1000 + concurrency
                start = time.perf_counter()
                await asyncio.gather(*[hold(base) for _ in range(concurrency)])
                round_times_single.append(time.perf_counter() - start)

                start = time.perf_counter()
                await asyncio.gather(
                    *[hold(base * 1000 + i) for i in range(concurrency)]
                )
                round_times_many.append(time.perf_counter() - start)

            single = concurrency / statistics.mean(round_times_single)
            many = concurrency / statistics.mean(round_times_many)
            results.append((concurrency, single, many))

        print("\n--- Hold Placement Throughput ---")
        print(f"{'Concurrency':>12} | {'One unit':>12} | {'Many units':>12}")
        print(f"{'-'*12}-+-{'-'*12}-+-{'-'*12}")
        for conc, single, many in results:
            print(f"{conc:>12} | {single:>10.1f}/s | {many:>10.1f}/s")

        assert all(single > 0 and many > 0 for _, single, many in results)

    @pytest.mark.asyncio
    async def test_create_confirm_latency(
        self, benchmark_engine, benchmark_facility, window_at
    ):
        """Average latency of a full create + confirm cycle."""
        latencies = []
        for i in range(200):
            start = time.perf_counter()
            ref = await benchmark_engine.create_booking(
                f"bench-latency-{i}", benchmark_facility.id, window_at(i % 24)
            )
            await benchmark_engine.confirm_booking(
                ref.reference_code, PaymentConfirmation(payment_id=f"pay-{i}")
            )
            latencies.append(time.perf_counter() - start)

        print(
            f"\ncreate+confirm: avg={statistics.mean(latencies) * 1000:.3f}ms "
            f"p95={sorted(latencies)[int(len(latencies) * 0.95)] * 1000:.3f}ms"
        )
        assert statistics.mean(latencies) < 0.05
