# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the ``booking_engine_`` prefix.

Naming Conventions:
    - Counter metrics end with `_total`
    - Histogram metrics for time end with `_seconds`
    - Gauges use present-tense descriptive names

Label Best Practices:
    To prevent label cardinality explosion, use only:
    - `facility_type` - PARKING, LOUNGE, HOTEL, RESTAURANT, SERVICE
    - `reason` - Rejection reason (an ErrorCode value)
    - `operation` - Ledger operation (confirm, release)
    - `collaborator` - payments, notifications, audit

    NEVER use:
    - `reference_code` - Unique per booking (unbounded!)
    - `passenger_id` - Unique per passenger (unbounded!)
    - `facility_id` - Grows with the catalog
"""

METRIC_PREFIX = "booking_engine"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Booking Lifecycle (coordinator.py)
# =============================================================================

BOOKINGS_CREATED_TOTAL = f"{METRIC_PREFIX}_bookings_created_total"
"""Holds placed successfully."""

BOOKINGS_REJECTED_TOTAL = f"{METRIC_PREFIX}_bookings_rejected_total"
"""Booking operations refused, by error code."""

BOOKINGS_CONFIRMED_TOTAL = f"{METRIC_PREFIX}_bookings_confirmed_total"
"""Reservations moved to CONFIRMED."""

BOOKINGS_CANCELLED_TOTAL = f"{METRIC_PREFIX}_bookings_cancelled_total"
"""Reservations moved to CANCELLED."""

BOOKINGS_COMPLETED_TOTAL = f"{METRIC_PREFIX}_bookings_completed_total"
"""Reservations moved to COMPLETED."""

COLLABORATOR_FAILURES_TOTAL = f"{METRIC_PREFIX}_collaborator_failures_total"
"""Failures of payment, notification or audit collaborators."""


# =============================================================================
# State Machine (machine.py)
# =============================================================================

TRANSITIONS_TOTAL = f"{METRIC_PREFIX}_transitions_total"
"""Successful state transitions."""

STALE_TRANSITIONS_TOTAL = f"{METRIC_PREFIX}_stale_transitions_total"
"""Transitions refused because the reservation changed concurrently."""


# =============================================================================
# Settlement (settlement.py)
# =============================================================================

RECONCILE_REQUIRED_TOTAL = f"{METRIC_PREFIX}_reconcile_required_total"
"""Ledger operations that failed and were left to the repair pass."""

RECONCILE_REPAIRED_TOTAL = f"{METRIC_PREFIX}_reconcile_repaired_total"
"""Reservations whose ledger state was repaired."""

RECONCILE_FAILED_TOTAL = f"{METRIC_PREFIX}_reconcile_failed_total"
"""Repair attempts that failed and will be retried."""

UNSETTLED_RESERVATIONS = f"{METRIC_PREFIX}_unsettled_reservations"
"""Reservations still waiting for the repair pass after the last run."""


# =============================================================================
# Expiry Sweeper (sweeper.py)
# =============================================================================

HOLDS_EXPIRED_TOTAL = f"{METRIC_PREFIX}_holds_expired_total"
"""Holds transitioned to EXPIRED by the sweeper."""

SWEEP_LOST_RACES_TOTAL = f"{METRIC_PREFIX}_sweep_lost_races_total"
"""Expiry attempts that lost to a concurrent confirm or cancel."""

SWEEPS_TOTAL = f"{METRIC_PREFIX}_sweeps_total"
"""Sweeper iterations."""

SWEEP_DURATION_SECONDS = f"{METRIC_PREFIX}_sweep_duration_seconds"
"""Duration of one sweeper iteration."""


# =============================================================================
# Histogram Buckets
# =============================================================================

SWEEP_DURATION_BUCKETS = [0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0]
"""Buckets for sweep duration (seconds)."""
