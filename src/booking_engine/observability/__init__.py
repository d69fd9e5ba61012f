# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability and metrics for the Booking Engine.

Classes:
    MetricsCollector: Metrics collector supporting dict snapshots and Prometheus.

Functions:
    get_metrics_collector: Get the global metrics collector singleton.
    reset_metrics_collector: Reset the global metrics collector singleton.

Constants:
    All metric name constants from the constants module.
"""

from .collector import (
    METRIC_DEFINITIONS,
    MetricDefinition,
    MetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
)
from .constants import (
    BOOKINGS_CANCELLED_TOTAL,
    BOOKINGS_COMPLETED_TOTAL,
    BOOKINGS_CONFIRMED_TOTAL,
    BOOKINGS_CREATED_TOTAL,
    BOOKINGS_REJECTED_TOTAL,
    COLLABORATOR_FAILURES_TOTAL,
    HOLDS_EXPIRED_TOTAL,
    METRIC_PREFIX,
    RECONCILE_FAILED_TOTAL,
    RECONCILE_REPAIRED_TOTAL,
    RECONCILE_REQUIRED_TOTAL,
    STALE_TRANSITIONS_TOTAL,
    SWEEP_DURATION_BUCKETS,
    SWEEP_DURATION_SECONDS,
    SWEEP_LOST_RACES_TOTAL,
    SWEEPS_TOTAL,
    TRANSITIONS_TOTAL,
    UNSETTLED_RESERVATIONS,
)

__all__ = [
    "BOOKINGS_CANCELLED_TOTAL",
    "BOOKINGS_COMPLETED_TOTAL",
    "BOOKINGS_CONFIRMED_TOTAL",
    "BOOKINGS_CREATED_TOTAL",
    "BOOKINGS_REJECTED_TOTAL",
    "COLLABORATOR_FAILURES_TOTAL",
    "HOLDS_EXPIRED_TOTAL",
    "METRIC_DEFINITIONS",
    "METRIC_PREFIX",
    "RECONCILE_FAILED_TOTAL",
    "RECONCILE_REPAIRED_TOTAL",
    "RECONCILE_REQUIRED_TOTAL",
    "STALE_TRANSITIONS_TOTAL",
    "SWEEPS_TOTAL",
    "SWEEP_DURATION_BUCKETS",
    "SWEEP_DURATION_SECONDS",
    "SWEEP_LOST_RACES_TOTAL",
    "TRANSITIONS_TOTAL",
    "UNSETTLED_RESERVATIONS",
    "MetricDefinition",
    "MetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]
