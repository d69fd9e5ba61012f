# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metrics collector backed by both dict snapshots and Prometheus.

Features:
    1. Thread-safe counter/gauge/histogram operations
    2. Prometheus metric registration on an injectable registry
    3. Dict snapshots for JSON export and tests
    4. Label cardinality protection (max 1000 unique combinations per metric)

Usage:
    >>> from booking_engine.observability import get_metrics_collector
    >>> collector = get_metrics_collector()
    >>> collector.inc_counter('booking_engine_bookings_created_total',
    ...                       labels={'facility_type': 'PARKING'})
    >>> metrics = collector.get_metrics()
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, ClassVar

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

from .constants import (
    BOOKINGS_CANCELLED_TOTAL,
    BOOKINGS_COMPLETED_TOTAL,
    BOOKINGS_CONFIRMED_TOTAL,
    BOOKINGS_CREATED_TOTAL,
    BOOKINGS_REJECTED_TOTAL,
    COLLABORATOR_FAILURES_TOTAL,
    HOLDS_EXPIRED_TOTAL,
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

logger = logging.getLogger(__name__)


@dataclass
class MetricDefinition:
    """Schema of a metric: type, description, labels and histogram buckets."""

    name: str
    metric_type: str  # 'counter', 'gauge', 'histogram'
    description: str
    label_names: tuple[str, ...] = ()
    buckets: list[float] | None = None


METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    # === Booking Lifecycle ===
    BOOKINGS_CREATED_TOTAL: MetricDefinition(
        BOOKINGS_CREATED_TOTAL,
        "counter",
        "Total holds placed",
        ("facility_type",),
    ),
    BOOKINGS_REJECTED_TOTAL: MetricDefinition(
        BOOKINGS_REJECTED_TOTAL,
        "counter",
        "Total booking operations refused",
        ("operation", "reason"),
    ),
    BOOKINGS_CONFIRMED_TOTAL: MetricDefinition(
        BOOKINGS_CONFIRMED_TOTAL,
        "counter",
        "Total bookings confirmed",
        ("facility_type",),
    ),
    BOOKINGS_CANCELLED_TOTAL: MetricDefinition(
        BOOKINGS_CANCELLED_TOTAL,
        "counter",
        "Total bookings cancelled",
        ("facility_type",),
    ),
    BOOKINGS_COMPLETED_TOTAL: MetricDefinition(
        BOOKINGS_COMPLETED_TOTAL,
        "counter",
        "Total bookings completed",
        ("facility_type",),
    ),
    COLLABORATOR_FAILURES_TOTAL: MetricDefinition(
        COLLABORATOR_FAILURES_TOTAL,
        "counter",
        "Total collaborator failures",
        ("collaborator",),
    ),
    # === State Machine ===
    TRANSITIONS_TOTAL: MetricDefinition(
        TRANSITIONS_TOTAL,
        "counter",
        "Total reservation state transitions",
        ("from_state", "to_state"),
    ),
    STALE_TRANSITIONS_TOTAL: MetricDefinition(
        STALE_TRANSITIONS_TOTAL,
        "counter",
        "Total transitions refused on stale state",
        (),
    ),
    # === Settlement ===
    RECONCILE_REQUIRED_TOTAL: MetricDefinition(
        RECONCILE_REQUIRED_TOTAL,
        "counter",
        "Total ledger operations deferred to the repair pass",
        ("operation",),
    ),
    RECONCILE_REPAIRED_TOTAL: MetricDefinition(
        RECONCILE_REPAIRED_TOTAL,
        "counter",
        "Total reservations repaired",
        (),
    ),
    RECONCILE_FAILED_TOTAL: MetricDefinition(
        RECONCILE_FAILED_TOTAL,
        "counter",
        "Total repair attempts failed",
        (),
    ),
    UNSETTLED_RESERVATIONS: MetricDefinition(
        UNSETTLED_RESERVATIONS,
        "gauge",
        "Reservations awaiting repair",
        (),
    ),
    # === Sweeper ===
    HOLDS_EXPIRED_TOTAL: MetricDefinition(
        HOLDS_EXPIRED_TOTAL,
        "counter",
        "Total holds expired",
        ("facility_type",),
    ),
    SWEEP_LOST_RACES_TOTAL: MetricDefinition(
        SWEEP_LOST_RACES_TOTAL,
        "counter",
        "Total expiry attempts that lost a race",
        (),
    ),
    SWEEPS_TOTAL: MetricDefinition(
        SWEEPS_TOTAL,
        "counter",
        "Total sweeper iterations",
        (),
    ),
    SWEEP_DURATION_SECONDS: MetricDefinition(
        SWEEP_DURATION_SECONDS,
        "histogram",
        "Duration of a sweeper iteration",
        (),
        buckets=SWEEP_DURATION_BUCKETS,
    ),
}


class MetricsCollector:
    """
    Metrics collector supporting both dict snapshots and Prometheus.

    Thread Safety:
        All operations use RLock for thread-safe access.

    Cardinality Protection:
        At most MAX_LABEL_COMBINATIONS unique label combinations are tracked
        per metric; further combinations are dropped with a warning.

    Example:
        >>> collector = MetricsCollector(registry=CollectorRegistry())
        >>> collector.inc_counter('booking_engine_sweeps_total')
        >>> collector.get_metrics()["counters"]
        {'booking_engine_sweeps_total': {'': 1}}
    """

    MAX_LABEL_COMBINATIONS: ClassVar[int] = 1000

    def __init__(
        self,
        enable_prometheus: bool = True,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """
        Initialize the metrics collector.

        Args:
            enable_prometheus: Whether to publish to Prometheus
            registry: Prometheus registry (default: the global REGISTRY)
        """
        self._enable_prometheus = enable_prometheus
        self._registry = registry if registry is not None else REGISTRY

        self._counters: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._gauges: dict[str, dict[str, float]] = defaultdict(
            lambda: defaultdict(float)
        )
        self._histograms: dict[str, dict[str, list[float]]] = defaultdict(
            lambda: defaultdict(list)
        )

        self._lock = threading.RLock()

        self._prom_metrics: dict[str, Any] = {}
        self._label_combinations: dict[str, set[str]] = defaultdict(set)

        logger.debug(
            f"MetricsCollector initialized "
            f"(prometheus={'enabled' if self._enable_prometheus else 'disabled'})"
        )

    def _labels_to_key(self, labels: dict[str, str] | None) -> str:
        """Convert labels dict to a stable string key."""
        if not labels:
            return ""
        return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))

    def _check_cardinality(self, name: str, label_key: str) -> bool:
        """Return False when a new label combination would exceed the limit."""
        if label_key in self._label_combinations[name]:
            return True
        if len(self._label_combinations[name]) >= self.MAX_LABEL_COMBINATIONS:
            logger.warning(
                f"Cardinality limit ({self.MAX_LABEL_COMBINATIONS}) reached "
                f"for metric {name}. Dropping label combination: {label_key}"
            )
            return False
        self._label_combinations[name].add(label_key)
        return True

    def _get_or_create_prom(self, name: str, metric_type: str) -> Any | None:
        """Get or create the Prometheus metric for ``name``."""
        if not self._enable_prometheus:
            return None

        with self._lock:
            if name in self._prom_metrics:
                return self._prom_metrics[name]

            defn = METRIC_DEFINITIONS.get(name) or MetricDefinition(
                name, metric_type, f"Dynamic {metric_type}: {name}"
            )
            try:
                if metric_type == "counter":
                    metric: Any = Counter(
                        name,
                        defn.description,
                        list(defn.label_names),
                        registry=self._registry,
                    )
                elif metric_type == "gauge":
                    metric = Gauge(
                        name,
                        defn.description,
                        list(defn.label_names),
                        registry=self._registry,
                    )
                else:
                    metric = Histogram(
                        name,
                        defn.description,
                        list(defn.label_names),
                        buckets=defn.buckets or SWEEP_DURATION_BUCKETS,
                        registry=self._registry,
                    )
            except ValueError as e:
                # Already registered on this registry by another collector
                logger.warning(f"Failed to create Prometheus {metric_type} {name}: {e}")
                metric = None
            self._prom_metrics[name] = metric
            return metric

    @staticmethod
    def _labelled(metric: Any, labels: dict[str, str] | None) -> Any:
        return metric.labels(**labels) if labels else metric

    # === Counter Operations ===

    def inc_counter(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None:
        """
        Increment a counter metric.

        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError("Counter increment must be non-negative")

        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._counters[name][label_key] += value

        prom_counter = self._get_or_create_prom(name, "counter")
        if prom_counter is not None:
            try:
                self._labelled(prom_counter, labels).inc(value)
            except ValueError as e:
                logger.debug(f"Prometheus counter update failed for {name}: {e}")

    # === Gauge Operations ===

    def set_gauge(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to a specific value."""
        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._gauges[name][label_key] = value

        prom_gauge = self._get_or_create_prom(name, "gauge")
        if prom_gauge is not None:
            try:
                self._labelled(prom_gauge, labels).set(value)
            except ValueError as e:
                logger.debug(f"Prometheus gauge update failed for {name}: {e}")

    # === Histogram Operations ===

    def observe_histogram(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Record an observation in a histogram."""
        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            observations = self._histograms[name][label_key]
            observations.append(value)
            if len(observations) > 10000:
                self._histograms[name][label_key] = observations[-5000:]

        prom_histogram = self._get_or_create_prom(name, "histogram")
        if prom_histogram is not None:
            try:
                self._labelled(prom_histogram, labels).observe(value)
            except ValueError as e:
                logger.debug(f"Prometheus histogram observe failed for {name}: {e}")

    # === Snapshot Operations ===

    def get_metrics(self) -> dict[str, Any]:
        """
        Get a snapshot of all metrics.

        Returns a dict suitable for JSON serialization with structure:
        {
            "counters": {"metric_name": {"label_key": value, ...}, ...},
            "gauges": {"metric_name": {"label_key": value, ...}, ...},
            "histograms": {"metric_name": {"label_key": {...}, ...}, ...}
        }
        """
        with self._lock:
            counters = {
                name: dict(label_values)
                for name, label_values in self._counters.items()
            }
            gauges = {
                name: dict(label_values) for name, label_values in self._gauges.items()
            }
            histograms: dict[str, dict[str, dict[str, Any]]] = {}
            for name, label_values in self._histograms.items():
                histograms[name] = {}
                for label_key, observations in label_values.items():
                    if observations:
                        histograms[name][label_key] = {
                            "count": len(observations),
                            "sum": sum(observations),
                            "avg": sum(observations) / len(observations),
                            "min": min(observations),
                            "max": max(observations),
                        }

        return {
            "counters": counters,
            "gauges": gauges,
            "histograms": histograms,
        }

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        """Current dict value of one counter series."""
        with self._lock:
            return self._counters.get(name, {}).get(self._labels_to_key(labels), 0)

    def reset(self) -> None:
        """Reset all dict metrics to zero."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
            self._label_combinations.clear()

        logger.debug("Metrics collector reset")

    @property
    def prometheus_enabled(self) -> bool:
        return self._enable_prometheus


# =============================================================================
# Singleton Pattern
# =============================================================================

_global_collector: MetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics_collector(enable_prometheus: bool = True) -> MetricsCollector:
    """
    Get or create the global metrics collector singleton.

    Args:
        enable_prometheus: Whether to enable Prometheus metrics
            (only used on first call)
    """
    global _global_collector

    if _global_collector is None:
        with _collector_lock:
            if _global_collector is None:
                _global_collector = MetricsCollector(
                    enable_prometheus=enable_prometheus
                )

    return _global_collector


def reset_metrics_collector() -> None:
    """
    Reset the global metrics collector singleton (mainly for testing).

    Prometheus metrics already registered on the global registry stay
    registered; a fresh collector logs a warning and keeps dict metrics only
    for names it cannot register again.
    """
    global _global_collector
    with _collector_lock:
        if _global_collector:
            _global_collector.reset()
        _global_collector = None


__all__ = [
    "METRIC_DEFINITIONS",
    "MetricDefinition",
    "MetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]
