# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Engine Configuration for the Booking Engine

This module provides the configuration class for the booking coordinator,
the expiry sweeper and the capacity model.
"""

from dataclasses import dataclass, field

from .types.facility import Facility


@dataclass
class EngineConfig:
    """
    Configuration for the booking engine.

    Capacity is a deployment-time parameter: ``capacity_overrides`` wins
    over the capacity published in the facility catalog.
    """

    # === Holds ===

    default_hold_seconds: int = 600
    """Hold duration used when create_booking is not given one."""

    max_quantity_per_booking: int = 10
    """Upper bound on units requested by a single booking."""

    refund_claim_seconds: float = 300.0
    """How long a cancellation's refund claim blocks other cancels and completion."""

    # === Reference codes ===

    reference_code_length: int = 10
    """Number of random characters after the facility prefix."""

    reference_code_attempts: int = 5
    """Attempts at generating a unique reference code before giving up."""

    # === Expiry Sweeper ===

    sweep_interval: float = 30.0
    """Interval between sweeps in seconds."""

    sweep_batch_size: int = 500
    """Maximum reservations expired per sweep."""

    reconcile_on_sweep: bool = True
    """Run the capacity repair pass after every sweep."""

    reconcile_batch_size: int = 500
    """Maximum reservations examined per repair pass."""

    # === Capacity ===

    capacity_overrides: dict[str, int] = field(default_factory=dict)
    """Units per window keyed by facility id or facility code."""

    default_currency: str = "INR"
    """Currency used when a facility carries none."""

    # === Ledger ===

    released_token_ttl: int = 86400
    """Seconds a released hold token is remembered for idempotent release."""

    namespace: str = "booking_engine"
    """Key namespace for shared backends."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.default_hold_seconds < 0:
            raise ValueError("default_hold_seconds must be non-negative")
        if self.max_quantity_per_booking < 1:
            raise ValueError("max_quantity_per_booking must be at least 1")
        if self.refund_claim_seconds <= 0:
            raise ValueError("refund_claim_seconds must be positive")
        if self.reference_code_length < 6:
            raise ValueError("reference_code_length must be at least 6")
        if self.reference_code_attempts < 1:
            raise ValueError("reference_code_attempts must be at least 1")
        if self.sweep_interval <= 0:
            raise ValueError("sweep_interval must be positive")
        if self.sweep_batch_size < 1:
            raise ValueError("sweep_batch_size must be at least 1")
        if self.reconcile_batch_size < 1:
            raise ValueError("reconcile_batch_size must be at least 1")
        if self.released_token_ttl < 0:
            raise ValueError("released_token_ttl must be non-negative")
        for key, units in self.capacity_overrides.items():
            if units < 0:
                raise ValueError(f"capacity override for {key!r} must be non-negative")

    def capacity_for(self, facility: Facility) -> int:
        """Units per window for ``facility`` after deployment overrides."""
        if facility.id in self.capacity_overrides:
            return self.capacity_overrides[facility.id]
        if facility.code in self.capacity_overrides:
            return self.capacity_overrides[facility.code]
        return facility.capacity.units_per_window


__all__ = ["EngineConfig"]
