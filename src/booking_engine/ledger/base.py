# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Base Ledger for the Booking Engine

This module provides the BaseLedger abstract class that defines the
common interface for all inventory ledger implementations.

Features:
- Lazy creation of inventory units per facility window
- Atomic reserve / confirm / release of capacity against a unit
- Idempotent confirm and release keyed by hold token
- Health and statistics reporting

"""

import abc
import logging
from dataclasses import dataclass
from typing import Any

from ..types.inventory import HoldToken, InventoryUnit
from ..types.window import TimeWindow

logger = logging.getLogger(__name__)


@dataclass
class HealthCheckResult:
    """
    Structured health check result for ledger monitoring.

    Attributes:
        healthy: Whether the ledger is operational
        backend_type: Type of backend (e.g., 'redis', 'memory')
        namespace: Ledger namespace
        error: Error message if unhealthy
        metadata: Additional backend-specific information
    """

    healthy: bool
    backend_type: str
    namespace: str
    error: str | None = None
    metadata: dict[str, Any] | None = None


def validate_quantity(quantity: int) -> None:
    """
    Validate that a requested quantity is a positive integer.

    Raises:
        ValueError: If quantity is not an int or is below 1
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValueError(f"quantity must be an integer, got {type(quantity).__name__}")
    if quantity < 1:
        raise ValueError(f"quantity must be at least 1, got {quantity}")


class BaseLedger(abc.ABC):
    """
    An abstract base class for inventory ledgers.

    A ledger owns the counters of every InventoryUnit. All three capacity
    operations must be linearizable per unit: concurrent calls against the
    same unit observe a single order. Different units never contend.

    Subclasses must implement all abstract methods.
    """

    def __init__(self, namespace: str = "booking_engine"):
        """
        Initialize the ledger with a namespace for isolation.

        Args:
            namespace: Namespace for isolating data across different deployments
        """
        self.namespace = namespace

    # ==========================================================================
    # Units
    # ==========================================================================

    @abc.abstractmethod
    async def ensure_unit(
        self, facility_id: str, window: TimeWindow, total: int
    ) -> InventoryUnit:
        """
        Return the unit for (facility_id, window), creating it if needed.

        Creation is idempotent. An existing unit keeps its counters; its
        total is raised to ``total`` if the configured capacity grew, but
        never lowered.

        Args:
            facility_id: Facility the unit belongs to
            window: The booking window
            total: Capacity of the unit

        Returns:
            The current InventoryUnit snapshot
        """
        pass

    @abc.abstractmethod
    async def get_unit(self, unit_key: str) -> InventoryUnit | None:
        """
        Get a snapshot of a unit.

        Returns:
            The InventoryUnit if it exists, None otherwise
        """
        pass

    # ==========================================================================
    # Capacity Management
    # ==========================================================================

    @abc.abstractmethod
    async def reserve_capacity(self, unit_key: str, quantity: int) -> HoldToken:
        """
        Atomically check and hold capacity.

        Checks ``held + confirmed + quantity <= total``; if satisfied,
        increments ``held`` and returns a token. Otherwise fails without
        side effect.

        Raises:
            CapacityExhaustedError: If the unit cannot fit ``quantity``
            UnitNotFoundError: If the unit does not exist
            ValueError: If quantity is not a positive integer
        """
        pass

    @abc.abstractmethod
    async def confirm_capacity(self, token: HoldToken) -> bool:
        """
        Move the token's quantity from ``held`` to ``confirmed``.

        Idempotent: confirming an already-confirmed token is a no-op.

        Returns:
            True if the call changed the ledger, False for the idempotent no-op

        Raises:
            TokenNotFoundError: If the token is unknown or already released
        """
        pass

    @abc.abstractmethod
    async def release_capacity(self, token: HoldToken) -> bool:
        """
        Return the token's quantity to the unit.

        A held token decrements ``held``; a confirmed token (cancelled after a
        refund) decrements ``confirmed``. Releasing twice never
        double-decrements.

        Returns:
            True if the call changed the ledger, False if already released

        Raises:
            TokenNotFoundError: If the token was never issued (or its release
                record has aged out)
        """
        pass

    # ==========================================================================
    # Monitoring
    # ==========================================================================

    @abc.abstractmethod
    async def health_check(self) -> HealthCheckResult:
        """Perform a health check on the ledger."""
        pass

    @abc.abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Get ledger statistics."""
        pass

    async def prune_tokens(self) -> int:
        """
        Forget token records that can no longer matter.

        Default implementation does nothing; backends with their own expiry
        (Redis key TTLs) need no pass.

        Returns:
            Number of token records dropped
        """
        return 0

    async def cleanup(self) -> None:
        """Release backend resources. Default implementation does nothing."""
        logger.debug("Ledger cleanup for namespace '%s'", self.namespace)
