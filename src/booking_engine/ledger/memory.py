# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
MemoryLedger for the Booking Engine

This module provides an in-memory ledger implementation that doesn't
require Redis. Suitable for testing, development, and single-process
deployments.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..exceptions import CapacityExhaustedError, TokenNotFoundError, UnitNotFoundError
from ..protocols.clock import Clock, SystemClock
from ..types.inventory import CapacityStatus, HoldToken, InventoryUnit, make_unit_key
from ..types.window import TimeWindow
from .base import BaseLedger, HealthCheckResult, validate_quantity

logger = logging.getLogger(__name__)


@dataclass
class _TokenRecord:
    """Ledger-side state of an issued hold token."""

    quantity: int
    status: CapacityStatus
    released_at: float | None = None


class MemoryLedger(BaseLedger):
    """
    An in-memory ledger.

    Key Features:
    - One asyncio.Lock per unit; operations on different units never contend
    - Token records kept per unit so every operation touches only its unit
    - Released tokens remembered for ``released_token_ttl`` seconds so that
      repeated releases stay no-ops
    - Confirmed and released tokens of a unit whose window has ended are
      dropped by ``prune_tokens()``; held tokens are always kept

    Note:
        This ledger is NOT suitable for multi-process deployments. Use
        RedisLedger when several processes share inventory.
    """

    def __init__(
        self,
        namespace: str = "booking_engine_memory",
        clock: Clock | None = None,
        released_token_ttl: float = 86400.0,
    ) -> None:
        """
        Initialize the in-memory ledger.

        Args:
            namespace: Namespace for key isolation (for compatibility)
            clock: Time source for unit timestamps
            released_token_ttl: Seconds a released token is remembered
        """
        super().__init__(namespace)
        self._clock = clock or SystemClock()
        self.released_token_ttl = released_token_ttl

        self._units: dict[str, InventoryUnit] = {}
        self._tokens: dict[str, dict[str, _TokenRecord]] = {}

        # Per-unit locks. The registry lock only guards lock creation.
        self._unit_locks: dict[str, asyncio.Lock] = {}
        self._registry_lock = asyncio.Lock()

        logger.debug(f"Initialized MemoryLedger with namespace '{namespace}'")

    async def _lock_for(self, unit_key: str) -> asyncio.Lock:
        lock = self._unit_locks.get(unit_key)
        if lock is not None:
            return lock
        async with self._registry_lock:
            lock = self._unit_locks.get(unit_key)
            if lock is None:
                lock = asyncio.Lock()
                self._unit_locks[unit_key] = lock
            return lock

    def _prune_tokens_locked(self, unit_key: str, now: datetime) -> int:
        """
        Forget released tokens older than the TTL, and every settled token
        once the unit's window has ended.

        IMPORTANT: Must be called while holding the unit's lock.
        """
        tokens = self._tokens.get(unit_key, {})
        unit = self._units.get(unit_key)
        window_ended = unit is not None and unit.window.has_ended(now)
        cutoff = now.timestamp() - self.released_token_ttl

        stale = [
            token_id
            for token_id, record in tokens.items()
            if (window_ended and record.status != CapacityStatus.HELD)
            or (
                self.released_token_ttl > 0
                and record.released_at is not None
                and record.released_at < cutoff
            )
        ]
        for token_id in stale:
            del tokens[token_id]
        return len(stale)

    def _write_unit_locked(
        self, unit: InventoryUnit, now: datetime, held: int, confirmed: int
    ) -> InventoryUnit:
        """Apply new counters through the timestamped write path."""
        if held < 0 or confirmed < 0 or held + confirmed > unit.total:
            raise AssertionError(
                f"Ledger invariant violated for {unit.unit_key}: "
                f"held={held} confirmed={confirmed} total={unit.total}"
            )
        updated = unit.touch(now, held=held, confirmed=confirmed)
        self._units[unit.unit_key] = updated
        return updated

    # Units

    async def ensure_unit(
        self, facility_id: str, window: TimeWindow, total: int
    ) -> InventoryUnit:
        if total < 0:
            raise ValueError("total must be non-negative")
        unit_key = make_unit_key(facility_id, window)
        async with await self._lock_for(unit_key):
            unit = self._units.get(unit_key)
            if unit is None:
                now = self._clock.now()
                unit = InventoryUnit(
                    unit_key=unit_key,
                    facility_id=facility_id,
                    window=window,
                    total=total,
                    created_at=now,
                    updated_at=now,
                )
                self._units[unit_key] = unit
                self._tokens[unit_key] = {}
                logger.debug(f"Created inventory unit {unit_key} with total={total}")
            elif total > unit.total:
                unit = unit.touch(self._clock.now(), total=total)
                self._units[unit_key] = unit
                logger.info(f"Raised capacity of {unit_key} to {total}")
            return unit

    async def get_unit(self, unit_key: str) -> InventoryUnit | None:
        return self._units.get(unit_key)

    # Capacity Management

    async def reserve_capacity(self, unit_key: str, quantity: int) -> HoldToken:
        validate_quantity(quantity)
        async with await self._lock_for(unit_key):
            unit = self._units.get(unit_key)
            if unit is None:
                raise UnitNotFoundError(unit_key)

            if unit.consumed + quantity > unit.total:
                raise CapacityExhaustedError(
                    f"Unit {unit_key} has {unit.available} of {unit.total} available, "
                    f"requested {quantity}",
                    unit_key=unit_key,
                    available=unit.available,
                )

            token = HoldToken(
                unit_key=unit_key, quantity=quantity, issued_at=self._clock.now()
            )
            self._write_unit_locked(
                unit, token.issued_at, unit.held + quantity, unit.confirmed
            )
            self._tokens[unit_key][token.token_id] = _TokenRecord(
                quantity=quantity, status=CapacityStatus.HELD
            )
            self._prune_tokens_locked(unit_key, token.issued_at)

            logger.debug(
                "Reserved capacity: unit=%s, token=%s, quantity=%d",
                unit_key,
                token.token_id,
                quantity,
            )
            return token

    async def confirm_capacity(self, token: HoldToken) -> bool:
        async with await self._lock_for(token.unit_key):
            unit = self._units.get(token.unit_key)
            record = self._tokens.get(token.unit_key, {}).get(token.token_id)
            if unit is None or record is None:
                raise TokenNotFoundError(token.token_id)

            if record.status == CapacityStatus.CONFIRMED:
                logger.debug(f"Token {token.token_id} already confirmed")
                return False
            if record.status == CapacityStatus.RELEASED:
                raise TokenNotFoundError(token.token_id)

            self._write_unit_locked(
                unit,
                self._clock.now(),
                unit.held - record.quantity,
                unit.confirmed + record.quantity,
            )
            record.status = CapacityStatus.CONFIRMED
            logger.debug(
                f"Confirmed capacity: unit={token.unit_key}, token={token.token_id}"
            )
            return True

    async def release_capacity(self, token: HoldToken) -> bool:
        async with await self._lock_for(token.unit_key):
            unit = self._units.get(token.unit_key)
            record = self._tokens.get(token.unit_key, {}).get(token.token_id)
            if unit is None or record is None:
                raise TokenNotFoundError(token.token_id)

            if record.status == CapacityStatus.RELEASED:
                logger.debug(f"Token {token.token_id} already released")
                return False

            held, confirmed = unit.held, unit.confirmed
            if record.status == CapacityStatus.HELD:
                held -= record.quantity
            else:
                confirmed -= record.quantity

            now = self._clock.now()
            self._write_unit_locked(unit, now, held, confirmed)
            record.status = CapacityStatus.RELEASED
            record.released_at = now.timestamp()
            logger.debug(
                f"Released capacity: unit={token.unit_key}, token={token.token_id}"
            )
            return True

    async def prune_tokens(self) -> int:
        pruned = 0
        for unit_key in list(self._tokens):
            async with await self._lock_for(unit_key):
                pruned += self._prune_tokens_locked(unit_key, self._clock.now())
        if pruned:
            logger.debug(f"Pruned {pruned} token records")
        return pruned

    # Monitoring

    async def health_check(self) -> HealthCheckResult:
        return HealthCheckResult(
            healthy=True,
            backend_type="memory",
            namespace=self.namespace,
            metadata={"units": len(self._units)},
        )

    async def get_stats(self) -> dict[str, Any]:
        held = sum(unit.held for unit in self._units.values())
        confirmed = sum(unit.confirmed for unit in self._units.values())
        tokens = sum(len(records) for records in self._tokens.values())
        return {
            "backend_type": "memory",
            "units": len(self._units),
            "held": held,
            "confirmed": confirmed,
            "tracked_tokens": tokens,
        }
