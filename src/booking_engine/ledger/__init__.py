# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Inventory ledger implementations.

Available ledgers:
- BaseLedger: Abstract base class defining the ledger interface
- MemoryLedger: In-memory ledger for single-process deployments
- RedisLedger: Redis-based ledger shared by many processes (requires redis extra)

Note: RedisLedger is lazily imported to avoid requiring the redis package
when only using MemoryLedger.
"""

from typing import TYPE_CHECKING, cast

from booking_engine.ledger.base import BaseLedger, HealthCheckResult, validate_quantity
from booking_engine.ledger.memory import MemoryLedger

if TYPE_CHECKING:
    from booking_engine.ledger.redis import RedisLedger

__all__ = [
    "BaseLedger",
    "HealthCheckResult",
    "MemoryLedger",
    "RedisLedger",
    "validate_quantity",
]


def __getattr__(name: str) -> type:
    """Lazy import for the optional redis ledger."""
    if name == "RedisLedger":
        try:
            from booking_engine.ledger import redis as redis_module

            return cast(type, getattr(redis_module, name))
        except ImportError as e:  # pragma: no cover
            raise ImportError(  # pragma: no cover
                f"'{name}' requires the 'redis' extra. "
                "Install with: pip install booking-engine[redis]"
            ) from e
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
