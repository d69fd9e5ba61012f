# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Inventory ledger types.

An InventoryUnit is one allocatable window of a facility. Its counters are
the only shared mutable state in the engine; ledgers guard them per unit.
"""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .records import TimestampedModel, utcnow
from .window import TimeWindow


class CapacityStatus(str, Enum):
    """Ledger state of a hold token."""

    HELD = "HELD"
    CONFIRMED = "CONFIRMED"
    RELEASED = "RELEASED"


def make_unit_key(facility_id: str, window: TimeWindow) -> str:
    """Deterministic unit key for a facility window."""
    return f"{facility_id}|{window.key}"


class InventoryUnit(TimestampedModel):
    """
    Counters for one facility window.

    Invariant: ``held + confirmed <= total`` and neither counter is negative.
    """

    unit_key: str
    facility_id: str
    window: TimeWindow
    total: int = Field(ge=0)
    held: int = Field(default=0, ge=0)
    confirmed: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _validate_counters(self) -> "InventoryUnit":
        if self.held + self.confirmed > self.total:
            raise ValueError(
                f"Unit {self.unit_key} over-allocated: held={self.held} "
                f"confirmed={self.confirmed} total={self.total}"
            )
        return self

    @property
    def available(self) -> int:
        return self.total - self.held - self.confirmed

    @property
    def consumed(self) -> int:
        return self.held + self.confirmed


class HoldToken(BaseModel):
    """
    Proof of a capacity reservation against one unit.

    Tokens are persisted on the reservation so that any process can replay
    confirm/release during recovery.
    """

    model_config = ConfigDict(frozen=True)

    token_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    unit_key: str
    quantity: int = Field(ge=1)
    issued_at: datetime = Field(default_factory=utcnow)


class Availability(BaseModel):
    """Answer to an availability query."""

    model_config = ConfigDict(frozen=True)

    facility_id: str
    window: TimeWindow
    total: int
    held: int = 0
    confirmed: int = 0

    @property
    def available(self) -> int:
        return max(0, self.total - self.held - self.confirmed)

    @classmethod
    def from_unit(cls, unit: InventoryUnit) -> "Availability":
        return cls(
            facility_id=unit.facility_id,
            window=unit.window,
            total=unit.total,
            held=unit.held,
            confirmed=unit.confirmed,
        )


__all__ = [
    "Availability",
    "CapacityStatus",
    "HoldToken",
    "InventoryUnit",
    "make_unit_key",
]
