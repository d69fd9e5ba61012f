# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Facility catalog types.

A Facility is a bookable category (parking zone, lounge, hotel) identified
by type + code. It carries a capacity model and a base price. Facilities
are owned by catalog management; the engine only reads them.
"""

import math
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .window import TimeWindow


class FacilityType(str, Enum):
    """Kinds of bookable facilities."""

    PARKING = "PARKING"
    LOUNGE = "LOUNGE"
    HOTEL = "HOTEL"
    RESTAURANT = "RESTAURANT"
    SERVICE = "SERVICE"


# Prefix of the passenger-facing reference code for each facility type
REFERENCE_PREFIXES: dict[FacilityType, str] = {
    FacilityType.PARKING: "PK",
    FacilityType.LOUNGE: "LG",
    FacilityType.HOTEL: "HT",
    FacilityType.RESTAURANT: "RS",
    FacilityType.SERVICE: "SV",
}


class CapacityModel(BaseModel):
    """
    How many units a facility offers per booking window.

    Attributes:
        units_per_window: Allocatable units for any single window
        slot_minutes: When set, windows must span a whole number of slots
        billing_unit_minutes: When set, price is charged per started billing unit
    """

    model_config = ConfigDict(frozen=True)

    units_per_window: int = Field(default=1, ge=1)
    slot_minutes: int | None = Field(default=None, ge=1)
    billing_unit_minutes: int | None = Field(default=None, ge=1)


class Facility(BaseModel):
    """A published, bookable facility."""

    model_config = ConfigDict(frozen=True)

    id: str
    facility_type: FacilityType
    code: str = Field(min_length=1, max_length=60)
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    location_text: str | None = None
    is_active: bool = True
    price_base: Decimal | None = Field(default=None, ge=0)
    currency_code: str | None = None
    capacity: CapacityModel = Field(default_factory=CapacityModel)
    metadata: dict[str, Any] | None = None

    @field_validator("currency_code")
    @classmethod
    def _validate_currency(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.upper()
        if len(value) != 3 or not value.isalpha():
            raise ValueError(f"currency_code must be a 3-letter ISO code, got {value!r}")
        return value

    @property
    def reference_prefix(self) -> str:
        return REFERENCE_PREFIXES[self.facility_type]

    def validate_window(self, window: TimeWindow) -> None:
        """
        Check that a window fits this facility's slot grid.

        Raises:
            ValueError: If the window is not a whole number of slots
        """
        slot = self.capacity.slot_minutes
        if slot is None:
            return
        minutes = window.duration.total_seconds() / 60
        if minutes % slot != 0:
            raise ValueError(
                f"Window of {minutes:g} minutes is not a multiple of the "
                f"{slot}-minute slot for facility {self.code}"
            )

    def quote(self, window: TimeWindow, quantity: int) -> Decimal | None:
        """Price for ``quantity`` units over ``window``, or None if unpriced."""
        if self.price_base is None:
            return None
        billable = 1
        unit = self.capacity.billing_unit_minutes
        if unit is not None:
            billable = max(1, math.ceil(window.duration.total_seconds() / (unit * 60)))
        return (self.price_base * quantity * billable).quantize(Decimal("0.01"))


__all__ = ["REFERENCE_PREFIXES", "CapacityModel", "Facility", "FacilityType"]
