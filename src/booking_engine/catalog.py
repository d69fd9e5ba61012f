# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Facility catalog.

The engine only reads facilities. Catalog management (publishing, pricing)
lives elsewhere; activation toggling is the one write the engine exposes.
"""

import abc
import asyncio
import logging
import uuid
from decimal import Decimal

from .exceptions import FacilityNotFoundError
from .types.facility import CapacityModel, Facility, FacilityType

logger = logging.getLogger(__name__)


class FacilityCatalog(abc.ABC):
    """Read access to published facilities."""

    @abc.abstractmethod
    async def get_facility(self, facility_id: str) -> Facility:
        """
        Get a facility by id.

        Raises:
            FacilityNotFoundError: If no facility has this id
        """
        pass

    @abc.abstractmethod
    async def list_facilities(
        self, facility_type: FacilityType | None = None, active_only: bool = False
    ) -> list[Facility]:
        """List facilities, optionally filtered by type and activation."""
        pass

    @abc.abstractmethod
    async def set_active(self, facility_id: str, is_active: bool) -> Facility:
        """Toggle activation of a facility and return the updated record."""
        pass


class MemoryFacilityCatalog(FacilityCatalog):
    """In-memory catalog; ``(facility_type, code)`` is unique."""

    def __init__(self, facilities: list[Facility] | None = None) -> None:
        self._facilities: dict[str, Facility] = {}
        self._codes: dict[tuple[FacilityType, str], str] = {}
        self._lock = asyncio.Lock()
        for facility in facilities or []:
            self._add_locked(facility)

    def _add_locked(self, facility: Facility) -> None:
        natural_key = (facility.facility_type, facility.code)
        if facility.id in self._facilities:
            raise ValueError(f"Duplicate facility id: {facility.id}")
        if natural_key in self._codes:
            raise ValueError(
                f"Duplicate facility code: {facility.facility_type.value}:{facility.code}"
            )
        self._facilities[facility.id] = facility
        self._codes[natural_key] = facility.id

    async def add(self, facility: Facility) -> Facility:
        async with self._lock:
            self._add_locked(facility)
        logger.debug(f"Added facility {facility.code} ({facility.id})")
        return facility

    async def get_facility(self, facility_id: str) -> Facility:
        facility = self._facilities.get(facility_id)
        if facility is None:
            raise FacilityNotFoundError(facility_id)
        return facility

    async def get_by_code(self, facility_type: FacilityType, code: str) -> Facility:
        facility_id = self._codes.get((facility_type, code))
        if facility_id is None:
            raise FacilityNotFoundError(f"{facility_type.value}:{code}")
        return self._facilities[facility_id]

    async def list_facilities(
        self, facility_type: FacilityType | None = None, active_only: bool = False
    ) -> list[Facility]:
        return [
            facility
            for facility in self._facilities.values()
            if (facility_type is None or facility.facility_type == facility_type)
            and (facility.is_active or not active_only)
        ]

    async def set_active(self, facility_id: str, is_active: bool) -> Facility:
        async with self._lock:
            facility = self._facilities.get(facility_id)
            if facility is None:
                raise FacilityNotFoundError(facility_id)
            updated = facility.model_copy(update={"is_active": is_active})
            self._facilities[facility_id] = updated
        logger.info(
            f"Facility {updated.code} {'activated' if is_active else 'deactivated'}"
        )
        return updated


def seed_facilities() -> list[Facility]:
    """The facilities published with a fresh deployment."""

    def _facility(
        facility_type: FacilityType,
        code: str,
        name: str,
        description: str,
        location_text: str,
        price_base: str | None,
        capacity: CapacityModel,
        metadata: dict[str, object],
    ) -> Facility:
        natural_key = f"facility:{facility_type.value}:{code}"
        return Facility(
            id=str(uuid.uuid5(uuid.NAMESPACE_URL, natural_key)),
            facility_type=facility_type,
            code=code,
            name=name,
            description=description,
            location_text=location_text,
            price_base=Decimal(price_base) if price_base is not None else None,
            currency_code="INR",
            capacity=capacity,
            metadata=metadata,
        )

    return [
        _facility(
            FacilityType.PARKING,
            "PARK_STD",
            "Standard Parking",
            "Hourly standard parking near terminal",
            "T1 - Parking Zone A",
            "100.00",
            CapacityModel(units_per_window=200, slot_minutes=60, billing_unit_minutes=60),
            {"unit": "HOUR"},
        ),
        _facility(
            FacilityType.PARKING,
            "PARK_PREM",
            "Premium Parking",
            "Premium covered parking",
            "T1 - Parking Zone P",
            "200.00",
            CapacityModel(units_per_window=50, slot_minutes=60, billing_unit_minutes=60),
            {"unit": "HOUR"},
        ),
        _facility(
            FacilityType.LOUNGE,
            "LONGE_DOM",
            "Domestic Lounge",
            "Comfortable seating, snacks and Wi-Fi",
            "T1 - Level 2",
            "899.00",
            CapacityModel(units_per_window=80, billing_unit_minutes=180),
            {"duration_minutes": 180},
        ),
        _facility(
            FacilityType.HOTEL,
            "HOTEL_T1",
            "Terminal Hotel",
            "Short stay rooms within airport campus",
            "Airport Campus",
            "2500.00",
            CapacityModel(units_per_window=30, billing_unit_minutes=1440),
            {"unit": "NIGHT"},
        ),
        _facility(
            FacilityType.RESTAURANT,
            "REST_FOOD",
            "Food Court",
            "Multi-cuisine food court",
            "T1 - Concourse",
            None,
            CapacityModel(units_per_window=120, slot_minutes=30),
            {"tags": ["veg", "non_veg"]},
        ),
        _facility(
            FacilityType.SERVICE,
            "SERV_PORTER",
            "Porter Service",
            "Porter assistance for baggage",
            "T1 - Arrivals",
            "300.00",
            CapacityModel(units_per_window=20),
            {"unit": "TRIP"},
        ),
    ]


def seed_catalog() -> MemoryFacilityCatalog:
    """Catalog preloaded with :func:`seed_facilities`."""
    return MemoryFacilityCatalog(seed_facilities())


__all__ = [
    "FacilityCatalog",
    "MemoryFacilityCatalog",
    "seed_catalog",
    "seed_facilities",
]
