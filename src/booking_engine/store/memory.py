# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
MemoryReservationStore for the Booking Engine

In-memory reservation store for testing, development and single-process
deployments.
"""

import asyncio
import logging
from collections.abc import Iterable
from datetime import datetime

from ..exceptions import DuplicateReferenceError
from ..types.reservation import Reservation, ReservationState
from .base import ReservationStore

logger = logging.getLogger(__name__)


class MemoryReservationStore(ReservationStore):
    """
    In-memory reservation store.

    A single asyncio.Lock guards the indexes. Writes are short and never
    await while holding it.
    """

    def __init__(self) -> None:
        self._reservations: dict[str, Reservation] = {}
        self._by_reference: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def insert(self, reservation: Reservation) -> None:
        async with self._lock:
            if reservation.id in self._reservations:
                raise DuplicateReferenceError(reservation.id)
            if reservation.reference_code in self._by_reference:
                raise DuplicateReferenceError(reservation.reference_code)
            self._reservations[reservation.id] = reservation
            self._by_reference[reservation.reference_code] = reservation.id
        logger.debug(
            f"Inserted reservation {reservation.id} ({reservation.reference_code})"
        )

    async def get(self, reservation_id: str) -> Reservation | None:
        return self._reservations.get(reservation_id)

    async def get_by_reference(self, reference_code: str) -> Reservation | None:
        reservation_id = self._by_reference.get(reference_code)
        if reservation_id is None:
            return None
        return self._reservations.get(reservation_id)

    async def compare_and_set(
        self,
        reservation: Reservation,
        expected_state: ReservationState,
        expected_version: int,
    ) -> bool:
        async with self._lock:
            current = self._reservations.get(reservation.id)
            if (
                current is None
                or current.state != expected_state
                or current.version != expected_version
            ):
                return False
            self._reservations[reservation.id] = reservation
            return True

    async def list_expiring(
        self,
        states: Iterable[ReservationState],
        before: datetime,
        limit: int,
    ) -> list[Reservation]:
        wanted = frozenset(states)
        expiring = sorted(
            (
                r
                for r in self._reservations.values()
                if r.state in wanted and r.hold_expires_at <= before
            ),
            key=lambda r: r.hold_expires_at,
        )
        return expiring[:limit]

    async def list_unsettled(self, limit: int) -> list[Reservation]:
        unsettled = [r for r in self._reservations.values() if not r.capacity_settled]
        unsettled.sort(key=lambda r: r.updated_at)
        return unsettled[:limit]

    async def list_by_unit(self, unit_key: str) -> list[Reservation]:
        return [r for r in self._reservations.values() if r.unit_key == unit_key]

    def __len__(self) -> int:
        return len(self._reservations)
