# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Base Reservation Store for the Booking Engine

The store is the durable home of Reservation records. It never decides
state transitions; it only performs conditional writes keyed on the
expected state and version so that the state machine can detect lost races.
"""

import abc
from collections.abc import Iterable
from datetime import datetime

from ..types.reservation import Reservation, ReservationState


class ReservationStore(abc.ABC):
    """
    An abstract base class for reservation stores.

    Subclasses must implement all abstract methods.
    """

    @abc.abstractmethod
    async def insert(self, reservation: Reservation) -> None:
        """
        Insert a new reservation.

        Raises:
            DuplicateReferenceError: If the id or reference code is taken
        """
        pass

    @abc.abstractmethod
    async def get(self, reservation_id: str) -> Reservation | None:
        """Get a reservation by id."""
        pass

    @abc.abstractmethod
    async def get_by_reference(self, reference_code: str) -> Reservation | None:
        """Get a reservation by its passenger-facing reference code."""
        pass

    @abc.abstractmethod
    async def compare_and_set(
        self,
        reservation: Reservation,
        expected_state: ReservationState,
        expected_version: int,
    ) -> bool:
        """
        Replace the stored reservation if it is unchanged.

        The write succeeds only when the stored record still has
        ``expected_state`` and ``expected_version``.

        Returns:
            True if the write was applied, False if the record changed or is missing
        """
        pass

    @abc.abstractmethod
    async def list_expiring(
        self,
        states: Iterable[ReservationState],
        before: datetime,
        limit: int,
    ) -> list[Reservation]:
        """Reservations in ``states`` whose hold deadline is at or before ``before``.

        Ordered by ``hold_expires_at``, oldest first.
        """
        pass

    @abc.abstractmethod
    async def list_unsettled(self, limit: int) -> list[Reservation]:
        """Reservations whose capacity status differs from what their state requires."""
        pass

    @abc.abstractmethod
    async def list_by_unit(self, unit_key: str) -> list[Reservation]:
        """All reservations against one inventory unit."""
        pass
