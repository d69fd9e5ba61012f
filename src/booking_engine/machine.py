# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Reservation State Machine for the Booking Engine

The state machine is the only writer of reservation state. Every
transition is validated against the transition table, written with a
conditional update on (expected state, version), appended to the
reservation's transition log, and forwarded to the audit sink.

No locks are held: two writers racing on one reservation both read
version N, exactly one conditional write succeeds, and the loser gets
StaleStateError.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from .exceptions import (
    HoldExpiredError,
    InvalidTransitionError,
    ReservationNotFoundError,
    StaleStateError,
)
from .observability.collector import MetricsCollector
from .observability.constants import (
    COLLABORATOR_FAILURES_TOTAL,
    STALE_TRANSITIONS_TOTAL,
    TRANSITIONS_TOTAL,
)
from .protocols.audit import AuditSink
from .protocols.clock import Clock, SystemClock
from .store.base import ReservationStore
from .types.facility import FacilityType
from .types.inventory import CapacityStatus, HoldToken
from .types.reservation import (
    BookingDetails,
    Reservation,
    ReservationState,
    TransitionRecord,
    can_transition,
)
from .types.window import TimeWindow

logger = logging.getLogger(__name__)

# Fields owned by the state machine; callers may not pass them as changes
_PROTECTED_FIELDS = frozenset(
    {"id", "state", "transitions", "version", "created_at", "updated_at"}
)


class ReservationStateMachine:
    """Validated, audited state transitions for reservations."""

    def __init__(
        self,
        store: ReservationStore,
        clock: Clock | None = None,
        audit_sink: AuditSink | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.audit_sink = audit_sink
        self.metrics = metrics

    async def get(self, reservation_id: str) -> Reservation:
        reservation = await self.store.get(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation

    async def get_by_reference(self, reference_code: str) -> Reservation:
        reservation = await self.store.get_by_reference(reference_code)
        if reservation is None:
            raise ReservationNotFoundError(reference_code)
        return reservation

    async def create(
        self,
        *,
        reference_code: str,
        passenger_id: str,
        facility_id: str,
        facility_type: FacilityType,
        window: TimeWindow,
        quantity: int,
        hold_expires_at: datetime,
        hold_token: HoldToken,
        actor: str,
        amount: Decimal | None = None,
        currency_code: str = "INR",
        details: BookingDetails | None = None,
    ) -> Reservation:
        """
        Insert a new reservation in HOLD.

        The reservation starts with a single ``None -> HOLD`` transition
        record and ``capacity_status`` HELD, matching the token the caller
        already reserved.

        Raises:
            DuplicateReferenceError: If the reference code is already taken
        """
        now = self.clock.now()
        reservation_id = uuid.uuid4().hex
        record = TransitionRecord(
            reservation_id=reservation_id,
            from_state=None,
            to_state=ReservationState.HOLD,
            at=now,
            actor=actor,
        )
        reservation = Reservation(
            id=reservation_id,
            reference_code=reference_code,
            passenger_id=passenger_id,
            facility_id=facility_id,
            facility_type=facility_type,
            unit_key=hold_token.unit_key,
            window=window,
            quantity=quantity,
            state=ReservationState.HOLD,
            hold_expires_at=hold_expires_at,
            hold_token=hold_token,
            capacity_status=CapacityStatus.HELD,
            amount=amount,
            currency_code=currency_code,
            details=details,
            transitions=(record,),
            created_at=now,
            updated_at=now,
        )
        await self.store.insert(reservation)
        await self._audit(record)
        self._count_transition(record)
        logger.debug(f"Created reservation {reference_code} in HOLD until {hold_expires_at}")
        return reservation

    async def transition(
        self,
        reservation_id: str,
        target: ReservationState,
        expected_current: ReservationState,
        actor: str,
        reason: str | None = None,
        expected_version: int | None = None,
        enforce_hold_deadline: bool = False,
        **changes: Any,
    ) -> Reservation:
        """
        Move a reservation from ``expected_current`` to ``target``.

        Args:
            reservation_id: Reservation to transition
            target: Desired state
            expected_current: State the caller observed
            actor: Who performs the transition (passenger id, admin, system)
            reason: Optional free-text reason for the audit log
            expected_version: Version the caller observed; any other version
                is treated as a concurrent change
            enforce_hold_deadline: Refuse the transition once the hold
                deadline has passed, checked against the record being written
            **changes: Extra fields written in the same conditional update

        Returns:
            The updated reservation

        Raises:
            ReservationNotFoundError: If the reservation does not exist
            StaleStateError: If the stored state is not ``expected_current``,
                the stored version is not ``expected_version``, or a
                concurrent writer won the conditional update
            InvalidTransitionError: If ``target`` is not reachable
            HoldExpiredError: If ``enforce_hold_deadline`` is set and the
                hold has lapsed
        """
        protected = _PROTECTED_FIELDS.intersection(changes)
        if protected:
            raise ValueError(f"Cannot change protected fields: {sorted(protected)}")

        current = await self.get(reservation_id)

        if current.state != expected_current:
            self._count_stale()
            raise StaleStateError(
                f"Reservation {current.reference_code} is {current.state.value}, "
                f"expected {expected_current.value}",
                expected_state=expected_current.value,
                actual_state=current.state.value,
            )
        if expected_version is not None and current.version != expected_version:
            self._count_stale()
            raise StaleStateError(
                f"Reservation {current.reference_code} is at version "
                f"{current.version}, expected {expected_version}",
                expected_state=expected_current.value,
                actual_state=current.state.value,
            )

        if not can_transition(current.state, target):
            raise InvalidTransitionError(
                f"Cannot move reservation {current.reference_code} "
                f"from {current.state.value} to {target.value}",
                current_state=current.state.value,
                target_state=target.value,
            )

        now = self.clock.now()
        if enforce_hold_deadline and current.hold_expired(now):
            raise HoldExpiredError(
                f"Hold on {current.reference_code} expired at "
                f"{current.hold_expires_at.isoformat()}",
                reference_code=current.reference_code,
            )

        record = TransitionRecord(
            reservation_id=current.id,
            from_state=current.state,
            to_state=target,
            at=now,
            actor=actor,
            reason=reason,
        )
        updated = current.touch(
            now,
            state=target,
            transitions=current.transitions + (record,),
            **changes,
        )

        if not await self.store.compare_and_set(
            updated, current.state, current.version
        ):
            self._count_stale()
            latest = await self.store.get(reservation_id)
            actual = latest.state.value if latest is not None else None
            raise StaleStateError(
                f"Reservation {current.reference_code} changed concurrently "
                f"while moving to {target.value}",
                expected_state=expected_current.value,
                actual_state=actual,
            )

        logger.info(
            "Reservation %s: %s -> %s (actor=%s)",
            current.reference_code,
            current.state.value,
            target.value,
            actor,
        )
        await self._audit(record)
        self._count_transition(record)
        return updated

    async def update_capacity_status(
        self, reservation: Reservation, status: CapacityStatus
    ) -> Reservation | None:
        """
        Conditionally record the ledger state of a reservation.

        Returns:
            The updated reservation, or None if the reservation changed since
            ``reservation`` was read
        """
        if reservation.capacity_status == status:
            return reservation
        updated = await self.annotate(reservation, capacity_status=status)
        if updated is None:
            logger.debug(
                f"Lost race recording capacity {status.value} "
                f"for {reservation.reference_code}"
            )
        return updated

    async def annotate(
        self, reservation: Reservation, **changes: Any
    ) -> Reservation | None:
        """
        Conditionally write ``changes`` without changing state.

        The write succeeds only if the stored reservation still has the
        state and version of ``reservation``.

        Returns:
            The updated reservation, or None on a lost race
        """
        protected = _PROTECTED_FIELDS.intersection(changes)
        if protected:
            raise ValueError(f"Cannot change protected fields: {sorted(protected)}")
        updated = reservation.touch(self.clock.now(), **changes)
        if not await self.store.compare_and_set(
            updated, reservation.state, reservation.version
        ):
            return None
        return updated

    async def _audit(self, record: TransitionRecord) -> None:
        if self.audit_sink is None:
            return
        try:
            await self.audit_sink.record(record)
        except Exception:
            logger.exception(
                f"Audit sink failed for transition of {record.reservation_id} "
                f"to {record.to_state.value}"
            )
            if self.metrics is not None:
                self.metrics.inc_counter(
                    COLLABORATOR_FAILURES_TOTAL, labels={"collaborator": "audit"}
                )

    def _count_transition(self, record: TransitionRecord) -> None:
        if self.metrics is None:
            return
        self.metrics.inc_counter(
            TRANSITIONS_TOTAL,
            labels={
                "from_state": record.from_state.value if record.from_state else "NONE",
                "to_state": record.to_state.value,
            },
        )

    def _count_stale(self) -> None:
        if self.metrics is not None:
            self.metrics.inc_counter(STALE_TRANSITIONS_TOTAL)


__all__ = ["ReservationStateMachine"]
