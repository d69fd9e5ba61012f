# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Capacity settlement and the repair pass.

A reservation's state decides what the ledger must hold for it: HELD while
HOLD or PENDING, CONFIRMED once CONFIRMED or COMPLETED, RELEASED once
CANCELLED or EXPIRED. Settlement applies the matching ledger operation and
then records the outcome in ``capacity_status``. Because both ledger
operations are idempotent by token, settlement can be replayed any number of
times; the repair pass does exactly that for every reservation whose marker
lags behind its state.
"""

import logging

from .exceptions import (
    BookingEngineError,
    CapacityReconcileRequiredError,
    TokenNotFoundError,
)
from .ledger.base import BaseLedger
from .machine import ReservationStateMachine
from .observability.collector import MetricsCollector
from .observability.constants import (
    RECONCILE_FAILED_TOTAL,
    RECONCILE_REPAIRED_TOTAL,
    RECONCILE_REQUIRED_TOTAL,
    UNSETTLED_RESERVATIONS,
)
from .types.booking import ReconcileReport
from .types.inventory import CapacityStatus
from .types.reservation import Reservation

logger = logging.getLogger(__name__)


class CapacitySettler:
    """Brings the ledger in line with reservation state."""

    def __init__(
        self,
        ledger: BaseLedger,
        machine: ReservationStateMachine,
        metrics: MetricsCollector | None = None,
        batch_size: int = 500,
    ) -> None:
        self.ledger = ledger
        self.machine = machine
        self.metrics = metrics
        self.batch_size = batch_size

    async def settle(self, reservation: Reservation) -> Reservation:
        """
        Apply the ledger operation ``reservation``'s state requires.

        Returns:
            The reservation as stored after settlement. It may still be
            unsettled if another writer changed it concurrently.

        Raises:
            CapacityReconcileRequiredError: If the ledger operation failed
        """
        required = reservation.required_capacity_status
        if reservation.capacity_status == required:
            return reservation

        token = reservation.hold_token
        try:
            if required == CapacityStatus.CONFIRMED:
                changed = await self.ledger.confirm_capacity(token)
            elif required == CapacityStatus.RELEASED:
                changed = await self._release(reservation)
            else:
                logger.warning(
                    f"Reservation {reservation.reference_code} is "
                    f"{reservation.state.value} but capacity is "
                    f"{reservation.capacity_status.value}; leaving it for review"
                )
                return reservation
        except BookingEngineError as e:
            operation = "confirm" if required == CapacityStatus.CONFIRMED else "release"
            if self.metrics is not None:
                self.metrics.inc_counter(
                    RECONCILE_REQUIRED_TOTAL, labels={"operation": operation}
                )
            raise CapacityReconcileRequiredError(
                f"Ledger {operation} failed for reservation "
                f"{reservation.reference_code}: {e}",
                reservation_id=reservation.id,
            ) from e

        logger.debug(
            f"Settled {reservation.reference_code} to {required.value} "
            f"(ledger changed={changed})"
        )
        updated = await self.machine.update_capacity_status(reservation, required)
        if updated is None:
            return await self.machine.get(reservation.id)
        return updated

    async def _release(self, reservation: Reservation) -> bool:
        try:
            return await self.ledger.release_capacity(reservation.hold_token)
        except TokenNotFoundError:
            # The release record aged out of the ledger; nothing is held anymore.
            logger.warning(
                f"Hold token of {reservation.reference_code} unknown to the ledger; "
                f"treating capacity as released"
            )
            return False

    async def reconcile(self, limit: int | None = None) -> ReconcileReport:
        """
        Replay settlement for every reservation whose marker lags its state.

        Safe to run any number of times, concurrently with live traffic.
        """
        report = ReconcileReport()
        unsettled = await self.machine.store.list_unsettled(limit or self.batch_size)

        for reservation in unsettled:
            report.examined += 1
            try:
                settled = await self.settle(reservation)
            except CapacityReconcileRequiredError as e:
                report.failed += 1
                logger.error(f"Repair failed for {reservation.reference_code}: {e}")
                continue
            if settled.capacity_settled:
                report.repaired += 1

        if self.metrics is not None:
            if report.repaired:
                self.metrics.inc_counter(RECONCILE_REPAIRED_TOTAL, report.repaired)
            if report.failed:
                self.metrics.inc_counter(RECONCILE_FAILED_TOTAL, report.failed)
            self.metrics.set_gauge(
                UNSETTLED_RESERVATIONS, report.examined - report.repaired
            )

        if report.examined:
            logger.info(
                "Repair pass: examined=%d repaired=%d failed=%d",
                report.examined,
                report.repaired,
                report.failed,
            )
        return report


__all__ = ["CapacitySettler"]
