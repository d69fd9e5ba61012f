# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Expiry Sweeper for the Booking Engine

Background task that moves lapsed holds to EXPIRED and returns their
capacity. The sweeper competes with confirm and cancel through the state
machine's conditional writes: whichever transition lands first wins, and
the loser sees StaleStateError.
"""

import asyncio
import contextlib
import logging
import time

from .alerts import dispatch_alert
from .config import EngineConfig
from .exceptions import (
    CapacityReconcileRequiredError,
    InvalidTransitionError,
    StaleStateError,
)
from .machine import ReservationStateMachine
from .observability.collector import MetricsCollector
from .observability.constants import (
    HOLDS_EXPIRED_TOTAL,
    SWEEP_DURATION_SECONDS,
    SWEEP_LOST_RACES_TOTAL,
    SWEEPS_TOTAL,
)
from .protocols.notifications import NotificationEvent, NotificationSender
from .settlement import CapacitySettler
from .types.booking import SweepReport
from .types.reservation import HOLDING_STATES, ReservationState

logger = logging.getLogger(__name__)

SWEEPER_ACTOR = "system:expiry-sweeper"


class ExpirySweeper:
    """Periodically expires lapsed holds and runs the repair pass."""

    def __init__(
        self,
        machine: ReservationStateMachine,
        settler: CapacitySettler,
        config: EngineConfig | None = None,
        notifications: NotificationSender | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.machine = machine
        self.settler = settler
        self.config = config or EngineConfig()
        self.notifications = notifications
        self.metrics = metrics

        self._running = False
        self._sweep_task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background sweep task."""
        if self._running:
            return

        self._running = True
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        logger.info(
            f"ExpirySweeper started (interval={self.config.sweep_interval}s, "
            f"batch={self.config.sweep_batch_size})"
        )

    async def stop(self) -> None:
        """Stop the background sweep task."""
        if not self._running:
            return

        self._running = False
        if self._sweep_task:
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None
        logger.info("ExpirySweeper stopped")

    async def _sweep_loop(self) -> None:
        """Background task that periodically expires lapsed holds."""
        while self._running:
            try:
                await asyncio.sleep(self.config.sweep_interval)
                if self._running:
                    await self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.exception("Error in expiry sweep: %s", e)

    async def sweep_once(self) -> SweepReport:
        """
        Expire every lapsed HOLD or PENDING reservation in one batch.

        Returns:
            Counts of examined, expired and lost-race reservations
        """
        started = time.monotonic()
        report = SweepReport()
        now = self.machine.clock.now()

        lapsed = await self.machine.store.list_expiring(
            HOLDING_STATES, now, self.config.sweep_batch_size
        )
        for reservation in lapsed:
            report.examined += 1
            try:
                expired = await self.machine.transition(
                    reservation.id,
                    ReservationState.EXPIRED,
                    expected_current=reservation.state,
                    actor=SWEEPER_ACTOR,
                    reason="hold expired",
                )
            except (StaleStateError, InvalidTransitionError) as e:
                # Confirm or cancel got there first
                report.lost_races += 1
                logger.debug(f"Sweeper lost race on {reservation.reference_code}: {e}")
                continue

            report.expired += 1
            try:
                expired = await self.settler.settle(expired)
            except CapacityReconcileRequiredError as e:
                report.release_failures += 1
                logger.warning(f"Release deferred to repair pass: {e}")

            await dispatch_alert(
                self.notifications, NotificationEvent.HOLD_EXPIRED, expired, self.metrics
            )
            if self.metrics is not None:
                self.metrics.inc_counter(
                    HOLDS_EXPIRED_TOTAL,
                    labels={"facility_type": expired.facility_type.value},
                )

        if self.config.reconcile_on_sweep:
            await self.settler.reconcile(self.config.reconcile_batch_size)

        report.tokens_pruned = await self.settler.ledger.prune_tokens()

        if self.metrics is not None:
            self.metrics.inc_counter(SWEEPS_TOTAL)
            if report.lost_races:
                self.metrics.inc_counter(SWEEP_LOST_RACES_TOTAL, report.lost_races)
            self.metrics.observe_histogram(
                SWEEP_DURATION_SECONDS, time.monotonic() - started
            )

        if report.examined:
            logger.info(
                "Sweep: examined=%d expired=%d lost_races=%d release_failures=%d",
                report.examined,
                report.expired,
                report.lost_races,
                report.release_failures,
            )
        return report


__all__ = ["SWEEPER_ACTOR", "ExpirySweeper"]
