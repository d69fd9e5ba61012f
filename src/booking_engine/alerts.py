# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Best-effort passenger alerts."""

import logging

from .observability.collector import MetricsCollector
from .observability.constants import COLLABORATOR_FAILURES_TOTAL
from .protocols.notifications import NotificationEvent, NotificationSender
from .types.reservation import Reservation

logger = logging.getLogger(__name__)


async def dispatch_alert(
    sender: NotificationSender | None,
    event: NotificationEvent,
    reservation: Reservation,
    metrics: MetricsCollector | None = None,
) -> bool:
    """
    Hand ``event`` to the notification sender.

    Delivery failures never affect the booking: they are logged, counted
    and reported through the return value.

    Returns:
        True if the sender accepted the event (or no sender is configured)
    """
    if sender is None:
        return True
    try:
        await sender.send(event, reservation)
    except Exception:
        logger.warning(
            f"Notification {event.value} failed for {reservation.reference_code}",
            exc_info=True,
        )
        if metrics is not None:
            metrics.inc_counter(
                COLLABORATOR_FAILURES_TOTAL, labels={"collaborator": "notifications"}
            )
        return False
    return True


__all__ = ["dispatch_alert"]
