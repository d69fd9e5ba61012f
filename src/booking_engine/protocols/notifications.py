# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for passenger notifications."""

from enum import Enum
from typing import Protocol, runtime_checkable

from ..types.reservation import Reservation


class NotificationEvent(str, Enum):
    """Booking events passengers are alerted about."""

    BOOKING_CONFIRMED = "BOOKING_CONFIRMED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    HOLD_EXPIRED = "HOLD_EXPIRED"


@runtime_checkable
class NotificationSender(Protocol):
    """Delivery is external; the engine only hands over the event."""

    async def send(self, event: NotificationEvent, reservation: Reservation) -> None:
        ...
