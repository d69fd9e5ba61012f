# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Request and result types exchanged with coordinator callers.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .records import utcnow
from .reservation import Reservation, ReservationState


class PaymentConfirmation(BaseModel):
    """
    Payment webhook payload handed to ``confirm_booking``.

    Attributes:
        payment_id: Provider-side payment identifier
        amount: Amount captured, if the provider reports it
        currency_code: Currency of ``amount``
        provider: Payment provider name (for logging)
        received_at: When the webhook arrived
    """

    model_config = ConfigDict(frozen=True)

    payment_id: str = Field(min_length=1)
    amount: Decimal | None = None
    currency_code: str | None = None
    provider: str | None = None
    received_at: datetime = Field(default_factory=utcnow)


class BookingRef(BaseModel):
    """Returned by ``create_booking``."""

    model_config = ConfigDict(frozen=True)

    reference_code: str
    reservation_id: str
    state: ReservationState
    hold_expires_at: datetime
    amount: Decimal | None = None
    currency_code: str

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> "BookingRef":
        return cls(
            reference_code=reservation.reference_code,
            reservation_id=reservation.id,
            state=reservation.state,
            hold_expires_at=reservation.hold_expires_at,
            amount=reservation.amount,
            currency_code=reservation.currency_code,
        )


class BookingAck(BaseModel):
    """Returned by confirm/cancel/complete.

    ``reconcile_pending`` is True when the state change is durable but the
    ledger still has to catch up through the repair pass.
    """

    model_config = ConfigDict(frozen=True)

    reference_code: str
    reservation_id: str
    state: ReservationState
    reconcile_pending: bool = False

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> "BookingAck":
        return cls(
            reference_code=reservation.reference_code,
            reservation_id=reservation.id,
            state=reservation.state,
            reconcile_pending=not reservation.capacity_settled,
        )


@dataclass
class ReconcileReport:
    """Outcome of one repair pass."""

    examined: int = 0
    repaired: int = 0
    failed: int = 0


@dataclass
class SweepReport:
    """Outcome of one sweeper iteration."""

    examined: int = 0
    expired: int = 0
    lost_races: int = 0
    release_failures: int = 0
    tokens_pruned: int = 0


__all__ = [
    "BookingAck",
    "BookingRef",
    "PaymentConfirmation",
    "ReconcileReport",
    "SweepReport",
]
