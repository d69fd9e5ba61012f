# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for the payment / refund collaborator."""

from typing import Protocol, runtime_checkable

from ..types.booking import PaymentConfirmation
from ..types.reservation import Reservation


@runtime_checkable
class PaymentService(Protocol):
    """
    External payment provider integration.

    The coordinator calls these methods outside of any lock. Both may be
    retried, so implementations should be idempotent per reservation id.
    """

    async def verify(
        self, reservation: Reservation, confirmation: PaymentConfirmation
    ) -> bool:
        """Return True if the confirmation really pays for ``reservation``."""
        ...

    async def refund(self, reservation: Reservation, reason: str) -> bool:
        """
        Refund a confirmed reservation. Return True once acknowledged.

        The coordinator claims the reservation before calling this, so at
        most one call is in flight per reservation. A claim that outlives
        ``EngineConfig.refund_claim_seconds`` can be taken over, so
        ``reservation.id`` should be used as the provider's idempotency key.
        """
        ...
