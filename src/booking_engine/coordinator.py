# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Booking Coordinator for the Booking Engine

The coordinator is the public face of the engine. It orchestrates one
booking operation at a time across the facility catalog, the inventory
ledger, the reservation state machine and the external payment and
notification services.

Ordering rules:
- Capacity is reserved before a reservation exists, and released if the
  reservation cannot be written.
- State changes are durable before the ledger is settled. A ledger failure
  after a state change is never surfaced to the caller; the repair pass
  replays it.
- A confirmed booking's capacity is released only after the refund is
  acknowledged.
- Collaborators are called outside of any lock.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any

from pydantic import TypeAdapter

from .alerts import dispatch_alert
from .catalog import FacilityCatalog, seed_catalog
from .config import EngineConfig
from .exceptions import (
    BookingEngineError,
    CapacityExhaustedError,
    CapacityReconcileRequiredError,
    ConfigurationError,
    DuplicateReferenceError,
    FacilityInactiveError,
    HoldExpiredError,
    InvalidTransitionError,
    NoAvailabilityError,
    PaymentRejectedError,
    RefundFailedError,
    ReservationNotFoundError,
    StaleStateError,
)
from .ledger.base import BaseLedger, HealthCheckResult, validate_quantity
from .ledger.memory import MemoryLedger
from .machine import ReservationStateMachine
from .observability.collector import MetricsCollector
from .observability.constants import (
    BOOKINGS_CANCELLED_TOTAL,
    BOOKINGS_COMPLETED_TOTAL,
    BOOKINGS_CONFIRMED_TOTAL,
    BOOKINGS_CREATED_TOTAL,
    BOOKINGS_REJECTED_TOTAL,
    COLLABORATOR_FAILURES_TOTAL,
)
from .protocols.audit import AuditSink
from .protocols.clock import Clock, SystemClock
from .protocols.notifications import NotificationEvent, NotificationSender
from .protocols.payments import PaymentService
from .references import generate_reference_code, is_reference_code
from .settlement import CapacitySettler
from .store.base import ReservationStore
from .store.memory import MemoryReservationStore
from .sweeper import ExpirySweeper
from .types.booking import BookingAck, BookingRef, PaymentConfirmation, ReconcileReport
from .types.facility import Facility
from .types.inventory import Availability, HoldToken, make_unit_key
from .types.reservation import (
    DETAILS_KIND,
    BookingDetails,
    HotelDetails,
    LoungeDetails,
    Reservation,
    ReservationState,
)
from .types.window import TimeWindow

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"

_details_adapter: TypeAdapter[BookingDetails] = TypeAdapter(BookingDetails)


class BookingCoordinator:
    """
    Orchestrates booking operations.

    Example:
        >>> engine = create_engine(catalog=seed_catalog())
        >>> async with engine:
        ...     ref = await engine.create_booking("passenger-1", facility_id, window,
        ...                                       details={"vehicle_number": "KA01AB1234"})
        ...     ack = await engine.confirm_booking(ref.reference_code, payment)
    """

    def __init__(
        self,
        catalog: FacilityCatalog,
        ledger: BaseLedger,
        store: ReservationStore,
        config: EngineConfig | None = None,
        clock: Clock | None = None,
        payments: PaymentService | None = None,
        notifications: NotificationSender | None = None,
        audit_sink: AuditSink | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            catalog: Facility catalog (read-only)
            ledger: Inventory ledger owning capacity counters
            store: Durable reservation store
            config: Engine configuration (defaults to EngineConfig())
            clock: Time source shared with the sweeper
            payments: Payment service; without one, payments are not verified
                and confirmed bookings cannot be cancelled
            notifications: Passenger alert sender (optional)
            audit_sink: Receives every state transition (optional)
            metrics: Metrics collector (optional)
        """
        self.config = config or EngineConfig()
        self.clock = clock or SystemClock()
        self.catalog = catalog
        self.ledger = ledger
        self.payments = payments
        self.notifications = notifications
        self.metrics = metrics

        self.machine = ReservationStateMachine(
            store, clock=self.clock, audit_sink=audit_sink, metrics=metrics
        )
        self.settler = CapacitySettler(
            ledger,
            self.machine,
            metrics=metrics,
            batch_size=self.config.reconcile_batch_size,
        )
        self.sweeper = ExpirySweeper(
            self.machine,
            self.settler,
            config=self.config,
            notifications=notifications,
            metrics=metrics,
        )

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    async def start(self) -> None:
        """Start the expiry sweeper."""
        await self.sweeper.start()

    async def stop(self) -> None:
        """Stop the expiry sweeper and release ledger resources."""
        await self.sweeper.stop()
        await self.ledger.cleanup()

    async def __aenter__(self) -> "BookingCoordinator":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()

    async def health_check(self) -> HealthCheckResult:
        return await self.ledger.health_check()

    # ==========================================================================
    # Create
    # ==========================================================================

    async def create_booking(
        self,
        passenger_id: str,
        facility_id: str,
        window: TimeWindow,
        quantity: int = 1,
        hold_duration_seconds: int | None = None,
        details: BookingDetails | Mapping[str, Any] | None = None,
        actor: str | None = None,
    ) -> BookingRef:
        """
        Place a hold on capacity and create a HOLD reservation.

        Args:
            passenger_id: Passenger making the booking
            facility_id: Facility to book
            window: Booking window
            quantity: Units to hold (1..max_quantity_per_booking)
            hold_duration_seconds: Hold length (default: config.default_hold_seconds)
            details: Facility-specific payload, as a model or a plain mapping
            actor: Recorded on the initial transition (default: passenger_id)

        Returns:
            BookingRef with the reference code and hold deadline

        Raises:
            FacilityNotFoundError: If the facility does not exist
            FacilityInactiveError: If the facility is deactivated
            NoAvailabilityError: If the window cannot fit ``quantity``
            ValueError: If window, quantity, hold duration or details are invalid
        """
        validate_quantity(quantity)
        if quantity > self.config.max_quantity_per_booking:
            raise ValueError(
                f"quantity {quantity} exceeds the maximum of "
                f"{self.config.max_quantity_per_booking} per booking"
            )
        hold_seconds = (
            self.config.default_hold_seconds
            if hold_duration_seconds is None
            else hold_duration_seconds
        )
        if hold_seconds < 0:
            raise ValueError("hold_duration_seconds must be non-negative")

        facility = await self.catalog.get_facility(facility_id)
        if not facility.is_active:
            self._count_rejection("create", FacilityInactiveError.code.value)
            raise FacilityInactiveError(facility_id)

        now = self.clock.now()
        if window.has_ended(now):
            raise ValueError(f"Window {window.key} has already ended")
        facility.validate_window(window)
        resolved_details = self._resolve_details(facility, quantity, details)

        capacity = self.config.capacity_for(facility)
        if quantity > capacity:
            self._count_rejection("create", NoAvailabilityError.code.value)
            raise NoAvailabilityError(
                f"Facility {facility.code} offers {capacity} units per window, "
                f"requested {quantity}",
                facility_id=facility.id,
            )

        unit = await self.ledger.ensure_unit(facility.id, window, capacity)
        try:
            token = await self.ledger.reserve_capacity(unit.unit_key, quantity)
        except CapacityExhaustedError as e:
            self._count_rejection("create", NoAvailabilityError.code.value)
            raise NoAvailabilityError(
                f"No availability for {facility.code} in {window.key}",
                facility_id=facility.id,
                unit_key=unit.unit_key,
            ) from e

        try:
            reservation = await self._insert_hold(
                facility=facility,
                passenger_id=passenger_id,
                window=window,
                quantity=quantity,
                hold_expires_at=now + timedelta(seconds=hold_seconds),
                token=token,
                details=resolved_details,
                actor=actor or passenger_id,
            )
        except Exception:
            await self._release_orphaned_hold(token)
            raise

        if self.metrics is not None:
            self.metrics.inc_counter(
                BOOKINGS_CREATED_TOTAL,
                labels={"facility_type": facility.facility_type.value},
            )
        logger.info(
            f"Hold {reservation.reference_code} placed on {facility.code} "
            f"x{quantity} until {reservation.hold_expires_at.isoformat()}"
        )
        return BookingRef.from_reservation(reservation)

    def _resolve_details(
        self,
        facility: Facility,
        quantity: int,
        details: BookingDetails | Mapping[str, Any] | None,
    ) -> BookingDetails | None:
        """Validate the payload against the facility type, filling defaults."""
        kind = DETAILS_KIND[facility.facility_type]

        if details is None:
            if kind == "parking":
                raise ValueError("Parking bookings require a vehicle_number")
            if kind == "lounge":
                return LoungeDetails(lounge_pass_count=quantity)
            if kind == "hotel":
                return HotelDetails()
            return None

        if kind is None:
            raise ValueError(
                f"{facility.facility_type.value} bookings do not take details"
            )
        if isinstance(details, Mapping):
            payload = dict(details)
            payload.setdefault("kind", kind)
            if kind == "lounge":
                payload.setdefault("lounge_pass_count", quantity)
            details = _details_adapter.validate_python(payload)
        if details.kind != kind:
            raise ValueError(
                f"{details.kind} details do not match facility type "
                f"{facility.facility_type.value}"
            )
        return details

    async def _insert_hold(
        self,
        *,
        facility: Facility,
        passenger_id: str,
        window: TimeWindow,
        quantity: int,
        hold_expires_at: datetime,
        token: HoldToken,
        details: BookingDetails | None,
        actor: str,
    ) -> Reservation:
        """Create the reservation, retrying reference code collisions."""
        attempts = self.config.reference_code_attempts
        for attempt in range(1, attempts + 1):
            reference_code = generate_reference_code(
                facility.facility_type, self.config.reference_code_length
            )
            try:
                return await self.machine.create(
                    reference_code=reference_code,
                    passenger_id=passenger_id,
                    facility_id=facility.id,
                    facility_type=facility.facility_type,
                    window=window,
                    quantity=quantity,
                    hold_expires_at=hold_expires_at,
                    hold_token=token,
                    actor=actor,
                    amount=facility.quote(window, quantity),
                    currency_code=facility.currency_code or self.config.default_currency,
                    details=details,
                )
            except DuplicateReferenceError:
                logger.warning(
                    f"Reference code collision on attempt {attempt}: {reference_code}"
                )
        raise DuplicateReferenceError(
            f"no unique reference code after {attempts} attempts"
        )

    async def _release_orphaned_hold(self, token: HoldToken) -> None:
        try:
            await self.ledger.release_capacity(token)
        except BookingEngineError:
            logger.exception(
                f"Failed to release hold {token.token_id} on {token.unit_key} "
                f"after reservation insert failed"
            )

    # ==========================================================================
    # Confirm
    # ==========================================================================

    async def confirm_booking(
        self,
        reference_code: str,
        payment: PaymentConfirmation,
        actor: str | None = None,
    ) -> BookingAck:
        """
        Confirm a held booking after payment.

        Moves HOLD -> PENDING -> CONFIRMED and converts the held capacity to
        confirmed. Confirming an already confirmed booking returns an ack.

        Raises:
            ReservationNotFoundError: If the reference code is unknown
            HoldExpiredError: If the hold lapsed (or the sweeper won the race)
            InvalidTransitionError: If the booking is cancelled or completed
            PaymentRejectedError: If the payment service refuses the payment
        """
        reservation = await self._load(reference_code)
        actor = actor or reservation.passenger_id

        if reservation.state == ReservationState.CONFIRMED:
            logger.debug(f"{reference_code} already confirmed")
            return await self._settled_ack(reservation)
        if reservation.state == ReservationState.EXPIRED:
            self._count_rejection("confirm", HoldExpiredError.code.value)
            raise HoldExpiredError(
                f"Hold on {reference_code} has expired", reference_code=reference_code
            )
        if reservation.state not in (ReservationState.HOLD, ReservationState.PENDING):
            self._count_rejection("confirm", InvalidTransitionError.code.value)
            raise InvalidTransitionError(
                f"Cannot confirm {reference_code} in state {reservation.state.value}",
                current_state=reservation.state.value,
                target_state=ReservationState.CONFIRMED.value,
            )
        if reservation.state == ReservationState.HOLD and reservation.hold_expired(
            self.clock.now()
        ):
            self._count_rejection("confirm", HoldExpiredError.code.value)
            raise HoldExpiredError(
                f"Hold on {reference_code} expired at "
                f"{reservation.hold_expires_at.isoformat()}",
                reference_code=reference_code,
            )

        await self._verify_payment(reservation, payment)

        if reservation.state == ReservationState.HOLD:
            # The hold can lapse during verification
            try:
                reservation = await self.machine.transition(
                    reservation.id,
                    ReservationState.PENDING,
                    expected_current=ReservationState.HOLD,
                    actor=actor,
                    reason="payment received",
                    enforce_hold_deadline=True,
                    payment_reference=payment.payment_id,
                )
            except HoldExpiredError:
                self._count_rejection("confirm", HoldExpiredError.code.value)
                raise
            except StaleStateError as e:
                reservation = await self._after_lost_confirm(reservation, e)
                if reservation.state == ReservationState.CONFIRMED:
                    return await self._settled_ack(reservation)

        try:
            reservation = await self.machine.transition(
                reservation.id,
                ReservationState.CONFIRMED,
                expected_current=ReservationState.PENDING,
                actor=actor,
                reason="payment confirmed",
                payment_reference=payment.payment_id,
            )
        except StaleStateError as e:
            reservation = await self._after_lost_confirm(reservation, e)
            if reservation.state != ReservationState.CONFIRMED:
                raise
            return await self._settled_ack(reservation)

        ack = await self._settled_ack(reservation)
        await dispatch_alert(
            self.notifications,
            NotificationEvent.BOOKING_CONFIRMED,
            reservation,
            self.metrics,
        )
        if self.metrics is not None:
            self.metrics.inc_counter(
                BOOKINGS_CONFIRMED_TOTAL,
                labels={"facility_type": reservation.facility_type.value},
            )
        return ack

    async def _after_lost_confirm(
        self, reservation: Reservation, error: StaleStateError
    ) -> Reservation:
        """
        Decide the outcome of a confirm step that lost a race.

        Returns the latest reservation when it is PENDING or CONFIRMED (a
        concurrent confirm made progress); otherwise raises.
        """
        latest = await self.machine.get(reservation.id)
        if latest.state in (ReservationState.PENDING, ReservationState.CONFIRMED):
            return latest
        if latest.state == ReservationState.EXPIRED:
            self._count_rejection("confirm", HoldExpiredError.code.value)
            raise HoldExpiredError(
                f"Hold on {reservation.reference_code} expired during confirmation",
                reference_code=reservation.reference_code,
            ) from error
        self._count_rejection("confirm", error.code.value)
        raise error

    async def _verify_payment(
        self, reservation: Reservation, payment: PaymentConfirmation
    ) -> None:
        if (
            payment.amount is not None
            and reservation.amount is not None
            and payment.amount != reservation.amount
        ):
            self._count_rejection("confirm", PaymentRejectedError.code.value)
            raise PaymentRejectedError(
                f"Payment {payment.payment_id} of {payment.amount} does not match "
                f"{reservation.amount} due for {reservation.reference_code}"
            )
        if (
            payment.currency_code is not None
            and payment.currency_code.upper() != reservation.currency_code
        ):
            self._count_rejection("confirm", PaymentRejectedError.code.value)
            raise PaymentRejectedError(
                f"Payment {payment.payment_id} is in {payment.currency_code}, "
                f"expected {reservation.currency_code}"
            )

        if self.payments is None:
            return
        try:
            verified = await self.payments.verify(reservation, payment)
        except Exception:
            logger.warning(
                f"Payment verification unavailable for {reservation.reference_code}",
                exc_info=True,
            )
            self._count_collaborator_failure("payments")
            raise
        if not verified:
            self._count_rejection("confirm", PaymentRejectedError.code.value)
            raise PaymentRejectedError(
                f"Payment {payment.payment_id} rejected for {reservation.reference_code}"
            )

    # ==========================================================================
    # Cancel / Complete
    # ==========================================================================

    async def cancel_booking(
        self,
        reference_code: str,
        reason: str,
        actor: str | None = None,
    ) -> BookingAck:
        """
        Cancel a booking and return its capacity.

        A confirmed booking is refunded first; its capacity is released only
        once the refund is acknowledged. Before refunding, the cancellation
        claims the booking with a conditional write of
        ``refund_requested_at``, so concurrent or repeated cancels refund at
        most once and a claimed booking cannot be completed.

        Raises:
            ReservationNotFoundError: If the reference code is unknown
            RefundFailedError: If a confirmed booking could not be refunded
            StaleStateError: If another cancellation is refunding the booking
            InvalidTransitionError: If the booking expired or completed
        """
        reservation = await self._load(reference_code)
        actor = actor or reservation.passenger_id

        if reservation.state == ReservationState.CONFIRMED:
            reservation = await self._claim_refund(reservation)
            if reservation.state == ReservationState.CONFIRMED:
                await self._refund(reservation, reason)

        if reservation.state == ReservationState.CANCELLED:
            logger.debug(f"{reference_code} already cancelled")
            return await self._settled_ack(reservation)
        if reservation.state in (ReservationState.EXPIRED, ReservationState.COMPLETED):
            self._count_rejection("cancel", InvalidTransitionError.code.value)
            raise InvalidTransitionError(
                f"Cannot cancel {reference_code} in state {reservation.state.value}",
                current_state=reservation.state.value,
                target_state=ReservationState.CANCELLED.value,
            )

        try:
            reservation = await self.machine.transition(
                reservation.id,
                ReservationState.CANCELLED,
                expected_current=reservation.state,
                actor=actor,
                reason=reason,
                cancel_reason=reason,
            )
        except StaleStateError:
            latest = await self.machine.get(reservation.id)
            if latest.state != ReservationState.CANCELLED:
                self._count_rejection("cancel", StaleStateError.code.value)
                raise
            return await self._settled_ack(latest)

        ack = await self._settled_ack(reservation)
        await dispatch_alert(
            self.notifications,
            NotificationEvent.BOOKING_CANCELLED,
            reservation,
            self.metrics,
        )
        if self.metrics is not None:
            self.metrics.inc_counter(
                BOOKINGS_CANCELLED_TOTAL,
                labels={"facility_type": reservation.facility_type.value},
            )
        return ack

    async def _claim_refund(self, reservation: Reservation) -> Reservation:
        """
        Claim a confirmed booking for refund.

        Returns the claimed reservation, or the latest one if it left
        CONFIRMED before the claim landed.

        Raises:
            RefundFailedError: If no payment service is configured
            StaleStateError: If another cancellation holds a live claim
        """
        if self.payments is None:
            self._count_rejection("cancel", RefundFailedError.code.value)
            raise RefundFailedError(
                f"Cannot refund {reservation.reference_code}: "
                f"no payment service configured"
            )
        while True:
            now = self.clock.now()
            if reservation.refund_claimed(now, self.config.refund_claim_seconds):
                self._count_rejection("cancel", StaleStateError.code.value)
                raise StaleStateError(
                    f"Refund for {reservation.reference_code} is already in progress",
                    expected_state=ReservationState.CONFIRMED.value,
                    actual_state=reservation.state.value,
                )
            claimed = await self.machine.annotate(
                reservation, refund_requested_at=now
            )
            if claimed is not None:
                return claimed
            reservation = await self.machine.get(reservation.id)
            if reservation.state != ReservationState.CONFIRMED:
                return reservation

    async def _release_refund_claim(self, reservation: Reservation) -> None:
        if await self.machine.annotate(reservation, refund_requested_at=None) is None:
            logger.warning(
                f"Refund claim on {reservation.reference_code} changed concurrently; "
                f"it lapses after {self.config.refund_claim_seconds}s"
            )

    async def _refund(self, reservation: Reservation, reason: str) -> None:
        assert self.payments is not None
        try:
            refunded = await self.payments.refund(reservation, reason)
        except Exception as e:
            self._count_collaborator_failure("payments")
            self._count_rejection("cancel", RefundFailedError.code.value)
            await self._release_refund_claim(reservation)
            raise RefundFailedError(
                f"Refund failed for {reservation.reference_code}: {e}"
            ) from e
        if not refunded:
            self._count_rejection("cancel", RefundFailedError.code.value)
            await self._release_refund_claim(reservation)
            raise RefundFailedError(
                f"Refund not acknowledged for {reservation.reference_code}"
            )
        logger.info(f"Refund acknowledged for {reservation.reference_code}")

    async def complete_booking(
        self, reference_code: str, actor: str | None = None
    ) -> BookingAck:
        """
        Mark a confirmed booking as used. Capacity stays confirmed.

        Raises:
            InvalidTransitionError: If a cancellation is refunding the booking
            StaleStateError: If the booking is not CONFIRMED or changed
                while completing
        """
        reservation = await self._load(reference_code)
        if reservation.state == ReservationState.CONFIRMED and reservation.refund_claimed(
            self.clock.now(), self.config.refund_claim_seconds
        ):
            self._count_rejection("complete", InvalidTransitionError.code.value)
            raise InvalidTransitionError(
                f"Cannot complete {reference_code}: cancellation in progress",
                current_state=reservation.state.value,
                target_state=ReservationState.COMPLETED.value,
            )
        reservation = await self.machine.transition(
            reservation.id,
            ReservationState.COMPLETED,
            expected_current=ReservationState.CONFIRMED,
            actor=actor or SYSTEM_ACTOR,
            reason="service delivered",
            expected_version=reservation.version,
        )
        if self.metrics is not None:
            self.metrics.inc_counter(
                BOOKINGS_COMPLETED_TOTAL,
                labels={"facility_type": reservation.facility_type.value},
            )
        return await self._settled_ack(reservation)

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get_availability(
        self, facility_id: str, window: TimeWindow
    ) -> Availability:
        """Report capacity for a window without creating its inventory unit."""
        facility = await self.catalog.get_facility(facility_id)
        unit = await self.ledger.get_unit(make_unit_key(facility.id, window))
        if unit is None:
            return Availability(
                facility_id=facility.id,
                window=window,
                total=self.config.capacity_for(facility),
            )
        return Availability.from_unit(unit)

    async def get_booking(self, reference_code: str) -> Reservation:
        return await self._load(reference_code)

    async def reconcile(self, limit: int | None = None) -> ReconcileReport:
        """Run the repair pass once."""
        return await self.settler.reconcile(limit)

    # ==========================================================================
    # Helpers
    # ==========================================================================

    async def _load(self, reference_code: str) -> Reservation:
        if not is_reference_code(reference_code):
            raise ReservationNotFoundError(reference_code)
        return await self.machine.get_by_reference(reference_code)

    async def _settled_ack(self, reservation: Reservation) -> BookingAck:
        """Settle the ledger for ``reservation`` and build the ack.

        Ledger failures are deferred to the repair pass and reported through
        ``reconcile_pending``.
        """
        try:
            reservation = await self.settler.settle(reservation)
        except CapacityReconcileRequiredError as e:
            logger.error(f"{e} (deferred to repair pass)")
        return BookingAck.from_reservation(reservation)

    def _count_rejection(self, operation: str, reason: str) -> None:
        if self.metrics is not None:
            self.metrics.inc_counter(
                BOOKINGS_REJECTED_TOTAL,
                labels={"operation": operation, "reason": reason},
            )

    def _count_collaborator_failure(self, collaborator: str) -> None:
        if self.metrics is not None:
            self.metrics.inc_counter(
                COLLABORATOR_FAILURES_TOTAL, labels={"collaborator": collaborator}
            )


def create_engine(
    catalog: FacilityCatalog | None = None,
    ledger: BaseLedger | None = None,
    store: ReservationStore | None = None,
    config: EngineConfig | None = None,
    backend: str = "memory",
    redis_url: str | None = None,
    **kwargs: Any,
) -> BookingCoordinator:
    """
    Factory function to create a BookingCoordinator with default wiring.

    Args:
        catalog: Facility catalog (default: the seed catalog)
        ledger: Inventory ledger (default: built from ``backend``)
        store: Reservation store (default: MemoryReservationStore)
        config: Engine config (will create default if not provided)
        backend: Ledger backend when ``ledger`` is not given ("memory", "redis")
        redis_url: Redis URL for the redis backend
        **kwargs: Additional arguments passed to BookingCoordinator
            (clock, payments, notifications, audit_sink, metrics)

    Returns:
        Configured BookingCoordinator instance

    Raises:
        ConfigurationError: If backend is unknown
    """
    if config is None:
        config = EngineConfig()
    clock = kwargs.get("clock")

    if ledger is None:
        backend_name = backend.lower()
        if backend_name == "memory":
            ledger = MemoryLedger(
                namespace=config.namespace,
                clock=clock,
                released_token_ttl=config.released_token_ttl,
            )
        elif backend_name == "redis":
            from .ledger.redis import RedisLedger

            ledger = RedisLedger(
                redis_url=redis_url,
                namespace=config.namespace,
                clock=clock,
                released_token_ttl=config.released_token_ttl,
            )
        else:
            raise ConfigurationError(f"Unknown ledger backend: {backend}")

    return BookingCoordinator(
        catalog=catalog if catalog is not None else seed_catalog(),
        ledger=ledger,
        store=store if store is not None else MemoryReservationStore(),
        config=config,
        **kwargs,
    )


__all__ = ["SYSTEM_ACTOR", "BookingCoordinator", "create_engine"]
