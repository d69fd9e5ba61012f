# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the booking engine.

This module defines the exception hierarchy used throughout the library.
All exceptions inherit from BookingEngineError, making it easy to catch
all engine-related exceptions with a single except clause.

Every exception carries a stable ``code`` (see ErrorCode) so API layers can
map failures to responses without matching on class names, and a
``retryable`` flag telling the caller whether repeating the whole operation
once may succeed.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes exposed to callers."""

    NO_AVAILABILITY = "NO_AVAILABILITY"
    HOLD_EXPIRED = "HOLD_EXPIRED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    STALE_STATE = "STALE_STATE"
    NOT_FOUND = "NOT_FOUND"
    CAPACITY_RECONCILE_REQUIRED = "CAPACITY_RECONCILE_REQUIRED"
    CAPACITY_EXHAUSTED = "CAPACITY_EXHAUSTED"
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"
    FACILITY_INACTIVE = "FACILITY_INACTIVE"
    PAYMENT_REJECTED = "PAYMENT_REJECTED"
    REFUND_FAILED = "REFUND_FAILED"
    DUPLICATE_REFERENCE = "DUPLICATE_REFERENCE"
    CONFIGURATION = "CONFIGURATION"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    BACKEND_ERROR = "BACKEND_ERROR"
    INTERNAL = "INTERNAL"


class BookingEngineError(Exception):
    """Base exception for all booking engine errors.

    Example:
        try:
            await coordinator.confirm_booking(ref, payment)
        except BookingEngineError as e:
            logger.error("Booking failed (%s): %s", e.code.value, e)
    """

    code: ErrorCode = ErrorCode.INTERNAL
    retryable: bool = False


class NoAvailabilityError(BookingEngineError):
    """Raised when the requested window has no capacity left.

    User-facing. Not retried automatically: the caller must pick a
    different window.

    Attributes:
        facility_id: The facility that was requested.
        unit_key: The inventory unit that was exhausted.
    """

    code = ErrorCode.NO_AVAILABILITY

    def __init__(
        self,
        message: str,
        facility_id: str | None = None,
        unit_key: str | None = None,
    ):
        super().__init__(message)
        self.facility_id = facility_id
        self.unit_key = unit_key


class HoldExpiredError(BookingEngineError):
    """Raised when confirming a reservation whose hold has lapsed.

    The passenger must restart the booking.
    """

    code = ErrorCode.HOLD_EXPIRED

    def __init__(self, message: str, reference_code: str | None = None):
        super().__init__(message)
        self.reference_code = reference_code


class InvalidTransitionError(BookingEngineError):
    """Raised when the target state is not reachable from the current one."""

    code = ErrorCode.INVALID_TRANSITION
    retryable = True

    def __init__(
        self,
        message: str,
        current_state: str | None = None,
        target_state: str | None = None,
    ):
        super().__init__(message)
        self.current_state = current_state
        self.target_state = target_state


class StaleStateError(BookingEngineError):
    """Raised when the stored state no longer matches the expected state.

    This is the optimistic concurrency guard: someone else transitioned the
    reservation first. The caller may retry the whole operation once.
    """

    code = ErrorCode.STALE_STATE
    retryable = True

    def __init__(
        self,
        message: str,
        expected_state: str | None = None,
        actual_state: str | None = None,
    ):
        super().__init__(message)
        self.expected_state = expected_state
        self.actual_state = actual_state


class NotFoundError(BookingEngineError):
    """Raised when a referenced entity does not exist."""

    code = ErrorCode.NOT_FOUND


class ReservationNotFoundError(NotFoundError):
    """Raised for an unknown reservation id or reference code."""

    def __init__(self, key: str):
        super().__init__(f"Reservation not found: {key}")
        self.key = key


class FacilityNotFoundError(NotFoundError):
    """Raised for an unknown facility id."""

    def __init__(self, facility_id: str):
        super().__init__(f"Facility not found: {facility_id}")
        self.facility_id = facility_id


class UnitNotFoundError(NotFoundError):
    """Raised when a ledger operation targets a unit that was never created."""

    def __init__(self, unit_key: str):
        super().__init__(f"Inventory unit not found: {unit_key}")
        self.unit_key = unit_key


class CapacityReconcileRequiredError(BookingEngineError):
    """Raised internally when the ledger disagrees with a durable transition.

    This happens when a state transition was written but the matching
    ledger operation failed. It triggers the repair pass and is never
    surfaced to the end user.

    Attributes:
        reservation_id: The reservation whose capacity is unsettled.
    """

    code = ErrorCode.CAPACITY_RECONCILE_REQUIRED

    def __init__(self, message: str, reservation_id: str | None = None):
        super().__init__(message)
        self.reservation_id = reservation_id


class CapacityExhaustedError(BookingEngineError):
    """Raised by the ledger when a unit cannot fit the requested quantity.

    Attributes:
        unit_key: The exhausted unit.
        available: Units still free at the time of the check.
    """

    code = ErrorCode.CAPACITY_EXHAUSTED

    def __init__(
        self,
        message: str,
        unit_key: str | None = None,
        available: int | None = None,
    ):
        super().__init__(message)
        self.unit_key = unit_key
        self.available = available


class TokenNotFoundError(BookingEngineError):
    """Raised when a hold token is unknown or was already released."""

    code = ErrorCode.TOKEN_NOT_FOUND

    def __init__(self, token_id: str):
        super().__init__(f"Hold token not found or already released: {token_id}")
        self.token_id = token_id


class FacilityInactiveError(BookingEngineError):
    """Raised when booking a facility that has been deactivated."""

    code = ErrorCode.FACILITY_INACTIVE

    def __init__(self, facility_id: str):
        super().__init__(f"Facility is not active: {facility_id}")
        self.facility_id = facility_id


class PaymentRejectedError(BookingEngineError):
    """Raised when the payment service does not accept a confirmation."""

    code = ErrorCode.PAYMENT_REJECTED


class RefundFailedError(BookingEngineError):
    """Raised when a refund is not acknowledged.

    The reservation stays CONFIRMED and its capacity is not released.
    """

    code = ErrorCode.REFUND_FAILED
    retryable = True


class DuplicateReferenceError(BookingEngineError):
    """Raised by a store when a reference code or id is already taken."""

    code = ErrorCode.DUPLICATE_REFERENCE

    def __init__(self, key: str):
        super().__init__(f"Duplicate reservation key: {key}")
        self.key = key


class ConfigurationError(BookingEngineError):
    """Raised when the engine is wired or configured incorrectly."""

    code = ErrorCode.CONFIGURATION


class BackendConnectionError(BookingEngineError):
    """Raised when connection to the storage backend fails.

    Example:
        try:
            await ledger.reserve_capacity(unit_key, 1)
        except BackendConnectionError:
            logger.warning("Redis unavailable")
    """

    code = ErrorCode.BACKEND_UNAVAILABLE
    retryable = True


class BackendOperationError(BookingEngineError):
    """Raised when a backend operation fails after connecting."""

    code = ErrorCode.BACKEND_ERROR
