# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Booking Engine - Capacity-safe reservations for airport facilities.

This library books parking, lounges, hotel rooms, restaurant seats and
services against a fixed capacity per time window, with short payment holds
that expire automatically.

Key Features:
    - Atomic per-window capacity ledger (in-memory or Redis with Lua scripts)
    - Reservation state machine with optimistic concurrency and audit trail
    - Payment-gated confirmation and refund-gated cancellation
    - Background sweeper that expires lapsed holds
    - Repair pass that replays ledger operations after partial failures

Quick Start:
    >>> from datetime import datetime, timezone
    >>> from booking_engine import PaymentConfirmation, TimeWindow, create_engine
    >>>
    >>> engine = create_engine()
    >>> window = TimeWindow.starting_at(
    ...     datetime(2026, 11, 1, 8, tzinfo=timezone.utc), hours=3
    ... )
    >>> async with engine:
    ...     ref = await engine.create_booking(
    ...         "passenger-1", facility_id, window,
    ...         details={"vehicle_number": "KA01AB1234"},
    ...     )
    ...     await engine.confirm_booking(
    ...         ref.reference_code, PaymentConfirmation(payment_id="pay_123")
    ...     )

Note: RedisLedger requires the 'redis' extra. Install with:
    pip install booking-engine[redis]

Version: 1.0.0
"""

__version__ = "1.0.0"

from typing import TYPE_CHECKING

from .catalog import FacilityCatalog, MemoryFacilityCatalog, seed_catalog
from .config import EngineConfig
from .coordinator import BookingCoordinator, create_engine
from .exceptions import (
    BackendConnectionError,
    BackendOperationError,
    BookingEngineError,
    CapacityExhaustedError,
    CapacityReconcileRequiredError,
    ConfigurationError,
    DuplicateReferenceError,
    ErrorCode,
    FacilityInactiveError,
    FacilityNotFoundError,
    HoldExpiredError,
    InvalidTransitionError,
    NoAvailabilityError,
    NotFoundError,
    PaymentRejectedError,
    RefundFailedError,
    ReservationNotFoundError,
    StaleStateError,
    TokenNotFoundError,
    UnitNotFoundError,
)
from .ledger import BaseLedger, HealthCheckResult, MemoryLedger
from .machine import ReservationStateMachine
from .protocols import (
    AuditSink,
    Clock,
    NotificationEvent,
    NotificationSender,
    PaymentService,
    SystemClock,
)
from .settlement import CapacitySettler
from .store import MemoryReservationStore, ReservationStore
from .sweeper import ExpirySweeper
from .types import (
    Availability,
    BookingAck,
    BookingRef,
    CapacityModel,
    CapacityStatus,
    Facility,
    FacilityType,
    HoldToken,
    HotelDetails,
    InventoryUnit,
    LoungeDetails,
    ParkingDetails,
    PaymentConfirmation,
    ReconcileReport,
    Reservation,
    ReservationState,
    SweepReport,
    TimeWindow,
    TransitionRecord,
)

# Lazy import for optional redis ledger
if TYPE_CHECKING:
    from .ledger import RedisLedger

__all__ = [
    "AuditSink",
    "Availability",
    "BackendConnectionError",
    "BackendOperationError",
    # Ledgers
    "BaseLedger",
    # Coordinator
    "BookingAck",
    "BookingCoordinator",
    # Exceptions
    "BookingEngineError",
    "BookingRef",
    "CapacityExhaustedError",
    "CapacityModel",
    "CapacityReconcileRequiredError",
    "CapacitySettler",
    "CapacityStatus",
    # Protocols
    "Clock",
    "ConfigurationError",
    "DuplicateReferenceError",
    "EngineConfig",
    "ErrorCode",
    "ExpirySweeper",
    # Catalog
    "Facility",
    "FacilityCatalog",
    "FacilityInactiveError",
    "FacilityNotFoundError",
    "FacilityType",
    "HealthCheckResult",
    "HoldExpiredError",
    "HoldToken",
    "HotelDetails",
    "InvalidTransitionError",
    "InventoryUnit",
    "LoungeDetails",
    "MemoryFacilityCatalog",
    "MemoryLedger",
    "MemoryReservationStore",
    "NoAvailabilityError",
    "NotFoundError",
    "NotificationEvent",
    "NotificationSender",
    "ParkingDetails",
    "PaymentConfirmation",
    "PaymentRejectedError",
    "PaymentService",
    "ReconcileReport",
    "RedisLedger",  # Lazy loaded - requires redis extra
    "RefundFailedError",
    # Reservations
    "Reservation",
    "ReservationNotFoundError",
    "ReservationState",
    "ReservationStateMachine",
    "ReservationStore",
    "StaleStateError",
    "SweepReport",
    "SystemClock",
    "TimeWindow",
    "TokenNotFoundError",
    "TransitionRecord",
    "UnitNotFoundError",
    "create_engine",
    "seed_catalog",
]


def __getattr__(name: str) -> type:
    """Lazy import for optional redis ledger."""
    if name == "RedisLedger":
        from .ledger import RedisLedger

        return RedisLedger
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
