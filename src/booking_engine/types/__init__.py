# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Domain types for the booking engine.

This package contains the facility, window, inventory and reservation
models shared by the ledger, the store, the state machine and the
coordinator.
"""

from .booking import (
    BookingAck,
    BookingRef,
    PaymentConfirmation,
    ReconcileReport,
    SweepReport,
)
from .facility import REFERENCE_PREFIXES, CapacityModel, Facility, FacilityType
from .inventory import (
    Availability,
    CapacityStatus,
    HoldToken,
    InventoryUnit,
    make_unit_key,
)
from .records import TimestampedModel, ensure_aware, utcnow
from .reservation import (
    ACTIVE_STATES,
    DETAILS_KIND,
    HOLDING_STATES,
    TERMINAL_STATES,
    TRANSITIONS,
    BookingDetails,
    HotelDetails,
    LoungeDetails,
    ParkingDetails,
    Reservation,
    ReservationState,
    TransitionRecord,
    can_transition,
    required_capacity_status,
)
from .window import TimeWindow

__all__ = [
    "ACTIVE_STATES",
    "DETAILS_KIND",
    "HOLDING_STATES",
    "REFERENCE_PREFIXES",
    "TERMINAL_STATES",
    "TRANSITIONS",
    "Availability",
    "BookingAck",
    "BookingDetails",
    "BookingRef",
    "CapacityModel",
    "CapacityStatus",
    "Facility",
    "FacilityType",
    "HoldToken",
    "HotelDetails",
    "InventoryUnit",
    "LoungeDetails",
    "ParkingDetails",
    "PaymentConfirmation",
    "ReconcileReport",
    "Reservation",
    "ReservationState",
    "SweepReport",
    "TimeWindow",
    "TimestampedModel",
    "TransitionRecord",
    "can_transition",
    "ensure_aware",
    "make_unit_key",
    "required_capacity_status",
    "utcnow",
]
