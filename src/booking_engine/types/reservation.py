# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Reservation lifecycle types.

Contains the closed state enum, the exhaustive transition table, the
transition audit record, the facility-specific payload variants and the
Reservation record itself.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .facility import FacilityType
from .inventory import CapacityStatus, HoldToken
from .records import TimestampedModel, ensure_aware, utcnow
from .window import TimeWindow


class ReservationState(str, Enum):
    """Lifecycle states of a booking attempt."""

    HOLD = "HOLD"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"
    COMPLETED = "COMPLETED"


TRANSITIONS: dict[ReservationState, frozenset[ReservationState]] = {
    ReservationState.HOLD: frozenset(
        {ReservationState.PENDING, ReservationState.EXPIRED, ReservationState.CANCELLED}
    ),
    ReservationState.PENDING: frozenset(
        {
            ReservationState.CONFIRMED,
            ReservationState.CANCELLED,
            ReservationState.EXPIRED,
        }
    ),
    ReservationState.CONFIRMED: frozenset(
        {ReservationState.COMPLETED, ReservationState.CANCELLED}
    ),
    ReservationState.CANCELLED: frozenset(),
    ReservationState.EXPIRED: frozenset(),
    ReservationState.COMPLETED: frozenset(),
}

TERMINAL_STATES = frozenset(
    state for state, targets in TRANSITIONS.items() if not targets
)

# States whose capacity is still held (not yet confirmed) in the ledger
HOLDING_STATES = frozenset({ReservationState.HOLD, ReservationState.PENDING})

# States that consume capacity
ACTIVE_STATES = HOLDING_STATES | {ReservationState.CONFIRMED}

_REQUIRED_CAPACITY: dict[ReservationState, CapacityStatus] = {
    ReservationState.HOLD: CapacityStatus.HELD,
    ReservationState.PENDING: CapacityStatus.HELD,
    ReservationState.CONFIRMED: CapacityStatus.CONFIRMED,
    ReservationState.COMPLETED: CapacityStatus.CONFIRMED,
    ReservationState.CANCELLED: CapacityStatus.RELEASED,
    ReservationState.EXPIRED: CapacityStatus.RELEASED,
}


def can_transition(current: ReservationState, target: ReservationState) -> bool:
    """Return True if ``target`` is reachable from ``current`` in one step."""
    return target in TRANSITIONS[current]


def required_capacity_status(state: ReservationState) -> CapacityStatus:
    """Ledger state a reservation in ``state`` must have."""
    return _REQUIRED_CAPACITY[state]


class TransitionRecord(BaseModel):
    """Immutable audit entry for one state change."""

    model_config = ConfigDict(frozen=True)

    reservation_id: str
    from_state: ReservationState | None
    to_state: ReservationState
    at: datetime = Field(default_factory=utcnow)
    actor: str
    reason: str | None = None


class ParkingDetails(BaseModel):
    """Parking specifics (``parking_bookings``)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["parking"] = "parking"
    vehicle_number: str = Field(min_length=1, max_length=20)
    slot_code: str | None = Field(default=None, max_length=30)
    entry_time: datetime | None = None
    exit_time: datetime | None = None

    @field_validator("vehicle_number")
    @classmethod
    def _normalize_vehicle(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("vehicle_number cannot be blank")
        return value


class LoungeDetails(BaseModel):
    """Lounge specifics (``lounge_bookings``)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["lounge"] = "lounge"
    lounge_pass_count: int = Field(default=1, ge=1)


class HotelDetails(BaseModel):
    """Hotel specifics (``hotel_bookings``)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["hotel"] = "hotel"
    guests_count: int = Field(default=1, ge=1)
    room_type: str | None = Field(default=None, max_length=50)


BookingDetails = Annotated[
    Union[ParkingDetails, LoungeDetails, HotelDetails],
    Field(discriminator="kind"),
]

# Payload kind expected for each facility type; None means no payload
DETAILS_KIND: dict[FacilityType, str | None] = {
    FacilityType.PARKING: "parking",
    FacilityType.LOUNGE: "lounge",
    FacilityType.HOTEL: "hotel",
    FacilityType.RESTAURANT: None,
    FacilityType.SERVICE: None,
}


class Reservation(TimestampedModel):
    """
    One booking attempt.

    Owned by the state machine. ``transitions`` is append-only; every
    change of ``state`` adds exactly one record.
    """

    id: str
    reference_code: str
    passenger_id: str
    facility_id: str
    facility_type: FacilityType
    unit_key: str
    window: TimeWindow
    quantity: int = Field(ge=1)
    state: ReservationState = ReservationState.HOLD
    hold_expires_at: datetime
    hold_token: HoldToken
    capacity_status: CapacityStatus = CapacityStatus.HELD
    amount: Decimal | None = None
    currency_code: str = "INR"
    payment_reference: str | None = None
    cancel_reason: str | None = None
    refund_requested_at: datetime | None = None
    details: BookingDetails | None = None
    transitions: tuple[TransitionRecord, ...] = ()

    @field_validator("hold_expires_at")
    @classmethod
    def _validate_expiry(cls, value: datetime) -> datetime:
        return ensure_aware(value, "hold_expires_at")

    @field_validator("refund_requested_at")
    @classmethod
    def _validate_refund_requested(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return ensure_aware(value, "refund_requested_at")

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def required_capacity_status(self) -> CapacityStatus:
        return required_capacity_status(self.state)

    @property
    def capacity_settled(self) -> bool:
        """True when the ledger reflects this reservation's state."""
        return self.capacity_status == self.required_capacity_status

    def hold_expired(self, now: datetime) -> bool:
        """True once ``now`` has reached the hold deadline."""
        return now >= self.hold_expires_at

    def refund_claimed(self, now: datetime, claim_seconds: float) -> bool:
        """True while a cancellation's refund claim is younger than ``claim_seconds``."""
        if self.refund_requested_at is None:
            return False
        return (now - self.refund_requested_at).total_seconds() < claim_seconds


__all__ = [
    "ACTIVE_STATES",
    "DETAILS_KIND",
    "HOLDING_STATES",
    "TERMINAL_STATES",
    "TRANSITIONS",
    "BookingDetails",
    "HotelDetails",
    "LoungeDetails",
    "ParkingDetails",
    "Reservation",
    "ReservationState",
    "TransitionRecord",
    "can_transition",
    "required_capacity_status",
]
