"""
Unit tests for ReservationStateMachine.
"""

from unittest.mock import AsyncMock, patch

import pytest

from booking_engine import (
    CapacityStatus,
    FacilityType,
    HoldExpiredError,
    InvalidTransitionError,
    ReservationNotFoundError,
    ReservationState,
    ReservationStateMachine,
    StaleStateError,
)
from booking_engine.observability.constants import (
    COLLABORATOR_FAILURES_TOTAL,
    STALE_TRANSITIONS_TOTAL,
    TRANSITIONS_TOTAL,
)


class TestReservationStateMachine:
    @pytest.fixture
    def machine(self, store, clock, audit_sink, metrics):
        return ReservationStateMachine(
            store, clock=clock, audit_sink=audit_sink, metrics=metrics
        )

    @pytest.fixture
    async def reservation(self, machine, ledger, facilities, window, clock):
        facility = facilities["LONGE_DOM"]
        unit = await ledger.ensure_unit(facility.id, window, 10)
        token = await ledger.reserve_capacity(unit.unit_key, 1)
        return await machine.create(
            reference_code="LG-ABCDEFGHJK",
            passenger_id="pax-1",
            facility_id=facility.id,
            facility_type=FacilityType.LOUNGE,
            window=window,
            quantity=1,
            hold_expires_at=clock.now(),
            hold_token=token,
            actor="pax-1",
        )

    @pytest.mark.asyncio
    async def test_create(self, machine, reservation, audit_sink, metrics):
        assert reservation.state == ReservationState.HOLD
        assert reservation.version == 1
        assert reservation.unit_key == reservation.hold_token.unit_key
        assert reservation.capacity_status == CapacityStatus.HELD

        stored = await machine.get(reservation.id)
        assert stored == reservation
        assert await machine.get_by_reference("LG-ABCDEFGHJK") == reservation
        audit_sink.record.assert_awaited_once_with(reservation.transitions[0])
        assert metrics.get_counter(
            TRANSITIONS_TOTAL, {"from_state": "NONE", "to_state": "HOLD"}
        ) == 1

    @pytest.mark.asyncio
    async def test_transition(self, machine, reservation, clock, metrics):
        clock.advance(5)

        updated = await machine.transition(
            reservation.id,
            ReservationState.PENDING,
            expected_current=ReservationState.HOLD,
            actor="pax-1",
            reason="payment received",
            payment_reference="pay_1",
        )

        assert updated.state == ReservationState.PENDING
        assert updated.version == 2
        assert updated.updated_at == clock.now()
        assert updated.created_at == reservation.created_at
        assert updated.payment_reference == "pay_1"
        record = updated.transitions[-1]
        assert record.from_state == ReservationState.HOLD
        assert record.to_state == ReservationState.PENDING
        assert record.reason == "payment received"
        assert metrics.get_counter(
            TRANSITIONS_TOTAL, {"from_state": "HOLD", "to_state": "PENDING"}
        ) == 1

    @pytest.mark.asyncio
    async def test_stale_expected_state(self, machine, reservation, metrics):
        with pytest.raises(StaleStateError) as exc_info:
            await machine.transition(
                reservation.id,
                ReservationState.CONFIRMED,
                expected_current=ReservationState.PENDING,
                actor="pax-1",
            )

        assert exc_info.value.expected_state == "PENDING"
        assert exc_info.value.actual_state == "HOLD"
        assert metrics.get_counter(STALE_TRANSITIONS_TOTAL) == 1

    @pytest.mark.asyncio
    async def test_invalid_transition(self, machine, reservation):
        with pytest.raises(InvalidTransitionError) as exc_info:
            await machine.transition(
                reservation.id,
                ReservationState.COMPLETED,
                expected_current=ReservationState.HOLD,
                actor="pax-1",
            )

        assert exc_info.value.current_state == "HOLD"
        assert exc_info.value.target_state == "COMPLETED"

    @pytest.mark.asyncio
    async def test_terminal_state_has_no_exit(self, machine, reservation):
        await machine.transition(
            reservation.id,
            ReservationState.EXPIRED,
            expected_current=ReservationState.HOLD,
            actor="system",
        )

        for target in ReservationState:
            with pytest.raises(InvalidTransitionError):
                await machine.transition(
                    reservation.id,
                    target,
                    expected_current=ReservationState.EXPIRED,
                    actor="system",
                )

    @pytest.mark.asyncio
    async def test_protected_fields_rejected(self, machine, reservation):
        with pytest.raises(ValueError, match="protected"):
            await machine.transition(
                reservation.id,
                ReservationState.PENDING,
                expected_current=ReservationState.HOLD,
                actor="pax-1",
                version=99,
            )

    @pytest.mark.asyncio
    async def test_lost_conditional_write(self, machine, store, reservation):
        with patch.object(store, "compare_and_set", AsyncMock(return_value=False)):
            with pytest.raises(StaleStateError, match="changed concurrently"):
                await machine.transition(
                    reservation.id,
                    ReservationState.PENDING,
                    expected_current=ReservationState.HOLD,
                    actor="pax-1",
                )

        stored = await machine.get(reservation.id)
        assert stored.state == ReservationState.HOLD
        assert len(stored.transitions) == 1

    @pytest.mark.asyncio
    async def test_unknown_reservation(self, machine):
        with pytest.raises(ReservationNotFoundError):
            await machine.transition(
                "missing",
                ReservationState.PENDING,
                expected_current=ReservationState.HOLD,
                actor="pax-1",
            )
        with pytest.raises(ReservationNotFoundError):
            await machine.get_by_reference("LG-MISSING")

    @pytest.mark.asyncio
    async def test_audit_failure_is_swallowed(
        self, machine, reservation, audit_sink, metrics
    ):
        audit_sink.record.side_effect = RuntimeError("audit down")

        updated = await machine.transition(
            reservation.id,
            ReservationState.CANCELLED,
            expected_current=ReservationState.HOLD,
            actor="pax-1",
        )

        assert updated.state == ReservationState.CANCELLED
        assert metrics.get_counter(
            COLLABORATOR_FAILURES_TOTAL, {"collaborator": "audit"}
        ) == 1

    @pytest.mark.asyncio
    async def test_update_capacity_status(self, machine, reservation):
        updated = await machine.update_capacity_status(
            reservation, CapacityStatus.CONFIRMED
        )

        assert updated.capacity_status == CapacityStatus.CONFIRMED
        assert updated.version == reservation.version + 1
        assert updated.transitions == reservation.transitions

    @pytest.mark.asyncio
    async def test_update_capacity_status_unchanged(self, machine, reservation):
        same = await machine.update_capacity_status(reservation, CapacityStatus.HELD)
        assert same is reservation

    @pytest.mark.asyncio
    async def test_update_capacity_status_lost_race(self, machine, reservation):
        await machine.transition(
            reservation.id,
            ReservationState.CANCELLED,
            expected_current=ReservationState.HOLD,
            actor="pax-1",
        )

        result = await machine.update_capacity_status(
            reservation, CapacityStatus.RELEASED
        )

        assert result is None

    @pytest.mark.asyncio
    async def test_expected_version_mismatch(self, machine, reservation, metrics):
        await machine.update_capacity_status(reservation, CapacityStatus.CONFIRMED)

        with pytest.raises(StaleStateError, match="version"):
            await machine.transition(
                reservation.id,
                ReservationState.CANCELLED,
                expected_current=ReservationState.HOLD,
                actor="pax-1",
                expected_version=reservation.version,
            )

        stored = await machine.get(reservation.id)
        assert stored.state == ReservationState.HOLD
        assert metrics.get_counter(STALE_TRANSITIONS_TOTAL) == 1

    @pytest.mark.asyncio
    async def test_enforce_hold_deadline(self, machine, reservation, audit_sink):
        # The fixture's hold expires at the clock's current time
        with pytest.raises(HoldExpiredError) as exc_info:
            await machine.transition(
                reservation.id,
                ReservationState.PENDING,
                expected_current=ReservationState.HOLD,
                actor="pax-1",
                enforce_hold_deadline=True,
            )

        assert exc_info.value.reference_code == "LG-ABCDEFGHJK"
        stored = await machine.get(reservation.id)
        assert stored.state == ReservationState.HOLD
        assert stored.version == reservation.version
        assert audit_sink.record.await_count == 1

    @pytest.mark.asyncio
    async def test_hold_deadline_ignored_unless_enforced(self, machine, reservation):
        updated = await machine.transition(
            reservation.id,
            ReservationState.PENDING,
            expected_current=ReservationState.HOLD,
            actor="pax-1",
        )
        assert updated.state == ReservationState.PENDING

    @pytest.mark.asyncio
    async def test_annotate(self, machine, reservation, clock):
        clock.advance(5)

        updated = await machine.annotate(reservation, refund_requested_at=clock.now())

        assert updated.refund_requested_at == clock.now()
        assert updated.state == reservation.state
        assert updated.version == reservation.version + 1
        assert await machine.get(reservation.id) == updated

    @pytest.mark.asyncio
    async def test_annotate_lost_race(self, machine, reservation, clock):
        await machine.annotate(reservation, refund_requested_at=clock.now())

        assert await machine.annotate(reservation, cancel_reason="late") is None

    @pytest.mark.asyncio
    async def test_annotate_rejects_protected_fields(self, machine, reservation):
        with pytest.raises(ValueError, match="protected"):
            await machine.annotate(reservation, state=ReservationState.CANCELLED)
