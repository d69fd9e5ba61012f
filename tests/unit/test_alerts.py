"""
Unit tests for best-effort passenger alerts.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from booking_engine.alerts import dispatch_alert
from booking_engine.observability.constants import COLLABORATOR_FAILURES_TOTAL
from booking_engine.protocols import NotificationEvent
from booking_engine.types import (
    FacilityType,
    HoldToken,
    Reservation,
    TimeWindow,
    make_unit_key,
)

NOW = datetime(2030, 3, 1, 6, tzinfo=timezone.utc)


@pytest.fixture
def reservation():
    window = TimeWindow.starting_at(NOW + timedelta(hours=4), hours=3)
    unit_key = make_unit_key("facility-1", window)
    return Reservation(
        id="res-1",
        reference_code="SV-ABCDEFGHJK",
        passenger_id="pax-1",
        facility_id="facility-1",
        facility_type=FacilityType.SERVICE,
        unit_key=unit_key,
        window=window,
        quantity=1,
        hold_expires_at=NOW + timedelta(minutes=10),
        hold_token=HoldToken(unit_key=unit_key, quantity=1),
    )


class TestDispatchAlert:
    @pytest.mark.asyncio
    async def test_no_sender(self, reservation):
        assert await dispatch_alert(
            None, NotificationEvent.BOOKING_CONFIRMED, reservation
        )

    @pytest.mark.asyncio
    async def test_delivered(self, reservation):
        sender = AsyncMock()

        result = await dispatch_alert(
            sender, NotificationEvent.HOLD_EXPIRED, reservation
        )

        assert result is True
        sender.send.assert_awaited_once_with(
            NotificationEvent.HOLD_EXPIRED, reservation
        )

    @pytest.mark.asyncio
    async def test_failure_is_counted_not_raised(self, reservation, metrics):
        sender = AsyncMock()
        sender.send.side_effect = RuntimeError("sms gateway down")

        result = await dispatch_alert(
            sender, NotificationEvent.BOOKING_CANCELLED, reservation, metrics
        )

        assert result is False
        assert (
            metrics.get_counter(
                COLLABORATOR_FAILURES_TOTAL, {"collaborator": "notifications"}
            )
            == 1
        )

    @pytest.mark.asyncio
    async def test_failure_without_metrics(self, reservation, caplog):
        sender = AsyncMock()
        sender.send.side_effect = RuntimeError("down")

        result = await dispatch_alert(
            sender, NotificationEvent.BOOKING_CONFIRMED, reservation
        )

        assert result is False
        assert "BOOKING_CONFIRMED failed for SV-ABCDEFGHJK" in caplog.text
