# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for the time source used in hold and expiry decisions."""

from datetime import datetime, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of the current time.

    Every hold deadline and every expiry decision reads the same clock, so
    tests can drive time explicitly instead of sleeping.
    """

    def now(self) -> datetime:
        """Current time as an aware UTC datetime."""
        ...


class SystemClock:
    """Wall-clock implementation of Clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
