# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Booking time windows."""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .records import ensure_aware


class TimeWindow(BaseModel):
    """
    A half-open interval ``[start, end)`` that an inventory unit covers.

    Both bounds are stored in UTC so two windows describing the same
    instant always produce the same key.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _validate_aware(cls, value: datetime) -> datetime:
        return ensure_aware(value, "window bound")

    @model_validator(mode="after")
    def _validate_order(self) -> "TimeWindow":
        if self.end <= self.start:
            raise ValueError("window end must be after window start")
        return self

    @classmethod
    def starting_at(cls, start: datetime, **duration: float) -> "TimeWindow":
        """Build a window from a start and a timedelta-style duration."""
        return cls(start=start, end=start + timedelta(**duration))

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def key(self) -> str:
        """Stable textual form, e.g. ``20240501T080000Z-20240501T090000Z``."""
        return f"{self.start:%Y%m%dT%H%M%SZ}-{self.end:%Y%m%dT%H%M%SZ}"

    def has_ended(self, now: datetime) -> bool:
        return self.end <= now


__all__ = ["TimeWindow"]
