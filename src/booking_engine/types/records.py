# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Base record model shared by every persisted entity.

Every mutation goes through ``touch()``, which stamps ``updated_at`` and
bumps ``version``. Records are frozen, so a mutation always produces a new
object that the owning component writes back with a conditional update.
"""

from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

RecordT = TypeVar("RecordT", bound="TimestampedModel")


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime, field_name: str = "datetime") -> datetime:
    """Reject naive datetimes and normalize aware ones to UTC."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValueError(f"{field_name} must be timezone-aware")
    return value.astimezone(timezone.utc)


class TimestampedModel(BaseModel):
    """
    Immutable record with creation/update timestamps and a version counter.

    The version is the optimistic concurrency token used by stores for
    conditional writes.
    """

    model_config = ConfigDict(frozen=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = Field(default=1, ge=1)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _validate_aware(cls, value: datetime) -> datetime:
        return ensure_aware(value, "timestamp")

    def touch(self: RecordT, now: datetime, **changes: Any) -> RecordT:
        """Return a copy with ``changes`` applied, a new ``updated_at`` and version + 1."""
        update = dict(changes)
        update["updated_at"] = ensure_aware(now, "updated_at")
        update["version"] = self.version + 1
        return self.model_copy(update=update)


__all__ = ["RecordT", "TimestampedModel", "ensure_aware", "utcnow"]
