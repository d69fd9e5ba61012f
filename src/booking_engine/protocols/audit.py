# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for the audit collaborator."""

from typing import Protocol, runtime_checkable

from ..types.reservation import TransitionRecord


@runtime_checkable
class AuditSink(Protocol):
    """Receives every reservation state transition."""

    async def record(self, transition: TransitionRecord) -> None:
        ...
