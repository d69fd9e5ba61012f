# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocol definitions for booking engine collaborators.

This module provides Protocol classes that define the interfaces for the
external services the engine calls into.

Available protocols:
- Clock: Time source for hold deadlines and expiry decisions
- PaymentService: Payment verification and refunds
- NotificationSender: Passenger alerts (confirmation, cancellation, expiry)
- AuditSink: Receives every state transition

Supporting types:
- SystemClock: Wall-clock Clock implementation
- NotificationEvent: Events passed to NotificationSender
"""

from .audit import AuditSink
from .clock import Clock, SystemClock
from .notifications import NotificationEvent, NotificationSender
from .payments import PaymentService

__all__ = [
    "AuditSink",
    "Clock",
    "NotificationEvent",
    "NotificationSender",
    "PaymentService",
    "SystemClock",
]
