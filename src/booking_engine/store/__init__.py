# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Reservation stores.

Available stores:
- ReservationStore: Abstract base class defining the store interface
- MemoryReservationStore: In-memory store for single-process deployments
"""

from booking_engine.store.base import ReservationStore
from booking_engine.store.memory import MemoryReservationStore

__all__ = ["MemoryReservationStore", "ReservationStore"]
