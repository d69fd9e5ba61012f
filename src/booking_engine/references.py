# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Passenger-facing reference codes.

Codes look like ``PK-7KQ2M9XH4T``: a facility-type prefix and a random
suffix drawn from an alphabet without look-alike characters (no 0/O, 1/I/L).
Codes are URL-safe and carry no information beyond the facility type.
"""

import secrets

from .types.facility import REFERENCE_PREFIXES, FacilityType

REFERENCE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"


def generate_reference_code(facility_type: FacilityType, length: int = 10) -> str:
    """Return a fresh random reference code for ``facility_type``."""
    if length < 1:
        raise ValueError("length must be positive")
    suffix = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(length))
    return f"{REFERENCE_PREFIXES[facility_type]}-{suffix}"


def is_reference_code(value: str) -> bool:
    """Check the shape of a reference code without looking it up."""
    prefix, sep, suffix = value.partition("-")
    return (
        bool(sep)
        and prefix in REFERENCE_PREFIXES.values()
        and bool(suffix)
        and all(ch in REFERENCE_ALPHABET for ch in suffix)
    )


__all__ = ["REFERENCE_ALPHABET", "generate_reference_code", "is_reference_code"]
