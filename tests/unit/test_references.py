"""
Unit tests for passenger-facing reference codes.
"""

import pytest

from booking_engine.references import (
    REFERENCE_ALPHABET,
    generate_reference_code,
    is_reference_code,
)
from booking_engine.types import REFERENCE_PREFIXES, FacilityType


class TestGenerateReferenceCode:
    @pytest.mark.parametrize("facility_type", list(FacilityType))
    def test_prefix(self, facility_type):
        code = generate_reference_code(facility_type)
        assert code.startswith(REFERENCE_PREFIXES[facility_type] + "-")

    def test_default_length(self):
        code = generate_reference_code(FacilityType.PARKING)
        assert len(code.split("-", 1)[1]) == 10

    def test_custom_length(self):
        code = generate_reference_code(FacilityType.HOTEL, length=16)
        assert len(code) == len("HT-") + 16

    def test_no_lookalike_characters(self):
        for _ in range(200):
            suffix = generate_reference_code(FacilityType.LOUNGE).split("-", 1)[1]
            assert not set(suffix) & set("01OIL")

    def test_codes_differ(self):
        codes = {generate_reference_code(FacilityType.SERVICE) for _ in range(500)}
        assert len(codes) == 500

    def test_rejects_non_positive_length(self):
        with pytest.raises(ValueError):
            generate_reference_code(FacilityType.PARKING, length=0)

    def test_alphabet_excludes_lookalikes(self):
        assert not set(REFERENCE_ALPHABET) & set("01OIL")


class TestIsReferenceCode:
    def test_generated_codes_are_valid(self):
        for facility_type in FacilityType:
            assert is_reference_code(generate_reference_code(facility_type))

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "PK",
            "PK-",
            "XX-ABCDEFGHJK",
            "PKABCDEFGHJK",
            "PK-ABCDEFGH0K",
            "pk-abcdefghjk",
            "PK-ABC DEF",
        ],
    )
    def test_malformed(self, value):
        assert is_reference_code(value) is False
