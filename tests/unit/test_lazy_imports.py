# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Tests for lazy import patterns in __init__.py modules.

These tests cover the __getattr__ lazy import mechanisms used for the
optional Redis ledger.
"""

import pytest


class TestTopLevelLazyImports:
    """Test lazy imports from the top-level booking_engine module."""

    def test_lazy_redis_ledger_import(self):
        """Cover __getattr__ lazy import of RedisLedger from top-level module."""
        from booking_engine import RedisLedger

        assert RedisLedger is not None
        assert hasattr(RedisLedger, "reserve_capacity")

    def test_unknown_attribute_raises_attribute_error(self):
        import booking_engine

        with pytest.raises(AttributeError, match=r"has no attribute"):
            _ = booking_engine.NonExistentAttribute

    def test_unknown_attribute_error_message_format(self):
        import booking_engine

        with pytest.raises(
            AttributeError,
            match=r"module 'booking_engine' has no attribute 'FakeClass'",
        ):
            _ = booking_engine.FakeClass


class TestLedgerLazyImports:
    """Test lazy imports from the ledger subpackage."""

    def test_lazy_redis_ledger_import(self):
        from booking_engine.ledger import RedisLedger

        assert RedisLedger is not None

    def test_unknown_attribute_error_message_format(self):
        from booking_engine import ledger

        with pytest.raises(
            AttributeError,
            match=r"module 'booking_engine\.ledger' has no attribute 'FakeLedger'",
        ):
            _ = ledger.FakeLedger


class TestDirectVsLazyImportEquivalence:
    """Verify that lazy imports return the same objects as direct imports."""

    def test_top_level_same_class(self):
        from booking_engine import RedisLedger as LazyRedisLedger
        from booking_engine.ledger.redis import RedisLedger as DirectRedisLedger

        assert LazyRedisLedger is DirectRedisLedger

    def test_ledger_package_same_class(self):
        from booking_engine.ledger import RedisLedger as LazyRedisLedger
        from booking_engine.ledger.redis import RedisLedger as DirectRedisLedger

        assert LazyRedisLedger is DirectRedisLedger
