import pytest

from booking_engine.ledger.base import BaseLedger, HealthCheckResult, validate_quantity


class TestValidateQuantity:
    @pytest.mark.parametrize("quantity", [1, 2, 50])
    def test_accepts_positive_int(self, quantity):
        validate_quantity(quantity)

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_rejects_below_one(self, quantity):
        with pytest.raises(ValueError, match="at least 1"):
            validate_quantity(quantity)

    @pytest.mark.parametrize("quantity", [True, 1.0, "2", None])
    def test_rejects_non_int(self, quantity):
        with pytest.raises(ValueError, match="must be an integer"):
            validate_quantity(quantity)


class TestHealthCheckResult:
    def test_defaults(self):
        result = HealthCheckResult(healthy=True, backend_type="memory", namespace="ns")
        assert result.error is None
        assert result.metadata is None


class TestBaseLedger:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseLedger()  # type: ignore[abstract]

    @pytest.mark.asyncio
    async def test_default_cleanup_is_noop(self):
        class MinimalLedger(BaseLedger):
            async def ensure_unit(self, facility_id, window, total):
                raise NotImplementedError

            async def get_unit(self, unit_key):
                return None

            async def reserve_capacity(self, unit_key, quantity):
                raise NotImplementedError

            async def confirm_capacity(self, token):
                return False

            async def release_capacity(self, token):
                return False

            async def health_check(self):
                return HealthCheckResult(True, "minimal", self.namespace)

            async def get_stats(self):
                return {}

        ledger = MinimalLedger(namespace="minimal")
        assert ledger.namespace == "minimal"
        await ledger.cleanup()
        assert (await ledger.health_check()).healthy
        assert await ledger.prune_tokens() == 0
