from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import NoScriptError, ResponseError

from booking_engine.exceptions import (
    BackendConnectionError,
    BackendOperationError,
    CapacityExhaustedError,
    TokenNotFoundError,
    UnitNotFoundError,
)
from booking_engine.ledger.redis import RedisLedger
from booking_engine.types.inventory import HoldToken, make_unit_key
from booking_engine.types.window import TimeWindow

WINDOW = TimeWindow.starting_at(datetime(2030, 3, 1, 10, tzinfo=timezone.utc), hours=3)
UNIT_KEY = make_unit_key("facility-1", WINDOW)


class TestRedisLedger:
    @pytest.fixture
    def mock_redis(self):
        mock = AsyncMock()
        mock.script_load.return_value = "mock_sha"
        mock.evalsha.return_value = [1, 0]
        mock.ping.return_value = True
        return mock

    @pytest.fixture
    def ledger(self, mock_redis, clock):
        ledger = RedisLedger(
            redis_url="redis://localhost:6379", namespace="test", clock=clock
        )
        # Inject mock redis directly to avoid connection logic in tests
        ledger._redis = mock_redis
        ledger._connected = True
        ledger._script_shas = {
            "ensure_unit": "sha_ensure",
            "reserve_capacity": "sha_reserve",
            "confirm_capacity": "sha_confirm",
            "release_capacity": "sha_release",
        }
        return ledger

    def test_init(self):
        ledger = RedisLedger(redis_url="redis://localhost:6379", namespace="test")
        assert ledger.redis_url == "redis://localhost:6379"
        assert ledger.namespace == "test"
        assert ledger.released_token_ttl == 86400
        assert ledger._connected is False

    def test_redis_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("REDIS_URL", "redis://env-host:6380/2")
        assert RedisLedger().redis_url == "redis://env-host:6380/2"

    def test_redis_url_default(self, monkeypatch):
        monkeypatch.delenv("REDIS_URL", raising=False)
        assert RedisLedger().redis_url == "redis://localhost:6379"

    def test_keys_share_hash_tag(self, ledger):
        unit_key = ledger._get_unit_key(UNIT_KEY)
        token_key = ledger._get_token_key(UNIT_KEY, "abc")
        tag = ledger._get_hash_tag(UNIT_KEY)

        assert unit_key == f"test:{tag}:unit"
        assert token_key == f"test:{tag}:token:abc"
        assert tag.startswith("{") and tag.endswith("}")
        assert "|" not in tag

    def test_lua_scripts_ship_with_package(self):
        RedisLedger._load_lua_scripts()
        assert set(RedisLedger._lua_scripts) == set(RedisLedger.SCRIPT_NAMES)

    @pytest.mark.asyncio
    async def test_ensure_unit_parses_hash(self, ledger, mock_redis, clock):
        now = clock.now().isoformat()
        mock_redis.evalsha.return_value = [
            "facility_id", "facility-1",
            "window_start", WINDOW.start.isoformat(),
            "window_end", WINDOW.end.isoformat(),
            "total", "5",
            "held", "2",
            "confirmed", "1",
            "created_at", now,
            "updated_at", now,
            "version", "4",
        ]  # fmt: skip

        unit = await ledger.ensure_unit("facility-1", WINDOW, 5)

        assert unit.unit_key == UNIT_KEY
        assert unit.window == WINDOW
        assert (unit.total, unit.held, unit.confirmed) == (5, 2, 1)
        assert unit.version == 4
        args = mock_redis.evalsha.call_args.args
        assert args[0] == "sha_ensure"
        assert args[1] == 1
        assert args[2] == ledger._get_unit_key(UNIT_KEY)

    @pytest.mark.asyncio
    async def test_ensure_unit_negative_total(self, ledger, mock_redis):
        with pytest.raises(ValueError):
            await ledger.ensure_unit("facility-1", WINDOW, -1)
        mock_redis.evalsha.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_unit_missing(self, ledger, mock_redis):
        mock_redis.hgetall.return_value = {}
        assert await ledger.get_unit(UNIT_KEY) is None

    @pytest.mark.asyncio
    async def test_get_unit_connection_error(self, ledger, mock_redis):
        mock_redis.hgetall.side_effect = RedisConnectionError("refused")
        with pytest.raises(BackendConnectionError):
            await ledger.get_unit(UNIT_KEY)

    @pytest.mark.asyncio
    async def test_reserve_success(self, ledger, mock_redis):
        mock_redis.evalsha.return_value = [1, 3]

        token = await ledger.reserve_capacity(UNIT_KEY, 2)

        assert token.unit_key == UNIT_KEY
        assert token.quantity == 2
        args = mock_redis.evalsha.call_args.args
        assert args[0] == "sha_reserve"
        assert args[1] == 2
        assert args[3] == ledger._get_token_key(UNIT_KEY, token.token_id)
        assert args[4] == 2

    @pytest.mark.asyncio
    async def test_reserve_exhausted(self, ledger, mock_redis):
        mock_redis.evalsha.return_value = [0, 1]

        with pytest.raises(CapacityExhaustedError) as exc_info:
            await ledger.reserve_capacity(UNIT_KEY, 2)

        assert exc_info.value.available == 1

    @pytest.mark.asyncio
    async def test_reserve_unknown_unit(self, ledger, mock_redis):
        mock_redis.evalsha.return_value = [-1]
        with pytest.raises(UnitNotFoundError):
            await ledger.reserve_capacity(UNIT_KEY, 1)

    @pytest.mark.asyncio
    async def test_reserve_invalid_quantity(self, ledger, mock_redis):
        with pytest.raises(ValueError):
            await ledger.reserve_capacity(UNIT_KEY, 0)
        mock_redis.evalsha.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("reply", "expected"), [([1], True), ([0], False)])
    async def test_confirm(self, ledger, mock_redis, reply, expected):
        mock_redis.evalsha.return_value = reply
        token = HoldToken(unit_key=UNIT_KEY, quantity=1)

        assert await ledger.confirm_capacity(token) is expected

    @pytest.mark.asyncio
    async def test_confirm_unknown_token(self, ledger, mock_redis):
        mock_redis.evalsha.return_value = [-1]
        with pytest.raises(TokenNotFoundError):
            await ledger.confirm_capacity(HoldToken(unit_key=UNIT_KEY, quantity=1))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("reply", "expected"), [([1], True), ([0], False)])
    async def test_release(self, ledger, mock_redis, reply, expected):
        mock_redis.evalsha.return_value = reply
        token = HoldToken(unit_key=UNIT_KEY, quantity=1)

        assert await ledger.release_capacity(token) is expected
        args = mock_redis.evalsha.call_args.args
        assert args[0] == "sha_release"
        assert args[-1] == 86400

    @pytest.mark.asyncio
    async def test_release_unknown_token(self, ledger, mock_redis):
        mock_redis.evalsha.return_value = [-1]
        with pytest.raises(TokenNotFoundError):
            await ledger.release_capacity(HoldToken(unit_key=UNIT_KEY, quantity=1))

    @pytest.mark.asyncio
    async def test_reloads_scripts_on_noscript(self, ledger, mock_redis):
        """Test script cache flush is recovered by reloading."""
        mock_redis.evalsha.side_effect = [NoScriptError("NOSCRIPT"), [1]]
        mock_redis.script_load.return_value = "new_sha"

        result = await ledger.confirm_capacity(HoldToken(unit_key=UNIT_KEY, quantity=1))

        assert result is True
        assert mock_redis.script_load.await_count == len(RedisLedger.SCRIPT_NAMES)
        assert mock_redis.evalsha.call_args.args[0] == "new_sha"

    @pytest.mark.asyncio
    async def test_connection_error_mapped(self, ledger, mock_redis):
        mock_redis.evalsha.side_effect = RedisConnectionError("reset by peer")

        with pytest.raises(BackendConnectionError):
            await ledger.reserve_capacity(UNIT_KEY, 1)

        assert ledger._connected is False

    @pytest.mark.asyncio
    async def test_response_error_mapped(self, ledger, mock_redis):
        mock_redis.evalsha.side_effect = ResponseError("WRONGTYPE")

        with pytest.raises(BackendOperationError):
            await ledger.reserve_capacity(UNIT_KEY, 1)

    @pytest.mark.asyncio
    async def test_ensure_connected_builds_pool(self, clock):
        ledger = RedisLedger(redis_url="redis://localhost:6379", clock=clock)
        client = AsyncMock()
        client.script_load.return_value = "sha"

        with (
            patch("booking_engine.ledger.redis.ConnectionPool.from_url") as from_url,
            patch("booking_engine.ledger.redis.Redis", return_value=client),
        ):
            result = await ledger._ensure_connected()

        assert result is client
        assert ledger._connected is True
        assert from_url.call_args.kwargs["decode_responses"] is True
        client.ping.assert_awaited_once()
        assert set(ledger._script_shas) == set(RedisLedger.SCRIPT_NAMES)

    @pytest.mark.asyncio
    async def test_ensure_connected_failure(self, clock):
        client = AsyncMock()
        client.ping.side_effect = RedisConnectionError("refused")
        ledger = RedisLedger(redis_client=client, clock=clock)

        with pytest.raises(BackendConnectionError, match="Cannot connect"):
            await ledger._ensure_connected()
        assert ledger._connected is False

    @pytest.mark.asyncio
    async def test_health_check_healthy(self, ledger):
        result = await ledger.health_check()
        assert result.healthy is True
        assert result.backend_type == "redis"
        assert result.metadata["connected"] is True

    @pytest.mark.asyncio
    async def test_health_check_unhealthy(self, ledger, mock_redis):
        mock_redis.ping.side_effect = RedisConnectionError("refused")

        result = await ledger.health_check()

        assert result.healthy is False
        assert "refused" in result.error

    @pytest.mark.asyncio
    async def test_get_stats(self, ledger, mock_redis):
        async def scan_iter(match, count):
            assert match == "test:*:unit"
            for key in ("a", "b"):
                yield key

        mock_redis.scan_iter = scan_iter

        stats = await ledger.get_stats()

        assert stats["units"] == 2
        assert stats["backend_type"] == "redis"

    @pytest.mark.asyncio
    async def test_cleanup_closes_owned_client(self, ledger, mock_redis):
        await ledger.cleanup()

        mock_redis.aclose.assert_awaited_once()
        assert ledger._redis is None
        assert ledger._connected is False

    @pytest.mark.asyncio
    async def test_cleanup_leaves_injected_client_open(self, clock):
        client = AsyncMock()
        ledger = RedisLedger(redis_client=client, clock=clock)

        await ledger.cleanup()

        client.aclose.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timestamps_use_clock(self, ledger, mock_redis, clock):
        clock.advance(300)
        mock_redis.evalsha.return_value = [1, 0]

        token = await ledger.reserve_capacity(UNIT_KEY, 1)

        assert token.issued_at == clock.now()
        assert mock_redis.evalsha.call_args.args[-1] == clock.now().isoformat()
