# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
RedisLedger for the Booking Engine

This module provides the RedisLedger that keeps inventory counters in Redis
and mutates them with atomic Lua scripts, so that many engine processes can
share one inventory.

Key Features:
- One Lua script per capacity operation; each script is atomic per unit
- Hash-tagged keys so a unit and its tokens land on the same cluster slot
- Automatic script reload when Redis loses its script cache
- Released tokens expire after ``released_token_ttl``; held and confirmed
  tokens never expire
"""

import asyncio
import base64
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import (
    ConnectionError,
    NoScriptError,
    RedisError,
    ResponseError,
    TimeoutError,
)

from ..exceptions import (
    BackendConnectionError,
    BackendOperationError,
    CapacityExhaustedError,
    TokenNotFoundError,
    UnitNotFoundError,
)
from ..protocols.clock import Clock, SystemClock
from ..types.inventory import HoldToken, InventoryUnit, make_unit_key
from ..types.window import TimeWindow
from .base import BaseLedger, HealthCheckResult, validate_quantity

logger = logging.getLogger(__name__)


class RedisLedger(BaseLedger):
    """
    Distributed inventory ledger backed by Redis.

    Keys (``<tag>`` is the Base64-encoded unit key wrapped in braces):
        ``<namespace>:<tag>:unit``              unit counters (hash)
        ``<namespace>:<tag>:token:<token_id>``  hold token state (hash)
    """

    # Class-level Lua scripts loaded from files
    _lua_scripts: ClassVar[dict[str, str]] = {}

    SCRIPT_NAMES = (
        "ensure_unit",
        "reserve_capacity",
        "confirm_capacity",
        "release_capacity",
    )

    @classmethod
    def _load_lua_scripts(cls) -> None:
        """Load Lua scripts from files at class level."""
        if cls._lua_scripts:
            return  # Already loaded

        lua_dir = Path(__file__).parent / "lua"

        for script_name in cls.SCRIPT_NAMES:
            script_path = lua_dir / f"{script_name}.lua"
            if script_path.exists():
                cls._lua_scripts[script_name] = script_path.read_text(encoding="utf-8")
            else:
                logger.warning(f"Lua script not found: {script_path}")

    def __init__(
        self,
        redis_url: str | None = None,
        redis_client: Any | None = None,
        namespace: str = "booking_engine",
        clock: Clock | None = None,
        released_token_ttl: int = 86400,
        max_connections: int = 10,
    ) -> None:
        """
        Initialize the Redis ledger.

        Args:
            redis_url: Redis connection URL. If not provided, falls back to REDIS_URL
                environment variable, then to "redis://localhost:6379".
            redis_client: Optional pre-configured Redis client
            namespace: Namespace prefix for keys
            clock: Time source for unit timestamps
            released_token_ttl: Seconds a released token is remembered (0 = forever)
            max_connections: Maximum connections per pool

        Environment Variables:
            REDIS_URL: Default Redis connection URL when redis_url parameter is not provided.
        """
        super().__init__(namespace)

        self.redis_url = (
            redis_url or os.environ.get("REDIS_URL") or "redis://localhost:6379"
        )
        self.released_token_ttl = released_token_ttl
        self.max_connections = max_connections
        self._clock = clock or SystemClock()

        # Redis client state
        self._redis: Any | None = redis_client
        self._owned_redis = redis_client is None
        self._connected = False
        self._connection_lock = asyncio.Lock()

        # Lua script SHAs
        self._script_shas: dict[str, str] = {}

    # ==========================================================================
    # Keys
    # ==========================================================================

    def _get_hash_tag(self, unit_key: str) -> str:
        """Get hash tag for Redis Cluster slot consistency."""
        unit_b64 = base64.urlsafe_b64encode(unit_key.encode()).decode().rstrip("=")
        return f"{{{unit_b64}}}"

    def _get_unit_key(self, unit_key: str) -> str:
        return f"{self.namespace}:{self._get_hash_tag(unit_key)}:unit"

    def _get_token_key(self, unit_key: str, token_id: str) -> str:
        return f"{self.namespace}:{self._get_hash_tag(unit_key)}:token:{token_id}"

    # ==========================================================================
    # Connection
    # ==========================================================================

    async def _ensure_connected(self) -> Any:
        """Return a connected client, creating the pool on first use."""
        if self._redis is not None and self._connected:
            return self._redis

        async with self._connection_lock:
            if self._redis is not None and self._connected:
                return self._redis
            try:
                if self._redis is None:
                    pool = ConnectionPool.from_url(
                        self.redis_url,
                        max_connections=self.max_connections,
                        decode_responses=True,
                        socket_connect_timeout=5,
                        socket_timeout=5,
                        retry_on_timeout=True,
                        health_check_interval=30,
                    )
                    self._redis = Redis(connection_pool=pool)
                    self._owned_redis = True
                await self._redis.ping()
                await self._load_scripts()
            except (ConnectionError, TimeoutError) as e:
                raise BackendConnectionError(
                    f"Cannot connect to Redis at {self.redis_url}: {e}"
                ) from e
            self._connected = True
            logger.info(f"RedisLedger connected (namespace '{self.namespace}')")
            return self._redis

    async def _load_scripts(self) -> None:
        """Load Lua scripts into Redis."""
        if not self._redis:
            raise RuntimeError("Redis client not initialized")

        self.__class__._load_lua_scripts()

        for script_name, script_source in self._lua_scripts.items():
            self._script_shas[script_name] = await self._redis.script_load(
                script_source
            )

    async def _evalsha_with_reload(
        self,
        redis_client: Any,
        script_name: str,
        num_keys: int,
        *args: Any,
    ) -> Any:
        """
        Execute EVALSHA with automatic script reload on NoScriptError.

        When a Redis node restarts its script cache is empty. This reloads
        every script and retries the operation once.
        """
        script_sha = self._script_shas.get(script_name)
        if not script_sha:
            await self._load_scripts()
            script_sha = self._script_shas[script_name]

        try:
            return await redis_client.evalsha(script_sha, num_keys, *args)
        except NoScriptError:
            logger.warning(
                f"Script '{script_name}' not found in Redis (SHA: {script_sha}). "
                f"Reloading all Lua scripts..."
            )
            self._script_shas.clear()
            await self._load_scripts()

            new_sha = self._script_shas[script_name]
            logger.info(f"Scripts reloaded. Retrying with new SHA: {new_sha}")
            return await redis_client.evalsha(new_sha, num_keys, *args)

    async def _run_script(self, script_name: str, num_keys: int, *args: Any) -> Any:
        """Run a script, mapping Redis failures to engine errors."""
        redis_client = await self._ensure_connected()
        try:
            return await self._evalsha_with_reload(
                redis_client, script_name, num_keys, *args
            )
        except (ConnectionError, TimeoutError) as e:
            logger.error(f"Redis connection error during {script_name}: {e}")
            self._connected = False
            raise BackendConnectionError(f"Redis unavailable: {e}") from e
        except ResponseError as e:
            logger.error(f"Redis response error during {script_name}: {e}")
            raise BackendOperationError(f"{script_name} failed: {e}") from e
        except RedisError as e:
            logger.error(f"Redis error during {script_name}: {e}")
            raise BackendOperationError(f"{script_name} failed: {e}") from e

    def _now(self) -> str:
        return self._clock.now().isoformat()

    @staticmethod
    def _parse_unit(unit_key: str, data: dict[str, str]) -> InventoryUnit:
        return InventoryUnit(
            unit_key=unit_key,
            facility_id=data["facility_id"],
            window=TimeWindow(
                start=datetime.fromisoformat(data["window_start"]),
                end=datetime.fromisoformat(data["window_end"]),
            ),
            total=int(data["total"]),
            held=int(data["held"]),
            confirmed=int(data["confirmed"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            version=int(data["version"]),
        )

    # ==========================================================================
    # Units
    # ==========================================================================

    async def ensure_unit(
        self, facility_id: str, window: TimeWindow, total: int
    ) -> InventoryUnit:
        if total < 0:
            raise ValueError("total must be non-negative")
        unit_key = make_unit_key(facility_id, window)
        flat = await self._run_script(
            "ensure_unit",
            1,
            self._get_unit_key(unit_key),
            facility_id,
            window.start.isoformat(),
            window.end.isoformat(),
            total,
            self._now(),
        )
        data = dict(zip(flat[::2], flat[1::2]))
        return self._parse_unit(unit_key, data)

    async def get_unit(self, unit_key: str) -> InventoryUnit | None:
        redis_client = await self._ensure_connected()
        try:
            data = await redis_client.hgetall(self._get_unit_key(unit_key))
        except (ConnectionError, TimeoutError) as e:
            raise BackendConnectionError(f"Redis unavailable: {e}") from e
        except RedisError as e:
            raise BackendOperationError(f"get_unit failed: {e}") from e
        if not data:
            return None
        return self._parse_unit(unit_key, data)

    # ==========================================================================
    # Capacity Management
    # ==========================================================================

    async def reserve_capacity(self, unit_key: str, quantity: int) -> HoldToken:
        validate_quantity(quantity)
        issued_at = self._clock.now()
        token = HoldToken(unit_key=unit_key, quantity=quantity, issued_at=issued_at)

        result = await self._run_script(
            "reserve_capacity",
            2,
            self._get_unit_key(unit_key),
            self._get_token_key(unit_key, token.token_id),
            quantity,
            issued_at.isoformat(),
        )

        status_code = int(result[0])
        if status_code == 1:
            logger.debug(
                "Reserved capacity: unit=%s, token=%s, quantity=%d, available=%s",
                unit_key,
                token.token_id,
                quantity,
                result[1],
            )
            return token
        if status_code == 0:
            available = int(result[1])
            raise CapacityExhaustedError(
                f"Unit {unit_key} has {available} available, requested {quantity}",
                unit_key=unit_key,
                available=available,
            )
        raise UnitNotFoundError(unit_key)

    async def confirm_capacity(self, token: HoldToken) -> bool:
        result = await self._run_script(
            "confirm_capacity",
            2,
            self._get_unit_key(token.unit_key),
            self._get_token_key(token.unit_key, token.token_id),
            self._now(),
        )
        status_code = int(result[0])
        if status_code < 0:
            raise TokenNotFoundError(token.token_id)
        return status_code == 1

    async def release_capacity(self, token: HoldToken) -> bool:
        """
        Return the token's quantity to the unit.

        Uses asyncio.shield() so a cancelled caller cannot interrupt the
        release after the script was sent.
        """

        async def _shielded_release() -> Any:
            return await self._run_script(
                "release_capacity",
                2,
                self._get_unit_key(token.unit_key),
                self._get_token_key(token.unit_key, token.token_id),
                self._now(),
                self.released_token_ttl,
            )

        result = await asyncio.shield(_shielded_release())
        status_code = int(result[0])
        if status_code < 0:
            raise TokenNotFoundError(token.token_id)
        if status_code == 0:
            logger.debug(f"Token {token.token_id} already released")
        return status_code == 1

    # ==========================================================================
    # Monitoring
    # ==========================================================================

    async def health_check(self) -> HealthCheckResult:
        """Perform health check on the ledger."""
        try:
            redis_client = await self._ensure_connected()
            await redis_client.ping()
            return HealthCheckResult(
                healthy=True,
                backend_type="redis",
                namespace=self.namespace,
                metadata={
                    "redis_url": self.redis_url,
                    "connected": self._connected,
                    "scripts_loaded": sorted(self._script_shas),
                },
            )
        except (BackendConnectionError, RedisError) as e:
            return HealthCheckResult(
                healthy=False,
                backend_type="redis",
                namespace=self.namespace,
                error=str(e),
            )

    async def get_stats(self) -> dict[str, Any]:
        """Count units under this namespace."""
        redis_client = await self._ensure_connected()
        units = 0
        try:
            async for _ in redis_client.scan_iter(
                match=f"{self.namespace}:*:unit", count=100
            ):
                units += 1
        except RedisError as e:
            raise BackendOperationError(f"get_stats failed: {e}") from e
        return {
            "backend_type": "redis",
            "connected": self._connected,
            "units": units,
        }

    async def cleanup(self) -> None:
        """Close the connection if this ledger created it."""
        if self._redis is not None and self._owned_redis:
            try:
                await asyncio.wait_for(self._redis.aclose(), timeout=2.5)
            except asyncio.TimeoutError:
                logger.warning("Redis connection cleanup timed out")
            except RedisError as e:
                logger.error(f"Error during connection cleanup: {e}")
            finally:
                self._redis = None
        self._connected = False

    async def __aenter__(self) -> "RedisLedger":
        """Async context manager entry."""
        await self._ensure_connected()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.cleanup()


__all__ = ["RedisLedger"]
