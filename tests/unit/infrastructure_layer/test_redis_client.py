"""
Unit Tests for RedisClient

Redis itself is mocked: these tests pin down error translation and the
not-connected guard.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from tiered_cache.core.config.settings import Settings
from tiered_cache.core.exceptions import CacheUnavailableError
from tiered_cache.core.interfaces.cache import CacheBackend
from tiered_cache.infrastructure.cache.redis_client import OperationExecutor, RedisClient


@pytest.mark.unit
class TestRedisClient:
    def test_satisfies_backend_protocol(self):
        assert isinstance(RedisClient(Settings()), CacheBackend)

    @pytest.mark.asyncio
    async def test_operations_before_connect_raise(self):
        client = RedisClient(Settings())

        with pytest.raises(CacheUnavailableError):
            await client.get("k")

    @pytest.mark.asyncio
    async def test_health_without_connection(self):
        health = await RedisClient(Settings()).health_check()

        assert health["status"] == "unhealthy"
        assert health["connected"] is False


@pytest.mark.unit
class TestOperationExecutor:
    @pytest.fixture
    def redis(self):
        return AsyncMock()

    @pytest.mark.asyncio
    async def test_set_passes_ttl_as_ex(self, redis):
        redis.set.return_value = True

        assert await OperationExecutor(redis).set("k", "v", ttl=60) is True
        redis.set.assert_awaited_once_with("k", "v", ex=60)

    @pytest.mark.asyncio
    async def test_delete_without_keys_skips_redis(self, redis):
        assert await OperationExecutor(redis).delete() == 0
        redis.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_scan_collects_all_keys(self):
        async def scan_iter(match, count):
            for key in ("cache:{r}:a", "cache:{r}:b"):
                yield key

        redis = MagicMock()
        redis.scan_iter = scan_iter

        assert await OperationExecutor(redis).scan_keys("cache:{r}:*") == ["cache:{r}:a", "cache:{r}:b"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation,args", [("get", ("k",)), ("set", ("k", "v")), ("delete", ("k",))])
    async def test_redis_errors_become_unavailable(self, redis, operation, args):
        getattr(redis, operation).side_effect = RedisConnectionError("connection refused")

        with pytest.raises(CacheUnavailableError):
            await getattr(OperationExecutor(redis), operation)(*args)
