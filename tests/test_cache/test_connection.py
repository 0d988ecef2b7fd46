"""Unit tests for Redis connection state management."""

import asyncio
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from booking_cache.cache.connection import RedisConnection
from booking_cache.models.config import CacheConfig


def make_config(**overrides):
    settings = {
        "host": "localhost",
        "port": 6379,
        "enable_ready_check": False,
        "lazy_connect": False,
        "auto_reconnect": False,
        "retry_delay_ms": 1,
    }
    settings.update(overrides)
    return CacheConfig(**settings)


class TestRedisConnection:
    """Test suite for RedisConnection class."""

    @pytest.fixture
    def mock_redis(self):
        """Create a mock Redis client."""
        mock = AsyncMock()
        mock.ping = AsyncMock(return_value=True)
        mock.info = AsyncMock(return_value={"loading": 0})
        mock.aclose = AsyncMock()
        return mock

    def test_starts_disconnected(self, mock_redis):
        """Test state is False at construction and nothing is contacted."""
        conn = RedisConnection(make_config(), client=mock_redis)

        assert conn.get_connection_status() is False
        mock_redis.ping.assert_not_called()

    def test_builds_client_from_config(self):
        """Test a real client is created from settings without connecting."""
        conn = RedisConnection(make_config(host="cache.internal", port=6380, db=2))

        assert isinstance(conn.client, redis.Redis)
        kwargs = conn.client.connection_pool.connection_kwargs
        assert kwargs["host"] == "cache.internal"
        assert kwargs["port"] == 6380
        assert kwargs["db"] == 2
        assert conn.get_connection_status() is False

    @pytest.mark.asyncio
    async def test_connect_success(self, mock_redis):
        """Test connect() pings and marks the connection up."""
        conn = RedisConnection(make_config(), client=mock_redis)

        assert await conn.connect() is True
        assert conn.get_connection_status() is True
        mock_redis.ping.assert_awaited_once()
        mock_redis.info.assert_not_called()

    @pytest.mark.asyncio
    async def test_connect_runs_ready_check(self, mock_redis):
        """Test the ready check waits until the dataset is loaded."""
        mock_redis.info.side_effect = [{"loading": 1}, {"loading": 0}]
        conn = RedisConnection(make_config(enable_ready_check=True), client=mock_redis)

        assert await conn.connect() is True
        assert mock_redis.info.await_count == 2
        mock_redis.info.assert_awaited_with("persistence")

    @pytest.mark.asyncio
    async def test_ready_check_error_leaves_disconnected(self, mock_redis):
        """Test a failing ready check reverts the state to disconnected."""
        mock_redis.info.side_effect = RedisConnectionError("reset by peer")
        conn = RedisConnection(make_config(enable_ready_check=True), client=mock_redis)

        assert await conn.connect() is False
        assert conn.get_connection_status() is False

    @pytest.mark.asyncio
    async def test_connect_failure(self, mock_redis):
        """Test connect() reports failure instead of raising."""
        mock_redis.ping.side_effect = RedisConnectionError("Connection refused")
        conn = RedisConnection(make_config(), client=mock_redis)

        assert await conn.connect() is False
        assert conn.get_connection_status() is False
        assert conn._reconnect_task is None

    @pytest.mark.asyncio
    async def test_lazy_connect_on_first_use(self, mock_redis):
        """Test ensure_connected() connects once when lazy_connect is set."""
        conn = RedisConnection(make_config(lazy_connect=True), client=mock_redis)

        assert await conn.ensure_connected() is True
        assert await conn.ensure_connected() is True
        mock_redis.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_lazy_connect_failure_not_retried_inline(self, mock_redis):
        """Test a failed lazy connect does not ping on every operation."""
        mock_redis.ping.side_effect = RedisConnectionError("Connection refused")
        conn = RedisConnection(make_config(lazy_connect=True), client=mock_redis)

        assert await conn.ensure_connected() is False
        assert await conn.ensure_connected() is False
        mock_redis.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_without_lazy_connect_never_connects_implicitly(self, mock_redis):
        """Test ensure_connected() does no I/O before connect() is called."""
        conn = RedisConnection(make_config(), client=mock_redis)

        assert await conn.ensure_connected() is False
        mock_redis.ping.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_first_use_shares_connect(self, mock_redis):
        """Test callers arriving during the first connect wait for it."""

        async def slow_ping():
            await asyncio.sleep(0.01)
            return True

        mock_redis.ping.side_effect = slow_ping
        conn = RedisConnection(make_config(lazy_connect=True), client=mock_redis)

        results = await asyncio.gather(*(conn.ensure_connected() for _ in range(3)))

        assert results == [True, True, True]
        mock_redis.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_connect_failure_is_shared(self, mock_redis):
        """Test a failed in-flight connect is reported to every waiter once."""

        async def refused_ping():
            await asyncio.sleep(0.01)
            raise RedisConnectionError("Connection refused")

        mock_redis.ping.side_effect = refused_ping
        conn = RedisConnection(make_config(), client=mock_redis)

        results = await asyncio.gather(conn.connect(), conn.ensure_connected())

        assert results == [False, False]
        mock_redis.ping.assert_awaited_once()
        assert conn._connecting is None

    @pytest.mark.asyncio
    async def test_connection_error_marks_disconnected(self, mock_redis):
        """Test connection-class failures flip the state flag."""
        conn = RedisConnection(make_config(), client=mock_redis)
        await conn.connect()

        conn.report_failure(RedisConnectionError("Connection reset"))

        assert conn.get_connection_status() is False

    @pytest.mark.asyncio
    async def test_command_error_keeps_connection(self, mock_redis):
        """Test command errors do not mark the server unreachable."""
        conn = RedisConnection(make_config(), client=mock_redis)
        await conn.connect()

        conn.report_failure(ResponseError("WRONGTYPE"))

        assert conn.get_connection_status() is True

    @pytest.mark.asyncio
    async def test_background_reconnect(self, mock_redis):
        """Test the reconnect loop restores the connection."""
        mock_redis.ping.side_effect = [RedisConnectionError("down"), True]
        conn = RedisConnection(make_config(auto_reconnect=True), client=mock_redis)

        assert await conn.connect() is False
        assert conn._reconnect_task is not None

        await asyncio.wait_for(conn._reconnect_task, timeout=1)

        assert conn.get_connection_status() is True
        assert mock_redis.ping.await_count == 2

    @pytest.mark.asyncio
    async def test_single_reconnect_task(self, mock_redis):
        """Test repeated failures share one reconnect loop."""
        mock_redis.ping.side_effect = RedisConnectionError("down")
        conn = RedisConnection(
            make_config(auto_reconnect=True, retry_delay_ms=1000), client=mock_redis
        )
        await conn.connect()
        task = conn._reconnect_task

        conn.report_failure(RedisConnectionError("still down"))

        assert conn._reconnect_task is task
        await conn.close()
        assert task.done()

    @pytest.mark.asyncio
    async def test_close(self, mock_redis):
        """Test close() closes the client and marks disconnected."""
        conn = RedisConnection(make_config(), client=mock_redis)
        await conn.connect()

        await conn.close()

        assert conn.get_connection_status() is False
        mock_redis.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_error_is_swallowed(self, mock_redis):
        """Test close() never raises."""
        mock_redis.aclose.side_effect = RedisConnectionError("already gone")
        conn = RedisConnection(make_config(), client=mock_redis)
        await conn.connect()

        await conn.close()

        assert conn.get_connection_status() is False

    @pytest.mark.asyncio
    async def test_no_lazy_connect_after_close(self, mock_redis):
        """Test operations after close() do not reopen the connection."""
        conn = RedisConnection(make_config(lazy_connect=True), client=mock_redis)

        await conn.close()

        assert await conn.ensure_connected() is False
        mock_redis.ping.assert_not_called()

    @pytest.mark.asyncio
    async def test_ping_healthy(self, mock_redis):
        """Test ping() returns True and marks the connection up."""
        conn = RedisConnection(make_config(), client=mock_redis)

        assert await conn.ping() is True
        assert conn.get_connection_status() is True

    @pytest.mark.asyncio
    async def test_ping_failure(self, mock_redis):
        """Test ping() returns False on errors."""
        mock_redis.ping.side_effect = RedisConnectionError("Connection refused")
        conn = RedisConnection(make_config(), client=mock_redis)

        assert await conn.ping() is False
        assert conn.get_connection_status() is False
