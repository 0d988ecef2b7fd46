"""Shared fixtures: cache managers backed by an in-memory Redis."""

import pytest
from fakeredis import FakeServer
from fakeredis import aioredis as fake_aioredis

from booking_cache.cache.connection import RedisConnection
from booking_cache.cache.manager import CacheManager
from booking_cache.models.config import CacheConfig


@pytest.fixture
def fake_server():
    return FakeServer()


@pytest.fixture
def fake_cache(fake_server):
    """CacheManager on fakeredis with the default cbv: prefix."""
    client = fake_aioredis.FakeRedis(server=fake_server, decode_responses=True)
    config = CacheConfig(
        host="localhost",
        port=6379,
        enable_ready_check=False,
        auto_reconnect=False,
    )
    return CacheManager(RedisConnection(config, client=client))


@pytest.fixture
def offline_cache():
    """CacheManager that never connects, for fail-open paths."""
    config = CacheConfig(
        host="localhost",
        port=6379,
        lazy_connect=False,
        auto_reconnect=False,
    )
    return CacheManager(RedisConnection(config))
