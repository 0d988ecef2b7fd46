"""Cache manager for Redis operations with fail-open error handling.

This module provides the CacheManager class: namespaced get/set/delete,
pattern invalidation, counters, hashes and the read-through with_cache
helper. No method raises because of Redis; failures degrade to a cache
miss (None), a failed write (False) or zero.
"""

import json
import re
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

import redis.asyncio as redis
import structlog

from booking_cache.cache.connection import RedisConnection
from booking_cache.cache.ttl import CacheTTL
from booking_cache.models.config import CacheConfig
from booking_cache.utils.logger import log_cache_operation

logger = structlog.get_logger(__name__)

T = TypeVar("T")
TTLValue = Union[int, CacheTTL]

DEFAULT_TTL = CacheTTL.LONG

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def escape_glob(value: str) -> str:
    """Escape Redis glob metacharacters so value matches literally."""
    return _GLOB_SPECIAL.sub(r"\\\1", value)


class CacheManager:
    """
    Namespaced, fail-open cache operations on top of a RedisConnection.

    Callers pass logical keys (see CacheKeys); the configured prefix is
    added before every command and never shown back to callers.

    Attributes:
        connection: Connection owning the Redis client and its state
        key_prefix: Namespace prepended to every key
    """

    def __init__(self, connection: RedisConnection) -> None:
        """Initialize cache manager with a Redis connection."""
        self.connection = connection
        self.key_prefix = connection.config.key_prefix

    @classmethod
    def from_config(cls, config: CacheConfig) -> "CacheManager":
        """Build a manager and its connection from settings."""
        return cls(RedisConnection(config))

    @property
    def redis(self) -> redis.Redis:
        """Underlying redis.asyncio client. Keys used on it directly are not prefixed."""
        return self.connection.client

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def _available(self, operation: str, key: str) -> bool:
        if await self.connection.ensure_connected():
            return True
        log_cache_operation(operation, key, "skipped", reason="redis_not_connected")
        return False

    def _failed(self, operation: str, key: str, error: BaseException, **extra: Any) -> None:
        log_cache_operation(operation, key, "error", error=error, **extra)
        self.connection.report_failure(error)

    async def get(self, key: str) -> Optional[Any]:
        """
        Retrieve a cached value by logical key.

        Args:
            key: Logical cache key

        Returns:
            Deserialized value, or None if absent, unreadable or Redis is down

        Example:
            >>> user = await manager.get(CacheKeys.user("42"))
        """
        if not await self._available("get", key):
            return None

        full_key = self._key(key)
        try:
            raw = await self.redis.get(full_key)
        except Exception as e:
            self._failed("get", key, e)
            return None

        if raw is None:
            log_cache_operation("get", key, "miss")
            return None

        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            log_cache_operation("get", key, "error", error=e, reason="invalid_json")
            # Invalid cached data - delete it
            await self._discard(full_key)
            return None

        log_cache_operation("get", key, "hit")
        return value

    async def _discard(self, full_key: str) -> None:
        try:
            await self.redis.delete(full_key)
        except Exception as e:
            self.connection.report_failure(e)

    async def set(self, key: str, value: Any, ttl: TTLValue = DEFAULT_TTL) -> bool:
        """
        Store a value with an expiry.

        Args:
            key: Logical cache key
            value: Data to cache (must be JSON-serializable)
            ttl: Time to live in seconds or a CacheTTL tier

        Returns:
            True if cached successfully, False otherwise

        Example:
            >>> await manager.set(CacheKeys.booking("b1"), booking, CacheTTL.MEDIUM)
            True
        """
        if not await self._available("set", key):
            return False

        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            log_cache_operation("set", key, "error", error=e, reason="serialization")
            return False

        try:
            result = await self.redis.set(self._key(key), payload, ex=int(ttl))
        except Exception as e:
            self._failed("set", key, e, ttl=int(ttl))
            return False

        log_cache_operation("set", key, "ok", ttl=int(ttl), data_size=len(payload))
        return bool(result)

    async def delete(self, key: str) -> bool:
        """
        Delete a cached value.

        Returns:
            True if a key was removed, False otherwise
        """
        if not await self._available("delete", key):
            return False

        try:
            result = await self.redis.delete(self._key(key))
        except Exception as e:
            self._failed("delete", key, e)
            return False

        log_cache_operation("delete", key, "ok", deleted=bool(result))
        return bool(result)

    async def invalidate_pattern(self, pattern: str) -> int:
        """
        Delete every key in the namespace matching a glob pattern.

        The prefix is escaped and prepended, so keys outside the namespace
        are never matched. Matches are removed with a single DEL.

        Args:
            pattern: Glob pattern over logical keys (e.g. "vehicle:v1:*")

        Returns:
            Number of keys deleted (0 if none matched or Redis is down)

        Example:
            >>> await manager.invalidate_pattern(CacheKeys.derived_pattern("user:42"))
            3
        """
        if not await self._available("invalidate_pattern", pattern):
            return 0

        match = f"{escape_glob(self.key_prefix)}{pattern}"
        try:
            keys = [k async for k in self.redis.scan_iter(match=match, count=500)]
            deleted = await self.redis.delete(*keys) if keys else 0
        except Exception as e:
            self._failed("invalidate_pattern", pattern, e)
            return 0

        log_cache_operation("invalidate_pattern", pattern, "ok", deleted=deleted)
        return int(deleted)

    async def exists(self, key: str) -> bool:
        if not await self._available("exists", key):
            return False

        try:
            result = await self.redis.exists(self._key(key))
        except Exception as e:
            self._failed("exists", key, e)
            return False

        log_cache_operation("exists", key, "hit" if result else "miss")
        return result == 1

    async def expire(self, key: str, ttl: TTLValue) -> bool:
        """Reset the time to live of an existing key. False if the key is absent."""
        if not await self._available("expire", key):
            return False

        try:
            result = await self.redis.expire(self._key(key), int(ttl))
        except Exception as e:
            self._failed("expire", key, e, ttl=int(ttl))
            return False

        log_cache_operation("expire", key, "ok", ttl=int(ttl), applied=bool(result))
        return bool(result)

    async def ttl(self, key: str) -> Optional[int]:
        """
        Remaining time to live in seconds.

        Returns:
            Seconds left, -1 for a key without expiry, -2 for a missing key,
            or None if Redis is down
        """
        if not await self._available("ttl", key):
            return None

        try:
            remaining = await self.redis.ttl(self._key(key))
        except Exception as e:
            self._failed("ttl", key, e)
            return None

        log_cache_operation("ttl", key, "ok", remaining=remaining)
        return int(remaining)

    async def increment(self, key: str, amount: int = 1) -> Optional[int]:
        """
        Atomically add to an integer counter, creating it at 0.

        Returns:
            New counter value, or None if Redis is down or the key holds a
            non-integer value
        """
        if not await self._available("increment", key):
            return None

        try:
            value = await self.redis.incrby(self._key(key), amount)
        except Exception as e:
            self._failed("increment", key, e, amount=amount)
            return None

        log_cache_operation("increment", key, "ok", value=value)
        return int(value)

    async def set_hash(self, key: str, field: str, value: Any) -> bool:
        if not await self._available("set_hash", key):
            return False

        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            log_cache_operation("set_hash", key, "error", error=e, field=field, reason="serialization")
            return False

        try:
            result = await self.redis.hset(self._key(key), field, payload)
        except Exception as e:
            self._failed("set_hash", key, e, field=field)
            return False

        log_cache_operation("set_hash", key, "ok", field=field)
        return result >= 0

    async def get_hash(self, key: str, field: str) -> Optional[Any]:
        if not await self._available("get_hash", key):
            return None

        try:
            raw = await self.redis.hget(self._key(key), field)
        except Exception as e:
            self._failed("get_hash", key, e, field=field)
            return None

        if raw is None:
            log_cache_operation("get_hash", key, "miss", field=field)
            return None

        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            log_cache_operation("get_hash", key, "error", error=e, field=field, reason="invalid_json")
            return None

        log_cache_operation("get_hash", key, "hit", field=field)
        return value

    async def flush_all(self) -> bool:
        """
        Remove every key in the Redis database, not only this namespace.

        Administrative use only; request paths must use delete() or
        invalidate_pattern().
        """
        if not await self._available("flush_all", "*"):
            return False

        try:
            await self.redis.flushall()
        except Exception as e:
            self._failed("flush_all", "*", e)
            return False

        logger.warning("cache_flushed_all")
        return True

    async def disconnect(self) -> None:
        """Close the underlying connection. Never raises."""
        await self.connection.close()

    def get_connection_status(self) -> bool:
        return self.connection.get_connection_status()

    async def with_cache(
        self, key: str, ttl: TTLValue, compute: Callable[[], Awaitable[T]]
    ) -> T:
        """
        Read-through lookup: return the cached value or compute and cache it.

        Args:
            key: Logical cache key
            ttl: Time to live for a freshly computed value
            compute: Async function producing the value on a miss

        Returns:
            Cached value on a hit, otherwise the result of compute()

        Raises:
            Whatever compute() raises; nothing is cached in that case

        Example:
            >>> async def load_rules():
            ...     return await repo.active_pricing_rules()
            >>> rules = await manager.with_cache(
            ...     CacheKeys.pricing_rules(), CacheTTL.DAY, load_rules
            ... )
        """
        cached = await self.get(key)
        if cached is not None:
            logger.info("cache_hit_with_cache", key=key)
            return cached

        logger.info("cache_miss_computing", key=key)

        try:
            result = await compute()
        except Exception as e:
            logger.error(
                "compute_function_error",
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            # Re-raise the compute error (don't swallow it)
            raise

        # Best effort: a failed write still returns the fresh result
        await self.set(key, result, ttl)
        return result
