"""Redis caching layer for the booking platform's service layer.

This package provides Redis-based caching with:
- Connection state and reconnection (RedisConnection)
- Cache key construction (CacheKeys)
- TTL tiers (CacheTTL)
- Cache operations and read-through lookups (CacheManager)
- Graceful fail-open behavior
"""

from booking_cache.cache.connection import RedisConnection
from booking_cache.cache.keys import CacheKeys
from booking_cache.cache.manager import CacheManager
from booking_cache.cache.ttl import CacheTTL

__all__ = [
    # Connection
    "RedisConnection",
    # Key construction
    "CacheKeys",
    # Cache manager
    "CacheManager",
    # TTL tiers
    "CacheTTL",
]
