"""
Service-layer building blocks on top of the cache.

This package provides:
- BaseService: read-through caching, invalidation and error conventions
- ServiceError / RateLimitExceededError: service exception hierarchy
- CacheRateLimiter: fixed-window limiter stored in the cache
- ServiceContainer: process-wide cache ownership and health checks

Example:
    >>> from booking_cache.services import init_services
    >>> services = await init_services()
    >>> cache = services.cache
"""

from booking_cache.services.base import BaseService
from booking_cache.services.container import (
    ServiceContainer,
    get_cache,
    get_services,
    init_services,
)
from booking_cache.services.exceptions import RateLimitExceededError, ServiceError
from booking_cache.services.rate_limit import CacheRateLimiter

__all__ = [
    # Base service
    "BaseService",
    # Exceptions
    "ServiceError",
    "RateLimitExceededError",
    # Rate limiting
    "CacheRateLimiter",
    # Container
    "ServiceContainer",
    "get_services",
    "init_services",
    "get_cache",
]
