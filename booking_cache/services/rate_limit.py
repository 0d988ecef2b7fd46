"""
Fixed-window rate limiter backed by the shared cache.

Counts requests per identifier (IP address, user id, route) in a Redis
counter that expires with the window, so limits hold across processes.
"""

import structlog

from booking_cache.cache.keys import CacheKeys
from booking_cache.cache.manager import CacheManager
from booking_cache.services.exceptions import RateLimitExceededError

logger = structlog.get_logger(__name__)


class CacheRateLimiter:
    """
    Fixed-window request counter on rate_limit:{identifier} keys.

    The first request of a window creates the counter and sets its expiry;
    later requests increment it and restore the expiry if it was never
    applied, so a counter cannot outlive its window. When the cache is
    unavailable the limiter fails open and allows every request.
    """

    def __init__(
        self, cache: CacheManager, max_requests: int = 100, window_seconds: int = 60
    ) -> None:
        """
        Initialize the rate limiter.

        Args:
            cache: Shared cache manager
            max_requests: Requests allowed per identifier per window (default: 100)
            window_seconds: Window length in seconds (default: 60)
        """
        if max_requests < 1 or window_seconds < 1:
            raise ValueError("max_requests and window_seconds must be positive")

        self.cache = cache
        self.max_requests = max_requests
        self.window_seconds = window_seconds

        logger.info(
            "rate_limiter_initialized",
            max_requests=max_requests,
            window_seconds=window_seconds,
        )

    async def acquire(self, identifier: str) -> bool:
        """
        Count a request and report whether it is within the limit.

        Args:
            identifier: Rate-limited subject, e.g. "ip:1.2.3.4"

        Returns:
            True if the request is allowed, False once the window is used up

        Example:
            >>> limiter = CacheRateLimiter(cache, max_requests=5, window_seconds=60)
            >>> await limiter.acquire("ip:1.2.3.4")
            True
        """
        key = CacheKeys.rate_limit(identifier)
        count = await self.cache.increment(key)

        if count is None:
            logger.debug("rate_limit_fail_open", identifier=identifier)
            return True

        # A counter whose EXPIRE was lost gets its window back here
        if count == 1 or await self.cache.ttl(key) == -1:
            await self.cache.expire(key, self.window_seconds)

        if count > self.max_requests:
            logger.warning(
                "rate_limit_hit",
                identifier=identifier,
                requests=count,
                max_requests=self.max_requests,
            )
            return False

        # Log warning when approaching limit (>90% used)
        if count > self.max_requests * 0.9:
            logger.warning(
                "rate_limit_approaching",
                identifier=identifier,
                requests=count,
                remaining=self.max_requests - count,
            )

        return True

    async def enforce(self, identifier: str) -> None:
        """
        Like acquire(), but raise when the limit is exceeded.

        Raises:
            RateLimitExceededError: if the identifier's window is used up
        """
        if not await self.acquire(identifier):
            raise RateLimitExceededError(
                identifier,
                retry_after=self.window_seconds,
                limit=self.max_requests,
            )

    async def get_remaining(self, identifier: str) -> int:
        """
        Requests left in the identifier's current window.

        Returns max_requests when no window is open or the cache is down.
        """
        used = await self.cache.get(CacheKeys.rate_limit(identifier))
        if used is None:
            return self.max_requests
        return max(0, self.max_requests - int(used))

    async def reset(self, identifier: str) -> bool:
        """Drop the identifier's counter. Useful for manual intervention."""
        cleared = await self.cache.delete(CacheKeys.rate_limit(identifier))
        logger.info("rate_limiter_reset", identifier=identifier, cleared=cleared)
        return cleared
