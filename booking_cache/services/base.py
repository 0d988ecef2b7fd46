"""
Base class for application services that read through the cache.

Services own a database handle (any object; the ORM is outside this
package) and a CacheManager, and share the caching, invalidation and
error conventions defined here.
"""

from typing import Any, Awaitable, Callable, NoReturn, Type, TypeVar

from pydantic import BaseModel, ValidationError

from booking_cache.cache.manager import CacheManager, TTLValue
from booking_cache.services.exceptions import ServiceError
from booking_cache.utils.logger import get_logger

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class BaseService:
    """
    Common plumbing for cache-backed services.

    Invalidation rule: a mutation of an entity is complete only after its
    key and any pattern covering views derived from it have been deleted.

    Attributes:
        db: System-of-record handle
        cache: Shared cache manager
        service_name: Name used in logs and errors
    """

    def __init__(self, db: Any, cache: CacheManager, service_name: str) -> None:
        self.db = db
        self.cache = cache
        self.service_name = service_name
        self.logger = get_logger(f"services.{service_name}").bind(service=service_name)

    async def with_cache(
        self, key: str, ttl: TTLValue, fetch: Callable[[], Awaitable[T]]
    ) -> T:
        """Read through the cache; fetch errors propagate unchanged."""
        return await self.cache.with_cache(key, ttl, fetch)

    async def invalidate_keys(self, *keys: str) -> int:
        """
        Delete individual cache keys.

        Returns:
            Number of keys that existed and were deleted
        """
        deleted = 0
        for key in keys:
            if await self.cache.delete(key):
                deleted += 1
        self.logger.info("cache_keys_invalidated", keys=list(keys), deleted=deleted)
        return deleted

    async def invalidate_cache(self, *patterns: str) -> int:
        """
        Delete every key matching any of the given glob patterns.

        Returns:
            Total number of keys deleted
        """
        deleted = 0
        for pattern in patterns:
            deleted += await self.cache.invalidate_pattern(pattern)
        self.logger.info("cache_patterns_invalidated", patterns=list(patterns), deleted=deleted)
        return deleted

    def handle_error(self, error: BaseException, context: str) -> NoReturn:
        """
        Log an error and raise it as a ServiceError.

        ServiceErrors pass through untouched; anything else is wrapped,
        keeping its code attribute when it has one.
        """
        self.logger.error(
            "service_error",
            context=context,
            error=str(error),
            error_type=type(error).__name__,
        )
        if isinstance(error, ServiceError):
            raise error

        raise ServiceError(
            str(error) or "Internal service error",
            getattr(error, "code", None) or "INTERNAL_ERROR",
            self.service_name,
            context,
        ) from error

    def validate_input(self, data: Any, model: Type[M]) -> M:
        """
        Validate raw input against a pydantic model.

        Raises:
            ServiceError: with code VALIDATION_ERROR on invalid input
        """
        try:
            return model.model_validate(data)
        except ValidationError as e:
            self.logger.warning("input_validation_failed", errors=e.error_count())
            raise ServiceError(
                str(e),
                "VALIDATION_ERROR",
                self.service_name,
                "input validation",
            ) from e
