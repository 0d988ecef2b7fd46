"""
Process-wide service container.

Owns the shared cache manager (one Redis client per process) alongside
the database handle, and reports their health.
"""
from typing import Any, Awaitable, Callable, Optional

from booking_cache.cache.manager import CacheManager
from booking_cache.models.config import CacheConfig
from booking_cache.models.responses import HealthCheckResponse
from booking_cache.services.rate_limit import CacheRateLimiter
from booking_cache.utils.logger import get_logger

logger = get_logger(__name__)

SERVICE_VERSION = "1.0.0"

DatabaseProbe = Callable[[], Awaitable[Any]]


class ServiceContainer:
    """
    Holder of the shared infrastructure used by application services.

    Attributes:
        cache: Shared cache manager
        db: System-of-record handle (opaque to this package)
        db_probe: Optional coroutine function that raises if the database is down
    """

    def __init__(
        self,
        cache: CacheManager,
        db: Any = None,
        db_probe: Optional[DatabaseProbe] = None,
    ) -> None:
        self.cache = cache
        self.db = db
        self.db_probe = db_probe

    @classmethod
    def from_env(
        cls, db: Any = None, db_probe: Optional[DatabaseProbe] = None
    ) -> "ServiceContainer":
        """Build a container whose cache is configured from REDIS_* variables."""
        config = CacheConfig.from_env()
        logger.info("service_container_created", **config.redacted())
        return cls(CacheManager.from_config(config), db=db, db_probe=db_probe)

    async def startup(self) -> bool:
        """
        Open the cache connection when it is not opened on first use.

        With lazy_connect enabled the first cache operation connects, so
        this is a no-op; otherwise it connects now (starting background
        reconnection on failure).

        Returns:
            Connection status after startup
        """
        connection = self.cache.connection
        if not connection.config.lazy_connect:
            await connection.connect()
        logger.info("service_container_started", cache_connected=connection.get_connection_status())
        return connection.get_connection_status()

    def create_rate_limiter(
        self, max_requests: int = 100, window_seconds: int = 60
    ) -> CacheRateLimiter:
        return CacheRateLimiter(self.cache, max_requests, window_seconds)

    async def health_check(self) -> HealthCheckResponse:
        """
        Check the cache and database.

        Returns:
            HealthCheckResponse; status is "unhealthy" when the database is
            down, "degraded" when anything else is not healthy
        """
        components = {
            "cache": "healthy" if await self.cache.connection.ping() else "unhealthy",
        }

        if self.db_probe is None:
            components["database"] = "unknown"
        else:
            try:
                await self.db_probe()
                components["database"] = "healthy"
            except Exception as e:
                logger.error(
                    "database_health_check_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                components["database"] = "unhealthy"

        if components["database"] == "unhealthy":
            overall_status = "unhealthy"
        elif all(status == "healthy" for status in components.values()):
            overall_status = "healthy"
        else:
            overall_status = "degraded"

        logger.debug("health_check_performed", status=overall_status, **components)

        return HealthCheckResponse(
            status=overall_status,
            version=SERVICE_VERSION,
            components=components,
        )

    async def shutdown(self) -> None:
        """Release shared connections. Call once at process exit."""
        await self.cache.disconnect()
        logger.info("service_container_shutdown")


_services: Optional[ServiceContainer] = None


def get_services() -> ServiceContainer:
    """Return the process-wide container, creating it from the environment on first use."""
    global _services
    if _services is None:
        _services = ServiceContainer.from_env()
    return _services


async def init_services() -> ServiceContainer:
    """Create the process-wide container and start it. Call once at process startup."""
    services = get_services()
    await services.startup()
    return services


def get_cache() -> CacheManager:
    return get_services().cache
