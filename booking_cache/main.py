"""
Booking cache - health check entry point

Builds the service container from the environment, connects the cache,
logs a health report and exits non-zero when the platform is unhealthy.
Used as a container readiness probe.
"""
import asyncio
import os
import sys

from booking_cache.services.container import SERVICE_VERSION, ServiceContainer
from booking_cache.utils.logger import get_logger, setup_logging

# Initialize logger (will be reconfigured in main())
logger = get_logger(__name__)


async def main() -> int:
    """
    Run one health check against the configured Redis.

    Returns:
        Process exit code: 0 unless the health status is "unhealthy"
    """
    log_level = os.getenv("LOG_LEVEL", "INFO")
    setup_logging(level=log_level)

    logger.info(
        "health_check_starting",
        version=SERVICE_VERSION,
        environment=os.getenv("ENVIRONMENT", "production"),
        log_level=log_level,
    )

    container = ServiceContainer.from_env()

    try:
        await container.cache.connection.connect()
        report = await container.health_check()
        logger.info("health_report", report=report.model_dump(mode="json"))
    finally:
        await container.shutdown()

    return 1 if report.status == "unhealthy" else 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
