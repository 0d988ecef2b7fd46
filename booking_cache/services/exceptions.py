"""
Exceptions raised by the service layer.

The cache itself never raises; these describe application-level failures
(bad input, failed data fetches, exhausted rate limits) that services
report to their callers.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class ServiceError(Exception):
    """
    Base exception for service-layer failures.

    Carries a machine-readable code plus the service and operation in which
    the failure happened, so API handlers can map it to a response.

    Example:
        >>> raise ServiceError("Vehicle not found", "NOT_FOUND", "vehicles", "get_vehicle")
    """

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        service: str = "unknown",
        context: str = "",
    ) -> None:
        """
        Initialize ServiceError.

        Args:
            message: Error description
            code: Machine-readable error code
            service: Name of the service that failed
            context: Operation being performed
        """
        self.message = message
        self.code = code
        self.service = service
        self.context = context
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "service": self.service,
            "context": self.context,
        }


class RateLimitExceededError(ServiceError):
    """
    Raised when an identifier has used up its request window.

    Attributes:
        identifier: Rate-limited subject (IP address, user id, ...)
        retry_after: Seconds until the window resets
        limit: Maximum requests per window

    Example:
        >>> raise RateLimitExceededError("ip:1.2.3.4", retry_after=42, limit=5)
    """

    def __init__(
        self,
        identifier: str,
        retry_after: Optional[int],
        limit: int,
        service: str = "rate_limiter",
    ) -> None:
        self.identifier = identifier
        self.retry_after = retry_after
        self.limit = limit
        super().__init__(
            "Rate limit exceeded",
            code="RATE_LIMIT_EXCEEDED",
            service=service,
            context=identifier,
        )

    def __str__(self) -> str:
        """Return formatted error message with retry information."""
        return f"{self.message} (retry after {self.retry_after}s, limit: {self.limit})"
