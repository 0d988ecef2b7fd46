"""
Pydantic response models for service-level status reporting.
"""
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ComponentStatus = Literal["healthy", "unhealthy", "unknown"]


class HealthCheckResponse(BaseModel):
    """
    Health check response for readiness probes.

    Reports overall status plus the state of each backing component.
    A cache outage only degrades the platform; a database outage makes it
    unhealthy.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "degraded",
                "version": "1.0.0",
                "components": {
                    "database": "healthy",
                    "cache": "unhealthy",
                },
                "timestamp": "2026-01-01T00:00:00Z",
            }
        }
    )

    status: Literal["healthy", "degraded", "unhealthy"] = Field(
        ...,
        description="Overall health status",
    )
    version: str = Field(
        ...,
        description="Package version",
    )
    components: dict[str, ComponentStatus] = Field(
        ...,
        description="Health status of individual components",
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the check ran",
    )
