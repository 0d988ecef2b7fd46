"""
Pydantic configuration model for the Redis cache layer.

Holds the construction parameters of the cache connection and knows how
to build itself from REDIS_* environment variables.
"""
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

DEFAULT_KEY_PREFIX = "cbv:"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


class CacheConfig(BaseModel):
    """
    Connection settings for the Redis-backed cache.

    Only host and port are required. Everything else carries a default
    matching the platform's production setup.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "host": "localhost",
                "port": 6379,
                "db": 0,
                "key_prefix": "cbv:",
                "max_retries_per_request": 3,
                "retry_delay_ms": 100,
                "enable_ready_check": True,
                "lazy_connect": True,
            }
        },
    )

    host: str = Field(
        ...,
        min_length=1,
        description="Redis server hostname",
    )
    port: int = Field(
        ...,
        ge=1,
        le=65535,
        description="Redis server port",
    )
    password: Optional[SecretStr] = Field(
        None,
        description="Redis AUTH password",
    )
    db: int = Field(
        0,
        ge=0,
        description="Logical database index",
    )
    key_prefix: str = Field(
        DEFAULT_KEY_PREFIX,
        description="Namespace prepended to every cache key",
    )
    max_retries_per_request: int = Field(
        3,
        ge=0,
        description="Retries per command before the command is given up",
    )
    retry_delay_ms: int = Field(
        100,
        ge=0,
        description="Delay between command retries and base reconnect delay",
    )
    reconnect_max_delay_ms: int = Field(
        2000,
        ge=0,
        description="Upper bound for the delay between reconnect attempts",
    )
    enable_ready_check: bool = Field(
        True,
        description="Wait for the server to finish loading its dataset after connecting",
    )
    lazy_connect: bool = Field(
        True,
        description="Connect on first operation instead of at startup",
    )
    auto_reconnect: bool = Field(
        True,
        description="Reconnect in the background after connection failures",
    )
    socket_timeout: float = Field(
        5.0,
        gt=0,
        description="Socket read/write timeout in seconds",
    )
    socket_connect_timeout: float = Field(
        5.0,
        gt=0,
        description="Socket connect timeout in seconds",
    )

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """
        Build configuration from REDIS_* environment variables.

        Returns:
            CacheConfig populated from the environment, with defaults for
            anything unset

        Example:
            >>> os.environ["REDIS_HOST"] = "cache.internal"
            >>> CacheConfig.from_env().host
            'cache.internal'
        """
        return cls(
            host=os.getenv("REDIS_HOST", "localhost"),
            port=int(os.getenv("REDIS_PORT", "6379")),
            password=os.getenv("REDIS_PASSWORD") or None,
            db=int(os.getenv("REDIS_DB", "0")),
            key_prefix=os.getenv("REDIS_KEY_PREFIX", DEFAULT_KEY_PREFIX),
            max_retries_per_request=int(os.getenv("REDIS_MAX_RETRIES", "3")),
            retry_delay_ms=int(os.getenv("REDIS_RETRY_DELAY_MS", "100")),
            enable_ready_check=_env_flag("REDIS_READY_CHECK", True),
            lazy_connect=_env_flag("REDIS_LAZY_CONNECT", True),
        )

    def redacted(self) -> dict:
        """Settings safe to log (no password)."""
        return {
            "host": self.host,
            "port": self.port,
            "db": self.db,
            "key_prefix": self.key_prefix,
            "password_set": self.password is not None,
        }
