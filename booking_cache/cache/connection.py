"""Redis connection and connection-state management.

This module provides the RedisConnection class, which owns the Redis client,
tracks whether the server is reachable, and reconnects in the background
after connection failures.
"""

import asyncio
import contextlib
from typing import Callable, Dict, Optional

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import ConstantBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

import structlog

from booking_cache.models.config import CacheConfig

logger = structlog.get_logger(__name__)

# Errors that mean the server is unreachable, as opposed to a bad command.
CONNECTION_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError)


class RedisConnection:
    """
    Redis client owner with an explicit connection-state flag.

    The flag starts False and is only ever changed by the connection event
    handlers (connect, ready, error, close, reconnecting). Cache operations
    read it through ensure_connected() before doing any network I/O.

    Attributes:
        config: Connection settings
        client: redis.asyncio client instance
    """

    def __init__(
        self, config: CacheConfig, client: Optional[redis.Redis] = None
    ) -> None:
        """
        Initialize the connection without contacting the server.

        Args:
            config: Connection settings
            client: Optional pre-built client (tests, dependency injection)
        """
        self.config = config
        self.client: redis.Redis = client if client is not None else self._create_client()
        self._connected = False
        self._connect_attempted = False
        self._closed = False
        self._connecting: Optional[asyncio.Future] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._event_handlers: Dict[str, Callable[..., None]] = {
            "connect": self._on_connect,
            "ready": self._on_ready,
            "error": self._on_error,
            "close": self._on_close,
            "reconnecting": self._on_reconnecting,
        }

    def _create_client(self) -> redis.Redis:
        config = self.config
        retry = Retry(
            ConstantBackoff(config.retry_delay_ms / 1000),
            config.max_retries_per_request,
        )
        client = redis.Redis(
            host=config.host,
            port=config.port,
            db=config.db,
            password=config.password.get_secret_value() if config.password else None,
            decode_responses=True,  # Values are JSON text
            socket_timeout=config.socket_timeout,
            socket_connect_timeout=config.socket_connect_timeout,
            retry=retry,
            retry_on_error=[RedisConnectionError, RedisTimeoutError],
        )

        logger.info(
            "redis_client_created",
            max_retries_per_request=config.max_retries_per_request,
            retry_delay_ms=config.retry_delay_ms,
            lazy_connect=config.lazy_connect,
            **config.redacted(),
        )
        return client

    # Connection events

    def _emit(self, event: str, **context) -> None:
        self._event_handlers[event](**context)

    def _on_connect(self) -> None:
        if not self._connected:
            self._connected = True
            logger.info("redis_connected", host=self.config.host, port=self.config.port)

    def _on_ready(self) -> None:
        logger.info("redis_ready")

    def _on_error(self, error: BaseException) -> None:
        if self._connected:
            self._connected = False
            logger.error(
                "redis_connection_lost",
                error=str(error),
                error_type=type(error).__name__,
            )
        else:
            logger.debug(
                "redis_error_while_disconnected",
                error=str(error),
                error_type=type(error).__name__,
            )

    def _on_close(self) -> None:
        if self._connected:
            self._connected = False
            logger.warning("redis_connection_closed")

    def _on_reconnecting(self, attempt: int, delay: float) -> None:
        log = logger.info if attempt == 1 else logger.debug
        log("redis_reconnecting", attempt=attempt, delay_seconds=delay)

    # Lifecycle

    def get_connection_status(self) -> bool:
        """Return True while the server is believed reachable."""
        return self._connected

    async def connect(self) -> bool:
        """
        Connect to Redis, running the ready check if enabled.

        On failure the connection stays down and, when auto_reconnect is
        set, a background reconnect loop is started. Calls made while a
        connect is in flight wait for that attempt instead of starting
        another one.

        Returns:
            True if connected, False otherwise (never raises)

        Example:
            >>> conn = RedisConnection(CacheConfig(host="localhost", port=6379))
            >>> await conn.connect()
            True
        """
        self._connect_attempted = True
        self._closed = False

        if self._connecting is None:
            self._connecting = asyncio.ensure_future(self._connect_once())
        # Shielded so a cancelled caller does not abort the shared attempt
        return await asyncio.shield(self._connecting)

    async def _connect_once(self) -> bool:
        try:
            if await self._open():
                return True
            self._schedule_reconnect()
            return False
        finally:
            self._connecting = None

    async def ensure_connected(self) -> bool:
        """
        Report whether an operation may talk to Redis.

        Performs the first connect when lazy_connect is enabled and waits
        for a connect already in flight; otherwise only the event handlers
        and the reconnect loop change the state.
        """
        if self._connected:
            return True
        if self._connecting is not None:
            return await asyncio.shield(self._connecting)
        if self.config.lazy_connect and not self._connect_attempted:
            return await self.connect()
        return False

    async def _open(self) -> bool:
        try:
            await self.client.ping()
        except (RedisError, OSError) as e:
            # AuthenticationError lands here too: reachable but unusable
            self._emit("error", error=e)
            return False

        if self._closed:
            return False

        self._emit("connect")

        if self.config.enable_ready_check:
            try:
                ready = await self._wait_until_ready()
            except (RedisError, OSError) as e:
                self._emit("error", error=e)
                return False
            if not ready:
                logger.warning("redis_ready_check_timeout")
                return True

        self._emit("ready")
        return True

    async def _wait_until_ready(self) -> bool:
        """Poll INFO until the server has finished loading its dataset."""
        attempts = self.config.max_retries_per_request + 1
        for attempt in range(attempts):
            info = await self.client.info("persistence")
            if not int(info.get("loading", 0)):
                return True
            logger.debug("redis_loading_dataset", attempt=attempt + 1)
            await asyncio.sleep(self.config.retry_delay_ms / 1000)
        return False

    def report_failure(self, error: BaseException) -> None:
        """
        Record a failed command.

        Connection-class errors mark the connection down and trigger
        reconnection; command errors (wrong type, bad TTL) leave it alone.
        """
        if isinstance(error, CONNECTION_ERRORS):
            self._emit("error", error=error)
            self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if not self.config.auto_reconnect or self._closed:
            return
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._reconnect_task = loop.create_task(self._reconnect_loop())

    async def _reconnect_loop(self) -> None:
        attempt = 0
        while not self._closed and not self._connected:
            attempt += 1
            delay = (
                min(
                    self.config.retry_delay_ms * attempt,
                    self.config.reconnect_max_delay_ms,
                )
                / 1000
            )
            self._emit("reconnecting", attempt=attempt, delay=delay)
            await asyncio.sleep(delay)
            if self._closed:
                break
            await self._open()

    async def ping(self) -> bool:
        """
        Check Redis connection health.

        Returns:
            True if Redis answered PING, False otherwise

        Example:
            >>> is_healthy = await conn.ping()
        """
        try:
            result = await self.client.ping()
        except Exception as e:
            logger.error(
                "redis_ping_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            self.report_failure(e)
            return False

        logger.debug("redis_ping_success", result=result)
        if result and not self._connected and not self._closed:
            self._emit("connect")
        return bool(result)

    async def close(self) -> None:
        """
        Close the client and stop reconnecting.

        Should be called during application shutdown. Never raises.
        """
        self._closed = True
        self._connect_attempted = True

        task, self._reconnect_task = self._reconnect_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        try:
            await self.client.aclose()
            logger.info("redis_client_closed")
        except Exception as e:
            logger.error(
                "redis_close_error",
                error=str(e),
                error_type=type(e).__name__,
            )

        self._emit("close")
