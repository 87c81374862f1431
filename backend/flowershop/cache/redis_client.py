"""
Redis client with connection pooling and async support.

Backs the customer cart. Provides connection lifecycle with retry on
connect, a health check for readiness probes, and the small set of string
and JSON operations the cart store needs.
"""

import json
from typing import Any, Optional

from redis.asyncio import ConnectionPool, Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from flowershop.core.config import get_settings
from flowershop.core.logging import get_logger

logger = get_logger(__name__)


class RedisClient:
    """
    Async Redis client with connection pooling and retry logic.

    Values are decoded to ``str``. JSON helpers serialize with the standard
    ``json`` module.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        max_connections: Optional[int] = None,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 5.0,
    ):
        """
        Initialize Redis client.

        Args:
            url: Redis connection URL (defaults to settings.redis_url)
            max_connections: Maximum pool connections (defaults to settings)
            socket_timeout: Socket operation timeout in seconds
            socket_connect_timeout: Socket connection timeout in seconds
        """
        settings = get_settings()
        self._url = url or settings.redis_url
        self._max_connections = max_connections or settings.redis_max_connections
        self._socket_timeout = socket_timeout
        self._socket_connect_timeout = socket_connect_timeout

        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[Redis] = None
        self._is_connected = False

    @staticmethod
    def _sanitize_url(url: str) -> str:
        """Strip credentials from a Redis URL for logging."""
        if "://" in url and "@" in url:
            protocol, rest = url.split("://", 1)
            _, host_part = rest.rsplit("@", 1)
            return f"{protocol}://***@{host_part}"
        return url

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    async def connect(self) -> None:
        """
        Create the connection pool and verify connectivity with PING.

        Raises:
            ConnectionError: If connection cannot be established
        """
        if self._is_connected:
            return

        try:
            self._pool = ConnectionPool.from_url(
                self._url,
                max_connections=self._max_connections,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_connect_timeout,
                retry_on_timeout=True,
                retry=Retry(ExponentialBackoff(base=0.1, cap=2.0), retries=3),
                decode_responses=True,
            )
            self._client = Redis(connection_pool=self._pool)
            await self._client.ping()
            self._is_connected = True

            logger.info(
                "Redis connection established",
                url=self._sanitize_url(self._url),
                pool_size=self._max_connections,
            )

        except (ConnectionError, TimeoutError) as e:
            logger.error(
                "Failed to connect to Redis",
                error=str(e),
                url=self._sanitize_url(self._url),
            )
            await self._release()
            raise ConnectionError(f"Redis connection failed: {e}") from e

    async def _release(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._pool is not None:
            await self._pool.aclose()
            self._pool = None
        self._is_connected = False

    async def disconnect(self) -> None:
        """Close the connection pool."""
        if not self._is_connected:
            return
        await self._release()
        logger.info("Redis connection closed")

    async def health_check(self) -> bool:
        """
        Ping Redis.

        Returns:
            True if Redis is connected and responsive, False otherwise
        """
        if not self._is_connected or self._client is None:
            return False

        try:
            await self._client.ping()
            return True
        except RedisError as e:
            logger.error(
                "Redis health check failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    def _ensure_connected(self) -> Redis:
        if not self._is_connected or self._client is None:
            raise ConnectionError("Redis client is not connected")
        return self._client

    async def get(self, key: str) -> Optional[str]:
        client = self._ensure_connected()
        try:
            return await client.get(key)
        except RedisError as e:
            logger.error("Redis GET operation failed", key=key, error=str(e))
            raise

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        client = self._ensure_connected()
        try:
            return bool(await client.set(key, value, ex=ex))
        except RedisError as e:
            logger.error("Redis SET operation failed", key=key, error=str(e))
            raise

    async def delete(self, *keys: str) -> int:
        client = self._ensure_connected()
        try:
            return await client.delete(*keys)
        except RedisError as e:
            logger.error("Redis DELETE operation failed", keys=keys, error=str(e))
            raise

    async def get_json(self, key: str) -> Optional[Any]:
        """
        Get a JSON value.

        Raises:
            json.JSONDecodeError: If the stored value is not valid JSON
        """
        value = await self.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            logger.error("Failed to decode JSON from Redis", key=key, error=str(e))
            raise

    async def set_json(self, key: str, value: Any, ex: Optional[int] = None) -> bool:
        return await self.set(key, json.dumps(value), ex=ex)


_redis_client: Optional[RedisClient] = None


async def get_redis_client() -> RedisClient:
    """
    Get or create the global Redis client.

    Raises:
        ConnectionError: If Redis connection fails
    """
    global _redis_client

    if _redis_client is None:
        client = RedisClient()
        await client.connect()
        _redis_client = client

    return _redis_client


async def close_redis_client() -> None:
    """Close the global Redis client, if one was created."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.disconnect()
        _redis_client = None
