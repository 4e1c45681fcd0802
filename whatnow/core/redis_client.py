"""Optional Redis cache for computed views such as weekly leaderboards.

The cache is never authoritative. When Redis is not configured or a command
fails, reads miss, writes are dropped, and deletions are parked in a bounded
queue that is flushed after the next successful delete.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TypeVar

from redis.asyncio import Redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError

from whatnow.core.config import Constants, settings


logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_with_backoff(operation: Callable[[], Awaitable[T]], *, attempts: int = 3, base_delay: float = 0.1) -> T:
    """Await `operation`, retrying RedisError with exponential backoff.

    Raises:
        RedisError: The last error once every attempt has failed
    """
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except RedisError as e:
            if attempt == attempts:
                logger.error("Redis operation failed after %d attempts: %s", attempts, e)
                raise
            delay = base_delay * 2 ** (attempt - 1)
            logger.warning("Redis operation failed (attempt %d/%d), retrying in %.2fs: %s", attempt, attempts, delay, e)
            await asyncio.sleep(delay)
    msg = "attempts must be at least 1"
    raise ValueError(msg)


class RedisClient:
    """Pooled async Redis connection that degrades to a no-op."""

    def __init__(self, url: str | None = None) -> None:
        self._client: Redis | None = None
        self._enabled = False
        self.last_success: datetime | None = None
        self.failures = 0
        self._invalidation_queue: deque[tuple[str, ...]] = deque(maxlen=Constants.REDIS_INVALIDATION_QUEUE_MAXLEN)

        if not url:
            logger.info("Redis URL not configured, leaderboards will not be cached")
            return

        try:
            pool = ConnectionPool.from_url(url, decode_responses=True, max_connections=Constants.REDIS_MAX_CONNECTIONS)
        except (RedisError, ValueError) as e:
            logger.warning("Invalid Redis configuration, running without cache: %s", e)
            return

        self._client = Redis(connection_pool=pool)
        self._enabled = True
        logger.info("Redis cache enabled", extra={"url": url})

    @property
    def is_available(self) -> bool:
        return self._enabled and self._client is not None

    @property
    def pending_invalidations(self) -> int:
        """Deletions parked while Redis was unreachable."""
        return len(self._invalidation_queue)

    def _ok(self) -> None:
        self.last_success = datetime.now(UTC)

    def _failed(self, command: str, detail: str, error: RedisError) -> None:
        self.failures += 1
        logger.warning("Redis %s failed for %s: %s", command, detail, error)

    async def get(self, key: str) -> str | None:
        """Cached value, or None on a miss, when disabled, or on error."""
        if not self.is_available or self._client is None:
            return None
        try:
            value = await self._client.get(key)
        except RedisError as e:
            self._failed("GET", key, e)
            return None
        self._ok()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Store `value` for `ttl_seconds`; returns whether it was written."""
        if not self.is_available or self._client is None:
            return False
        try:
            await self._client.setex(key, ttl_seconds, value)
        except RedisError as e:
            self._failed("SETEX", key, e)
            return False
        self._ok()
        logger.debug("Cached %s for %ds", key, ttl_seconds)
        return True

    async def keys(self, pattern: str) -> list[str]:
        """Keys matching a glob pattern, or [] when disabled or on error."""
        if not self.is_available or self._client is None:
            return []
        try:
            found = await self._client.keys(pattern)
        except RedisError as e:
            self._failed("KEYS", pattern, e)
            return []
        return [k.decode() if isinstance(k, bytes) else k for k in found]

    async def delete_with_retry(self, *keys: str) -> bool:
        """Delete keys with backoff; park them for later if Redis stays down.

        Returns:
            True if the keys were deleted now
        """
        if not keys:
            return False

        client = self._client
        if not self.is_available or client is None:
            self._invalidation_queue.append(keys)
            logger.info("Redis unavailable, parked %d key(s) for invalidation", len(keys))
            return False

        try:
            await call_with_backoff(lambda: client.delete(*keys))
        except RedisError:
            self.failures += 1
            self._invalidation_queue.append(keys)
            return False

        self._ok()
        await self._flush_invalidations(client)
        return True

    async def _flush_invalidations(self, client: Redis) -> None:
        flushed = 0
        while self._invalidation_queue:
            keys = self._invalidation_queue[0]
            try:
                await client.delete(*keys)
            except RedisError as e:
                self._failed("DEL", "parked keys", e)
                break
            self._invalidation_queue.popleft()
            flushed += 1
        if flushed:
            logger.info("Flushed %d parked cache invalidations", flushed)

    async def ping(self) -> bool:
        if not self.is_available or self._client is None:
            return False
        try:
            return bool(await self._client.ping())  # type: ignore[misc]
        except RedisError as e:
            self._failed("PING", "server", e)
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            logger.info("Redis client closed")


# Global Redis client instance
redis_client = RedisClient(settings.redis_url)
