"""Redis connection handling and the stream liveness cache."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import redis.asyncio as redis_async
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError, TimeoutError

from liveshop.core.config import settings

logger = logging.getLogger(__name__)

LIVE = "live"
ENDED = "ended"


class RedisCache:
    """Process-wide async Redis handle, connected on first use."""

    def __init__(self, url: Optional[str] = None):
        self._url = url
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis_async.Redis] = None
        self._lock = asyncio.Lock()

    async def _create_pool(self) -> ConnectionPool:
        return redis_async.ConnectionPool.from_url(
            self._url or settings.redis_url,
            max_connections=settings.redis_max_connections,
            socket_connect_timeout=settings.redis_socket_timeout,
            socket_timeout=settings.redis_socket_timeout,
            retry_on_timeout=True,
            health_check_interval=30,
            decode_responses=True,
        )

    async def connect(self) -> None:
        """Initialize Redis connection with retry logic."""
        async with self._lock:
            if self._client:
                return

            max_retries = 3
            retry_delay = 1

            for attempt in range(max_retries):
                try:
                    self._pool = await self._create_pool()
                    self._client = redis_async.Redis(connection_pool=self._pool)

                    await self._client.ping()
                    logger.info("Successfully connected to Redis")
                    return
                except (ConnectionError, TimeoutError) as e:
                    logger.error(f"Redis connection attempt {attempt + 1} failed: {e}")
                    self._client = None
                    if attempt < max_retries - 1:
                        await asyncio.sleep(retry_delay * (attempt + 1))
                    else:
                        raise

    async def disconnect(self) -> None:
        """Close Redis connection and cleanup resources."""
        async with self._lock:
            if self._client:
                await self._client.aclose()
                self._client = None
            if self._pool:
                await self._pool.disconnect()
                self._pool = None
            logger.info("Disconnected from Redis")

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @asynccontextmanager
    async def get_client(self) -> AsyncGenerator[redis_async.Redis, None]:
        """Get Redis client with automatic connection management."""
        if not self._client:
            await self.connect()
        yield self._client

    async def get(self, key: str) -> Optional[str]:
        """Get a string value, returning None when missing or on error."""
        try:
            async with self.get_client() as client:
                value = await client.get(key)
                if isinstance(value, bytes):
                    return value.decode("utf-8")
                return value
        except Exception as e:
            logger.error(f"Error getting key {key} from cache: {e}")
            return None

    async def get_many(self, keys: list[str]) -> dict[str, Optional[str]]:
        """Get multiple values; missing keys map to None."""
        if not keys:
            return {}
        try:
            async with self.get_client() as client:
                values = await client.mget(keys)
                return {
                    key: value.decode("utf-8") if isinstance(value, bytes) else value
                    for key, value in zip(keys, values)
                }
        except Exception as e:
            logger.error(f"Error getting multiple keys from cache: {e}")
            return {key: None for key in keys}

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Set a value. Errors propagate to the caller."""
        async with self.get_client() as client:
            if ttl:
                await client.setex(key, ttl, value)
            else:
                await client.set(key, value)

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        async with self.get_client() as client:
            return bool(await client.delete(key))

    async def ping(self) -> bool:
        async with self.get_client() as client:
            return bool(await client.ping())


class LivenessCache:
    """Advisory per-stream flag recording whether the encoder is pushing video.

    Values are ``"live"`` or ``"ended"``; an absent key means unknown. The
    flag is never authoritative over the stream record's status.
    """

    def __init__(self, redis_cache: RedisCache, ttl_seconds: Optional[int] = None):
        self.cache = redis_cache
        self.ttl_seconds = (
            settings.liveness_ttl_seconds if ttl_seconds is None else ttl_seconds
        )

    @staticmethod
    def key_for(stream_id: str) -> str:
        return f"stream:{stream_id}:state"

    async def mark_live(self, stream_id: str) -> None:
        await self._write(stream_id, LIVE)

    async def mark_ended(self, stream_id: str) -> None:
        await self._write(stream_id, ENDED)

    async def _write(self, stream_id: str, value: str) -> None:
        await self.cache.set(self.key_for(stream_id), value, ttl=self.ttl_seconds or None)
        logger.info(f"Liveness for stream {stream_id} set to {value}")

    async def get_state(self, stream_id: str) -> Optional[str]:
        """Return "live", "ended" or None when unknown or unreadable."""
        value = await self.cache.get(self.key_for(stream_id))
        return value if value in (LIVE, ENDED) else None

    async def get_states(self, stream_ids: list[str]) -> dict[str, Optional[str]]:
        keys = {self.key_for(stream_id): stream_id for stream_id in stream_ids}
        values = await self.cache.get_many(list(keys))
        return {
            stream_id: (values.get(key) if values.get(key) in (LIVE, ENDED) else None)
            for key, stream_id in keys.items()
        }

    async def clear(self, stream_id: str) -> bool:
        return await self.cache.delete(self.key_for(stream_id))


# Global cache instance
cache = RedisCache()
