"""Redis-based cache store (advisory).

Wraps a redis.asyncio client behind get/set/delete/expire on raw bytes.
Every backend error is logged and reported as "absent" or False: the cache
must never fail the caller's logical operation. Keys are prefixed with the
configured namespace (see cacheaside.infrastructure.cache.keys).
"""

from __future__ import annotations

import logging

import redis.asyncio as redis

from cacheaside.infrastructure.cache.keys import namespaced_key

logger = logging.getLogger(__name__)


def create_redis_client(cache_uri: str, socket_timeout: float = 5.0) -> redis.Redis:
    """Build a pooled async Redis client from a redis:// or rediss:// URL.

    Responses are raw bytes (decode_responses=False). No connection is made
    until the first command.
    """
    return redis.Redis.from_url(
        cache_uri,
        decode_responses=False,
        socket_connect_timeout=socket_timeout,
        socket_timeout=socket_timeout,
        socket_keepalive=True,
    )


class CacheStore:
    """Async Redis cache store with per-entry TTL.

    The client's connection pool handles reconnects; a Redis outage only
    turns operations into misses/no-ops until the backend returns.
    """

    def __init__(self, redis_client: redis.Redis | None, namespace: str = "") -> None:
        """Initialize cache store.

        Args:
            redis_client: Shared Redis client; None disables the cache.
            namespace: Optional prefix for every key.
        """
        self.redis = redis_client
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return namespaced_key(self.namespace, key)

    async def connect(self) -> bool:
        """Ping Redis. Call on startup; returns True if reachable.

        An unreachable cache is logged, not raised: the store keeps the client
        and serves misses until Redis comes back.
        """
        if self.redis is None:
            logger.info("Redis cache not configured. Cache disabled.")
            return False
        try:
            await self.redis.ping()
        except redis.RedisError as e:
            logger.warning("Redis ping failed: %s. Serving from document store only.", e)
            return False
        logger.info("Redis cache connected")
        return True

    def is_available(self) -> bool:
        """Return True if a Redis client is configured."""
        return self.redis is not None

    async def get(self, key: str) -> bytes | None:
        """Return cached bytes or None if missing/unavailable.

        Args:
            key: Cache key (use cacheaside.infrastructure.cache.keys builders).

        Returns:
            Cached bytes or None.
        """
        if self.redis is None:
            return None
        full_key = self._key(key)
        try:
            value = await self.redis.get(full_key)
        except redis.RedisError as e:
            logger.warning("Cache get failed for key %s: %s", full_key, e)
            return None
        if value is None:
            logger.debug("Cache MISS: %s", full_key)
            return None
        logger.debug("Cache HIT: %s", full_key)
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    async def set(self, key: str, data: bytes, ttl: int | None = None) -> bool:
        """Store bytes with TTL. Returns True on success.

        Args:
            key: Cache key.
            data: Serialized record.
            ttl: Time-to-live in seconds; 0 or None stores without expiry.

        Returns:
            True if stored, False otherwise.
        """
        if self.redis is None:
            return False
        full_key = self._key(key)
        try:
            if ttl:
                await self.redis.set(full_key, data, ex=ttl)
            else:
                await self.redis.set(full_key, data)
        except redis.RedisError as e:
            logger.warning("Cache set failed for key %s: %s", full_key, e)
            return False
        logger.debug("Cache SET: %s (TTL: %ss)", full_key, ttl or "none")
        return True

    async def delete(self, key: str) -> bool:
        """Remove key from cache. Returns True if the command succeeded.

        Args:
            key: Cache key to delete.

        Returns:
            True if the delete was issued, False on error or no client.
        """
        if self.redis is None:
            return False
        full_key = self._key(key)
        try:
            await self.redis.delete(full_key)
        except redis.RedisError as e:
            logger.warning("Cache delete failed for key %s: %s", full_key, e)
            return False
        logger.debug("Cache DELETE: %s", full_key)
        return True

    async def expire(self, key: str, ttl: int) -> bool:
        """Reset a key's TTL; ttl of 0 removes the expiry.

        Returns:
            True if the key exists and was updated, False otherwise.
        """
        if self.redis is None:
            return False
        full_key = self._key(key)
        try:
            if ttl:
                updated = await self.redis.expire(full_key, ttl)
            else:
                updated = await self.redis.persist(full_key)
        except redis.RedisError as e:
            logger.warning("Cache expire failed for key %s: %s", full_key, e)
            return False
        return bool(updated)
