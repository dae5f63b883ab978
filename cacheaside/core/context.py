"""Process-wide data services context.

Holds the live connection handles (Redis client, Firestore REST client) and
the default cache policy. Constructed once at startup (see
cacheaside.core.lifespan), passed explicitly to DataServices, shared by
reference across every concurrent caller and never copied. The handles are
read-only after construction; only the clients' internal pools change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cacheaside.core.constants import CACHE_KEY_SEP, DEFAULT_CACHE_EXPIRY

if TYPE_CHECKING:
    import redis.asyncio as redis

    from cacheaside.infrastructure.documents._rest_client import FirestoreRESTClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataServicesContext:
    """Immutable holder of backend handles and cache policy.

    Attributes:
        cache_client: Shared Redis client; None runs without a cache.
        document_client: Shared Firestore REST client.
        default_ttl: TTL in seconds when neither the call nor the type sets one
            (0 = never expire).
        namespace: Prefix for every cache key ("" = none).
    """

    cache_client: redis.Redis | None
    document_client: FirestoreRESTClient
    default_ttl: int = DEFAULT_CACHE_EXPIRY
    namespace: str = ""

    def __post_init__(self) -> None:
        if self.default_ttl < 0:
            raise ValueError(f"default_ttl must be >= 0, got {self.default_ttl}")
        if CACHE_KEY_SEP in self.namespace:
            raise ValueError(f"namespace must not contain {CACHE_KEY_SEP!r}")

    async def aclose(self) -> None:
        """Close both connection pools. Call once at shutdown."""
        if self.cache_client is not None:
            await self.cache_client.aclose()
            logger.info("Redis cache connection closed")
        await self.document_client.aclose()
        logger.info("Document store HTTP client closed")
