"""Startup and shutdown of the shared data services context.

Single place for wiring: load settings, build the Redis and Firestore
clients once, check the cache, hand out one DataServices for the whole
process, close both pools at exit. No business logic here.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
import redis.asyncio as redis

from cacheaside.application.data_services import DataServices
from cacheaside.core.config import Settings, get_settings
from cacheaside.core.context import DataServicesContext
from cacheaside.infrastructure.cache.redis_cache import CacheStore, create_redis_client
from cacheaside.infrastructure.documents.client import create_firestore_client

logger = logging.getLogger(__name__)


def create_context(
    settings: Settings | None = None,
    *,
    redis_client: redis.Redis | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> DataServicesContext:
    """Build the process-wide context from settings.

    Args:
        settings: Loaded settings; defaults to get_settings().
        redis_client: Optional pre-built Redis client (tests, custom pools).
        http_client: Optional httpx client for the document store.

    Raises:
        ConfigurationException: If settings are missing or invalid.
    """
    settings = settings or get_settings()
    if redis_client is None:
        redis_client = create_redis_client(
            settings.cache_uri, settings.cache_socket_timeout
        )
    document_client = create_firestore_client(settings, http_client=http_client)
    return DataServicesContext(
        cache_client=redis_client,
        document_client=document_client,
        default_ttl=settings.cache_default_ttl,
        namespace=settings.cache_namespace,
    )


@asynccontextmanager
async def open_data_services(
    settings: Settings | None = None,
    *,
    redis_client: redis.Redis | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncIterator[DataServices]:
    """Yield a DataServices bound to a fresh context; close the context on exit.

    Startup order: settings, clients, cache ping (an unreachable cache is
    logged and tolerated). Shutdown closes the Redis pool then the HTTP
    client.

    Example:
        async with open_data_services() as services:
            user = await services.get(User, "u1")
    """
    context = create_context(settings, redis_client=redis_client, http_client=http_client)
    cache = CacheStore(context.cache_client, context.namespace)
    await cache.connect()
    logger.info(
        "Data services ready (default TTL %ss, namespace %r)",
        context.default_ttl,
        context.namespace,
    )
    try:
        yield DataServices(context, cache=cache)
    finally:
        await context.aclose()
