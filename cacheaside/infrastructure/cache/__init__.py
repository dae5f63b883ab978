"""Cache: Redis store adapter and cache key utilities.

CacheStore never raises on backend failure; key format lives in keys.py.
"""

from cacheaside.infrastructure.cache.cache_protocol import CacheProtocol
from cacheaside.infrastructure.cache.keys import (
    namespaced_key,
    record_key,
    validate_key_component,
)
from cacheaside.infrastructure.cache.redis_cache import CacheStore, create_redis_client

__all__ = [
    "CacheProtocol",
    "CacheStore",
    "create_redis_client",
    "namespaced_key",
    "record_key",
    "validate_key_component",
]
