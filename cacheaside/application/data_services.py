"""Cache-aside data services: sequencing of the cache and document stores.

Reads check the cache first and fall back to the document store, then
repopulate the cache. Writes go to the document store first and only then
refresh or drop the cache entry. Cache failures (backend or serialization)
are logged and ignored; document store failures propagate unchanged.

Every cache entry is keyed by the persistent id ({cache_path}:{persist_id}),
so reads, writes and evictions agree on the key even when a type's
cache_id differs from its persist_id.

Staleness: a cache hit is always trusted, there is no read-repair. A get
racing a save on the same id may return the previous value until the
save's cache write lands or the entry's TTL runs out.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from cacheaside.core.constants import DEFAULT_QUERY_LIMIT
from cacheaside.core.context import DataServicesContext
from cacheaside.domain.capabilities import Cacheable, CacheablePersistable, Persistable
from cacheaside.domain.exceptions import RecordDecodeException
from cacheaside.infrastructure.cache.cache_protocol import CacheProtocol
from cacheaside.infrastructure.cache.keys import record_key
from cacheaside.infrastructure.cache.redis_cache import CacheStore
from cacheaside.infrastructure.documents.document_protocol import DocumentStoreProtocol
from cacheaside.infrastructure.documents.document_store import DocumentStore
from cacheaside.shared.telemetry.tracing import (
    add_span_attributes,
    add_span_event,
    traced,
)

logger = logging.getLogger(__name__)


class DataServices:
    """get/save/add/update/delete for records that are both Cacheable and Persistable.

    One instance per DataServicesContext; safe to share across concurrent
    tasks. Adapters can be injected for testing.
    """

    def __init__(
        self,
        context: DataServicesContext,
        *,
        cache: CacheProtocol | None = None,
        documents: DocumentStoreProtocol | None = None,
    ) -> None:
        self.context = context
        self.cache = cache if cache is not None else CacheStore(
            context.cache_client, context.namespace
        )
        self.documents = documents if documents is not None else DocumentStore(
            context.document_client
        )
        self._detached: set[asyncio.Task] = set()

    # Policy helpers ---------------------------------------------------

    def resolve_ttl(self, model: type[Cacheable], ttl: int | None = None) -> int:
        """Effective TTL: explicit ttl, else the type's cache_expiry, else the default."""
        if ttl is not None:
            return ttl
        expiry = getattr(model, "cache_expiry", None)
        if expiry is not None:
            return expiry
        return self.context.default_ttl

    async def _cache_record(self, record: Cacheable, key: str, ttl: int | None) -> bool:
        """Best-effort cache write under key. Never raises."""
        model = type(record)
        try:
            data = record.to_cache_bytes()
        except Exception:
            logger.exception("Could not serialize %s for cache", model.__name__)
            return False
        return await self.cache.set(key, data, self.resolve_ttl(model, ttl))

    def _decode_cached[T: Cacheable](self, model: type[T], key: str, data: bytes) -> T | None:
        try:
            return model.from_cache_bytes(data)
        except Exception as e:
            logger.warning("Ignoring undecodable cache entry %s: %s", key, e)
            return None

    def _decode_document[T: Persistable](
        self, model: type[T], record_id: str, document: dict[str, Any]
    ) -> T:
        try:
            return model.from_document(document)
        except Exception as e:
            raise RecordDecodeException(
                model.__name__, str(e), model.collection_name, record_id
            ) from e

    async def _run_to_completion[R](self, coro: Coroutine[Any, Any, R]) -> R:
        """Await a write sequence that keeps running if the caller is cancelled.

        A document write already issued is followed by its cache step even
        when nobody waits for the result; there is no rollback.
        """
        task = asyncio.ensure_future(coro)
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.done():
                self._detached.add(task)
                task.add_done_callback(self._detached_done)
            raise

    def _detached_done(self, task: asyncio.Task) -> None:
        self._detached.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Write finished after caller cancellation with an error",
                exc_info=task.exception(),
            )

    # Reads ------------------------------------------------------------

    @traced("cacheaside.get")
    async def get[T: CacheablePersistable](
        self, model: type[T], record_id: str, ttl: int | None = None
    ) -> T | None:
        """Return the record from cache, else from the document store (then cache it).

        Args:
            model: Record type.
            record_id: Persistent identifier (also the cache id).
            ttl: TTL for repopulation; None uses the type's or default TTL.

        Returns:
            The record, or None if the document store does not have it.

        Raises:
            DocumentStoreException: If the cache missed and the document store failed.
        """
        key = record_key(model.cache_path, record_id)
        add_span_attributes(collection=model.collection_name, record_id=record_id)
        data = await self.cache.get(key)
        if data is not None:
            record = self._decode_cached(model, key, data)
            if record is not None:
                add_span_event("cache.hit")
                return record
        add_span_event("cache.miss")
        document = await self.documents.find_by_id(model.collection_name, record_id)
        if document is None:
            return None
        record = self._decode_document(model, record_id, document)
        if await self._cache_record(record, key, ttl):
            add_span_event("cache.repopulated")
        return record

    @traced("cacheaside.fetch")
    async def fetch[T: Persistable](self, model: type[T], record_id: str) -> T | None:
        """Read straight from the document store. The cache is not involved."""
        document = await self.documents.find_by_id(model.collection_name, record_id)
        if document is None:
            return None
        return self._decode_document(model, record_id, document)

    @traced("cacheaside.find")
    async def find[T: Persistable](
        self, model: type[T], field: str, value: Any, limit: int = DEFAULT_QUERY_LIMIT
    ) -> list[T]:
        """Return records whose field equals value, from the document store (uncached)."""
        documents = await self.documents.find(model.collection_name, field, value, limit)
        return [
            self._decode_document(model, record_id, document)
            for record_id, document in documents
        ]

    # Writes -----------------------------------------------------------

    @traced("cacheaside.save")
    async def save[T: CacheablePersistable](self, record: T, ttl: int | None = None) -> T:
        """Create or replace the record, then refresh its cache entry.

        The document store write happens first; if it fails the error
        propagates and the cache is not touched. A failed cache write is
        logged and does not fail the save.
        """
        return await self._run_to_completion(self._save(record, ttl, insert=False))

    @traced("cacheaside.add")
    async def add[T: CacheablePersistable](self, record: T, ttl: int | None = None) -> T:
        """Insert a new record, then cache it.

        Raises:
            RecordAlreadyExistsException: If the id is taken (cache untouched).
        """
        return await self._run_to_completion(self._save(record, ttl, insert=True))

    async def _save[T: CacheablePersistable](self, record: T, ttl: int | None, insert: bool) -> T:
        model = type(record)
        record_id = record.persist_id()
        key = record_key(model.cache_path, record_id)
        add_span_attributes(collection=model.collection_name, record_id=record_id)
        document = record.to_document()
        if insert:
            await self.documents.insert(model.collection_name, record_id, document)
        else:
            await self.documents.upsert(model.collection_name, record_id, document)
        await self._cache_record(record, key, ttl)
        return record

    @traced("cacheaside.update")
    async def update[T: CacheablePersistable](
        self,
        model: type[T],
        record_id: str,
        field: str,
        value: Any,
        ttl: int | None = None,
    ) -> T | None:
        """Set one field of a stored record and re-cache the result (resetting its expiry).

        Returns:
            The updated record, or None if it does not exist.
        """
        return await self._run_to_completion(self._update(model, record_id, field, value, ttl))

    async def _update[T: CacheablePersistable](
        self, model: type[T], record_id: str, field: str, value: Any, ttl: int | None
    ) -> T | None:
        key = record_key(model.cache_path, record_id)
        add_span_attributes(collection=model.collection_name, record_id=record_id, field=field)
        document = await self.documents.update(model.collection_name, record_id, {field: value})
        if document is None:
            return None
        try:
            record = self._decode_document(model, record_id, document)
        except RecordDecodeException:
            # Stored value changed; the cached copy must not outlive it.
            await self.cache.delete(key)
            raise
        await self._cache_record(record, key, ttl)
        return record

    @traced("cacheaside.delete")
    async def delete(self, model: type[CacheablePersistable], record_id: str) -> None:
        """Delete from the document store, then drop the cache entry.

        If the document store delete fails the error propagates and the cache
        entry is left alone (the record may still exist).
        """
        await self._run_to_completion(self._delete(model, record_id))

    async def _delete(self, model: type[CacheablePersistable], record_id: str) -> None:
        add_span_attributes(collection=model.collection_name, record_id=record_id)
        await self.documents.delete(model.collection_name, record_id)
        await self.cache.delete(record_key(model.cache_path, record_id))

    async def evict(self, model: type[Cacheable], record_id: str) -> bool:
        """Drop a cache entry only (e.g. an orphan left by an id change). Best-effort."""
        return await self.cache.delete(record_key(model.cache_path, record_id))
