"""Firestore-backed document store (authoritative).

Every failure here propagates: transport errors and unexpected responses
are logged and raised as DocumentStoreException (chained to the httpx
error), an existing ID on insert is RecordAlreadyExistsException. A missing
document is None, never an exception.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from cacheaside.core.constants import DEFAULT_QUERY_LIMIT, DOCUMENT_ID_FORBIDDEN
from cacheaside.domain.exceptions import (
    DocumentStoreException,
    RecordAlreadyExistsException,
)
from cacheaside.infrastructure.documents._rest_client import (
    DocumentExistsError,
    FirestoreRESTClient,
)

logger = logging.getLogger(__name__)


def _validate_record_id(record_id: str) -> None:
    """Raise ValueError if record_id is not usable as a Firestore document ID."""
    if not record_id:
        raise ValueError("record_id must not be empty")
    if DOCUMENT_ID_FORBIDDEN in record_id:
        raise ValueError(
            f"record_id must not contain {DOCUMENT_ID_FORBIDDEN!r}: {record_id!r}"
        )


def _store_error(
    operation: str, collection: str, record_id: str | None, error: Exception
) -> DocumentStoreException:
    logger.error(
        "Document store %s failed for %s/%s: %s", operation, collection, record_id or "*", error
    )
    return DocumentStoreException(
        f"Document store {operation} failed: {error}", collection, record_id
    )


class DocumentStore:
    """Document store keyed by (collection, record_id). Same contract as DocumentStoreProtocol."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client

    async def find_by_id(self, collection: str, record_id: str) -> dict[str, Any] | None:
        """Return the document's fields, or None if it does not exist."""
        _validate_record_id(record_id)
        try:
            doc = await self._client.collection(collection).document(record_id).get()
        except httpx.HTTPError as e:
            raise _store_error("find", collection, record_id, e) from e
        if doc is None:
            logger.debug("Fetch not found: %s/%s", collection, record_id)
            return None
        logger.debug("Fetched %s/%s", collection, record_id)
        return doc.to_dict()

    async def insert(self, collection: str, record_id: str, document: dict[str, Any]) -> None:
        """Create a document; raise RecordAlreadyExistsException if the ID is taken."""
        _validate_record_id(record_id)
        try:
            await self._client.collection(collection).create(record_id, document)
        except DocumentExistsError:
            logger.info("Insert rejected, id exists: %s/%s", collection, record_id)
            raise RecordAlreadyExistsException(collection, record_id) from None
        except (httpx.HTTPError, TypeError) as e:
            raise _store_error("insert", collection, record_id, e) from e
        logger.debug("Added %s/%s", collection, record_id)

    async def upsert(self, collection: str, record_id: str, document: dict[str, Any]) -> None:
        """Create the document or replace it entirely."""
        _validate_record_id(record_id)
        try:
            await self._client.collection(collection).document(record_id).set(document)
        except (httpx.HTTPError, TypeError) as e:
            raise _store_error("upsert", collection, record_id, e) from e
        logger.debug("Saved %s/%s", collection, record_id)

    async def update(
        self, collection: str, record_id: str, fields: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Set only the given top-level fields of an existing document.

        Returns:
            The full updated document, or None if it does not exist.
        """
        _validate_record_id(record_id)
        if not fields:
            raise ValueError("update requires at least one field")
        try:
            doc = await self._client.collection(collection).document(record_id).update(fields)
        except (httpx.HTTPError, TypeError) as e:
            raise _store_error("update", collection, record_id, e) from e
        if doc is None:
            logger.debug("Update not found: %s/%s", collection, record_id)
            return None
        logger.debug("Updated %s/%s: %s", collection, record_id, sorted(fields))
        return doc.to_dict()

    async def delete(self, collection: str, record_id: str) -> None:
        """Delete the document. Deleting a missing document is not an error."""
        _validate_record_id(record_id)
        try:
            await self._client.collection(collection).document(record_id).delete()
        except httpx.HTTPError as e:
            raise _store_error("delete", collection, record_id, e) from e
        logger.debug("Deleted %s/%s", collection, record_id)

    async def find(
        self,
        collection: str,
        field: str,
        value: Any,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Return up to limit (record_id, document) pairs whose field equals value."""
        query = self._client.collection(collection).where(field, "==", value).limit(limit)
        try:
            return [(snapshot.id, snapshot.to_dict()) async for snapshot in query.stream()]
        except (httpx.HTTPError, TypeError) as e:
            raise _store_error("query", collection, None, e) from e
