"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1. Without
credentials requests go out unauthenticated, which is what the Firestore
emulator expects. All HTTP calls use httpx.AsyncClient so they do not block
the event loop; one client (and its connection pool) is shared by every
caller.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote, unquote, urlencode

import httpx

from cacheaside.infrastructure.documents._rest_encoding import (
    decode_document,
    encode_document,
    to_value,
)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_SIMPLE_FIELD = re.compile(r"^[A-Za-z_][A-Za-z_0-9]*$")
_MISSING_DOCUMENT_PREFIXES = ("Document ", "No document")


def _get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


def _field_path(name: str) -> str:
    """Quote a field name for updateMask unless it is a simple identifier."""
    if _SIMPLE_FIELD.match(name):
        return name
    escaped = name.replace("\\", "\\\\").replace("`", "\\`")
    return f"`{escaped}`"


def _is_missing_document(resp: httpx.Response) -> bool:
    """True if a 404 refers to the document itself, not its project or database.

    Firestore reports a missing document as "Document ... not found." or
    "No document to update: ..."; a missing database as "The database ...
    does not exist ...". A 404 without an error message is a missing document.
    """
    try:
        message = resp.json().get("error", {}).get("message", "")
    except (ValueError, AttributeError):
        return True
    return not message or message.startswith(_MISSING_DOCUMENT_PREFIXES)


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """Perform async HTTP request to Firestore REST API.

    A 404 for a missing document returns None; any other 404 (unknown
    project or database) raises httpx.HTTPStatusError. A success response
    whose body is not JSON raises httpx.DecodingError.
    """
    if method == "GET":
        resp = await client.get(url, headers=headers)
    elif method == "PATCH":
        resp = await client.patch(url, headers=headers, json=body)
    elif method == "POST":
        resp = await client.post(url, headers=headers, json=body)
    elif method == "DELETE":
        resp = await client.delete(url, headers=headers)
    else:
        raise ValueError(f"Unsupported method: {method!r}")
    if resp.status_code == 404 and _is_missing_document(resp):
        return None
    if resp.status_code == 409:
        raise DocumentExistsError("Document already exists")
    if resp.status_code not in (200, 204):
        resp.raise_for_status()
    if method == "DELETE" or not resp.content:
        return {}
    try:
        return resp.json()
    except ValueError as e:
        raise httpx.DecodingError(
            f"Malformed JSON response from {resp.request.url}: {e}", request=resp.request
        ) from e


class DocumentExistsError(Exception):
    """Raised when createDocument returns 409 (document ID already exists)."""


class DocumentSnapshot:
    """Snapshot of a document (id + data)."""

    def __init__(self, id_: str, data: dict):
        self.id = id_
        self._data = data

    def to_dict(self) -> dict:
        return self._data


def _snapshot(document: dict) -> DocumentSnapshot:
    name = document.get("name", "")
    doc_id = unquote(name.split("/")[-1]) if name else ""
    return DocumentSnapshot(doc_id, decode_document(document))


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, collection_path: str, document_id: str):
        self._client = client
        self.id = document_id
        self._path = f"{collection_path}/{quote(document_id, safe='')}"

    async def set(self, data: dict[str, Any]) -> None:
        """Create or overwrite the document (PATCH with full replace)."""
        await self._client.request(self._path, method="PATCH", body=encode_document(data))

    async def update(self, data: dict[str, Any]) -> DocumentSnapshot | None:
        """Update only the given fields of an existing document.

        Returns the updated snapshot, or None if the document does not exist
        (the exists precondition fails with 404).
        """
        params = [("updateMask.fieldPaths", _field_path(k)) for k in data]
        params.append(("currentDocument.exists", "true"))
        out = await self._client.request(
            f"{self._path}?{urlencode(params)}",
            method="PATCH",
            body=encode_document(data),
        )
        if out is None:
            return None
        return DocumentSnapshot(self.id, decode_document(out))

    async def get(self) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        out = await self._client.request(self._path)
        if not out:
            return None
        return DocumentSnapshot(self.id, decode_document(out))

    async def delete(self) -> None:
        """Delete the document. Idempotent if document is already missing (404)."""
        await self._client.request(self._path, method="DELETE")


_OP_MAP: dict[str, str] = {
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
    "in": "IN",
    "not-in": "NOT_IN",
    "array-contains": "ARRAY_CONTAINS",
    "array-contains-any": "ARRAY_CONTAINS_ANY",
}


class _Query:
    """Fluent query builder for a collection; runs via runQuery (filter/limit on server)."""

    def __init__(
        self,
        client: FirestoreRESTClient,
        parent: str,
        collection_id: str,
        *,
        where_field: str,
        where_op: str,
        where_value: Any,
    ):
        self._client = client
        self._parent = parent
        self._collection_id = collection_id
        self._where_field = where_field
        self._where_op = _OP_MAP.get(where_op, where_op)
        self._where_value = where_value
        self._limit: int = 100

    def limit(self, n: int) -> _Query:
        self._limit = n
        return self

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """Execute the query and yield document snapshots."""
        structured: dict[str, Any] = {
            "from": [{"collectionId": self._collection_id}],
            "where": {
                "fieldFilter": {
                    "field": {"fieldPath": _field_path(self._where_field)},
                    "op": self._where_op,
                    "value": to_value(self._where_value),
                }
            },
        }
        if self._limit:
            structured["limit"] = self._limit

        resp = await self._client.request(
            f"{self._parent}:runQuery",
            method="POST",
            body={"structuredQuery": structured},
        )
        items = resp if isinstance(resp, list) else ([resp] if resp else [])
        for item in items:
            if "document" not in item:
                continue
            yield _snapshot(item["document"])


class CollectionReference:
    """Reference to a top-level collection; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, parent: str, collection_id: str):
        self._client = client
        self._parent = parent
        self.id = collection_id
        self._path = f"{parent}/{collection_id}"

    def document(self, document_id: str) -> DocumentReference:
        return DocumentReference(self._client, self._path, document_id)

    async def create(self, document_id: str, data: dict[str, Any]) -> None:
        """Create a document with the given ID (fail with DocumentExistsError if it exists)."""
        await self._client.request(
            f"{self._path}?documentId={quote(document_id, safe='')}",
            method="POST",
            body=encode_document(data),
        )

    def where(self, field: str, op: str, value: Any) -> _Query:
        """Start a query with a filter. Use .limit(), then .stream()."""
        return _Query(
            self._client,
            self._parent,
            self.id,
            where_field=field,
            where_op=op,
            where_value=value,
        )


class FirestoreRESTClient:
    """Lightweight Firestore client using the REST API (no firebase-admin).

    Args:
        base_url: REST endpoint, e.g. https://firestore.googleapis.com/v1 or
            an emulator's http://localhost:8080/v1.
        project_id: Google Cloud project.
        database: Firestore database id, e.g. "(default)".
        credentials: google-auth credentials, or None for unauthenticated use.
        app_name: Sent as User-Agent on every request.
        http_client: Optional injected httpx client (not closed by aclose).
    """

    def __init__(
        self,
        base_url: str,
        project_id: str,
        database: str,
        credentials=None,
        *,
        app_name: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base = base_url.rstrip("/")
        self._project_id = project_id
        self._credentials = credentials
        self._app_name = app_name
        self._prefix = f"projects/{project_id}/databases/{database}/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str | None:
        """Return a valid access token; refreshes in thread pool to avoid blocking."""
        if self._credentials is None:
            return None
        return await asyncio.to_thread(_get_access_token, self._credentials)

    async def request(self, path: str, method: str = "GET", body: dict | None = None) -> Any:
        """Send one REST call for a path relative to the API base."""
        headers = {"Content-Type": "application/json"}
        if self._app_name:
            headers["User-Agent"] = self._app_name
        token = await self.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return await _request_async(
            self._http, f"{self._base}/{path}", method=method, body=body, headers=headers
        )

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, self._prefix, collection_id)
