"""Pytest configuration and fixtures for cacheaside.

Backends are replaced by in-process doubles: FakeRedis implements the
subset of redis.asyncio.Redis the cache store uses, FirestoreStub serves the
Firestore REST v1 endpoints through httpx.MockTransport so the real REST
client, encoder and DocumentStore are exercised.
"""

import json
from typing import Any

import httpx
import pytest
import redis.asyncio as redis

from cacheaside.application.data_services import DataServices
from cacheaside.core.context import DataServicesContext
from cacheaside.infrastructure.documents._rest_client import FirestoreRESTClient

FIRESTORE_BASE = "http://firestore.test/v1"
FIRESTORE_PROJECT = "test-project"
FIRESTORE_DATABASE = "(default)"
DOCUMENTS_PREFIX = f"/v1/projects/{FIRESTORE_PROJECT}/databases/{FIRESTORE_DATABASE}/documents"


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis (bytes in, bytes out).

    Set fail=True to make every command raise redis.ConnectionError.
    """

    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}
        self.ttls: dict[str, int] = {}
        self.commands: list[tuple[str, str]] = []
        self.fail = False
        self.closed = False

    def _command(self, name: str, key: str = "") -> None:
        self.commands.append((name, key))
        if self.fail:
            raise redis.ConnectionError("connection refused")

    async def ping(self) -> bool:
        self._command("ping")
        return True

    async def get(self, key: str) -> bytes | None:
        self._command("get", key)
        return self.data.get(key)

    async def set(self, key: str, value: bytes, ex: int | None = None) -> bool:
        self._command("set", key)
        self.data[key] = value
        if ex:
            self.ttls[key] = ex
        else:
            self.ttls.pop(key, None)
        return True

    async def delete(self, *keys: str) -> int:
        self._command("delete", ",".join(keys))
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def expire(self, key: str, seconds: int) -> bool:
        self._command("expire", key)
        if key not in self.data:
            return False
        self.ttls[key] = seconds
        return True

    async def persist(self, key: str) -> bool:
        self._command("persist", key)
        return self.ttls.pop(key, None) is not None

    async def aclose(self) -> None:
        self.closed = True

    def reads(self) -> list[str]:
        return [key for name, key in self.commands if name == "get"]

    def writes(self) -> list[str]:
        return [key for name, key in self.commands if name in ("set", "delete")]


class FirestoreStub:
    """Firestore REST v1 double for httpx.MockTransport.

    Documents are kept in wire format ({"fields": ...}) per collection.
    Set fail=True to answer every request with 503.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict]] = {}
        self.requests: list[tuple[str, str]] = []
        self.fail = False

    def _doc_name(self, collection: str, doc_id: str) -> str:
        return f"{DOCUMENTS_PREFIX[len('/v1/'):]}/{collection}/{doc_id}"

    def _not_found(self, message: str) -> httpx.Response:
        return httpx.Response(
            404, json={"error": {"code": 404, "status": "NOT_FOUND", "message": message}}
        )

    def _document(self, collection: str, doc_id: str) -> dict:
        stored = self.collections[collection][doc_id]
        return {"name": self._doc_name(collection, doc_id), "fields": stored["fields"]}

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))
        if self.fail:
            return httpx.Response(503, json={"error": {"status": "UNAVAILABLE"}})
        assert path.startswith(DOCUMENTS_PREFIX), path
        rest = path[len(DOCUMENTS_PREFIX):]
        if rest == ":runQuery":
            return self._run_query(json.loads(request.content))
        parts = rest.strip("/").split("/")
        collection = parts[0]
        docs = self.collections.setdefault(collection, {})
        params = request.url.params

        if len(parts) == 1 and request.method == "POST":
            doc_id = params["documentId"]
            if doc_id in docs:
                return httpx.Response(409, json={"error": {"status": "ALREADY_EXISTS"}})
            docs[doc_id] = {"fields": json.loads(request.content).get("fields", {})}
            return httpx.Response(200, json=self._document(collection, doc_id))

        doc_id = parts[1]
        if request.method == "GET":
            if doc_id not in docs:
                name = self._doc_name(collection, doc_id)
                return self._not_found(f"Document \"{name}\" not found.")
            return httpx.Response(200, json=self._document(collection, doc_id))
        if request.method == "DELETE":
            docs.pop(doc_id, None)
            return httpx.Response(200, json={})
        if request.method == "PATCH":
            fields = json.loads(request.content).get("fields", {})
            mask = params.get_list("updateMask.fieldPaths")
            if params.get("currentDocument.exists") == "true" and doc_id not in docs:
                name = self._doc_name(collection, doc_id)
                return self._not_found(f"No document to update: {name}")
            if mask:
                current = docs[doc_id]["fields"]
                for name in mask:
                    if name in fields:
                        current[name] = fields[name]
                    else:
                        current.pop(name, None)
            else:
                docs[doc_id] = {"fields": fields}
            return httpx.Response(200, json=self._document(collection, doc_id))
        return httpx.Response(405)

    def _run_query(self, body: dict) -> httpx.Response:
        query = body["structuredQuery"]
        collection = query["from"][0]["collectionId"]
        field_filter = query["where"]["fieldFilter"]
        field = field_filter["field"]["fieldPath"]
        expected = field_filter["value"]
        results = []
        for doc_id, stored in self.collections.get(collection, {}).items():
            if stored["fields"].get(field) == expected:
                results.append({"document": self._document(collection, doc_id)})
        results = results[: query.get("limit", len(results))]
        return httpx.Response(200, json=results or [{"readTime": "2024-01-01T00:00:00Z"}])

    def put_raw(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Store a document given in wire format, bypassing the client."""
        self.collections.setdefault(collection, {})[doc_id] = {"fields": fields}

    def has(self, collection: str, doc_id: str) -> bool:
        return doc_id in self.collections.get(collection, {})

    def reads(self) -> list[str]:
        return [path for method, path in self.requests if method == "GET"]


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def firestore() -> FirestoreStub:
    return FirestoreStub()


@pytest.fixture
async def http_client(firestore: FirestoreStub) -> httpx.AsyncClient:
    """httpx client routed to the Firestore stub."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(firestore.handle)) as client:
        yield client


@pytest.fixture
def document_client(http_client: httpx.AsyncClient) -> FirestoreRESTClient:
    return FirestoreRESTClient(
        FIRESTORE_BASE,
        FIRESTORE_PROJECT,
        FIRESTORE_DATABASE,
        app_name="cacheaside-tests",
        http_client=http_client,
    )


@pytest.fixture
def context(fake_redis: FakeRedis, document_client: FirestoreRESTClient) -> DataServicesContext:
    return DataServicesContext(
        cache_client=fake_redis,
        document_client=document_client,
        default_ttl=300,
    )


@pytest.fixture
def services(context: DataServicesContext) -> DataServices:
    """DataServices wired to FakeRedis and the Firestore stub."""
    return DataServices(context)
