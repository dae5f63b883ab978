"""Document store protocol for the data services layer (DIP). Implemented by DocumentStore."""

from typing import Any, Protocol


class DocumentStoreProtocol(Protocol):
    """Protocol for the authoritative store. Failures raise DocumentStoreException."""

    async def find_by_id(self, collection: str, record_id: str) -> dict[str, Any] | None:
        """Return the document, or None if it does not exist."""
        ...

    async def insert(self, collection: str, record_id: str, document: dict[str, Any]) -> None:
        """Create; raise RecordAlreadyExistsException if record_id exists."""
        ...

    async def upsert(self, collection: str, record_id: str, document: dict[str, Any]) -> None:
        """Create or fully replace."""
        ...

    async def update(
        self, collection: str, record_id: str, fields: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Partially update; return the updated document or None if missing."""
        ...

    async def delete(self, collection: str, record_id: str) -> None:
        """Delete; a missing document is not an error."""
        ...

    async def find(
        self, collection: str, field: str, value: Any, limit: int = 100
    ) -> list[tuple[str, dict[str, Any]]]:
        """Equality query on one field; (record_id, document) pairs."""
        ...
