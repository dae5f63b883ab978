"""Cache protocol for the data services layer (DIP). Implemented by CacheStore."""

from typing import Protocol


class CacheProtocol(Protocol):
    """Protocol for advisory cache backends. No method raises on backend failure."""

    def is_available(self) -> bool:
        """Return True if a cache client is configured."""
        ...

    async def get(self, key: str) -> bytes | None:
        """Return cached bytes, or None on miss or backend error."""
        ...

    async def set(self, key: str, data: bytes, ttl: int | None = None) -> bool:
        """Store bytes; ttl of 0/None stores without expiry. False on failure."""
        ...

    async def delete(self, key: str) -> bool:
        """Remove key. False on failure."""
        ...

    async def expire(self, key: str, ttl: int) -> bool:
        """Reset the key's TTL (0 removes expiry). False on failure or missing key."""
        ...
