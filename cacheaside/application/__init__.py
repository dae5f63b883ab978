"""Application layer: the cache-aside DataServices orchestrator.

Depends on the domain capabilities and on the adapter protocols (DIP);
infrastructure supplies the Redis and Firestore implementations.
"""

from cacheaside.application.data_services import DataServices

__all__ = ["DataServices"]
