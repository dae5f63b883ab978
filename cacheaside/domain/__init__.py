"""Domain: capability protocols, capability decorators and exceptions.

Independent of the redis and document store clients.
"""

from cacheaside.domain.capabilities import (
    Cacheable,
    CacheablePersistable,
    Persistable,
    cacheable,
    persistable,
)
from cacheaside.domain.exceptions import (
    CacheAsideException,
    ConfigurationException,
    DocumentStoreException,
    RecordAlreadyExistsException,
    RecordDecodeException,
)

__all__ = [
    "CacheAsideException",
    "Cacheable",
    "CacheablePersistable",
    "ConfigurationException",
    "DocumentStoreException",
    "Persistable",
    "RecordAlreadyExistsException",
    "RecordDecodeException",
    "cacheable",
    "persistable",
]
