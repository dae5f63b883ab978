"""cacheaside: cache-aside data access over Redis and Firestore.

Records opt into the Cacheable and Persistable capabilities; DataServices
serves reads from the cache with document store fallback and writes to the
document store before refreshing the cache.
"""

from cacheaside.application.data_services import DataServices
from cacheaside.core.config import Settings, get_settings
from cacheaside.core.context import DataServicesContext
from cacheaside.core.lifespan import create_context, open_data_services
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

__version__ = "0.1.0"

__all__ = [
    "CacheAsideException",
    "Cacheable",
    "CacheablePersistable",
    "ConfigurationException",
    "DataServices",
    "DataServicesContext",
    "DocumentStoreException",
    "Persistable",
    "RecordAlreadyExistsException",
    "RecordDecodeException",
    "Settings",
    "cacheable",
    "create_context",
    "get_settings",
    "open_data_services",
    "persistable",
]
