"""Core constants: cache key structure and shared default values.

Single source of truth for key format and TTL defaults. Used by
infrastructure cache, capability decorators, and settings.
"""

# Delimiter for composite cache keys ({namespace}:{path}:{id})
CACHE_KEY_SEP = ":"

# Default per-type cache lifetime in seconds (applied by @cacheable)
DEFAULT_CACHE_EXPIRY = 3600

# Firestore document IDs cannot contain this character
DOCUMENT_ID_FORBIDDEN = "/"

# Default page size for uncached equality queries
DEFAULT_QUERY_LIMIT = 100

ENV_PREFIX = "CACHEASIDE_"
