"""Cache key builders. Single place for key format.

Keys are {cache_path}:{record_id}; the cache adapter adds the configured
namespace in front ({namespace}:{cache_path}:{record_id}). The path and
namespace must not contain CACHE_KEY_SEP. The record id may, since it is
always the last component and cannot make two keys collide.
"""

from cacheaside.core.constants import CACHE_KEY_SEP


def validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value is empty or contains the cache key separator.

    Args:
        value: String component used in a cache key.
        name: Name of the component (for error message).

    Raises:
        ValueError: If value is empty or contains CACHE_KEY_SEP.
    """
    if not value:
        raise ValueError(f"Cache key component {name!r} must not be empty")
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def record_key(cache_path: str, record_id: str) -> str:
    """Cache key for a record of type cache_path with the given id."""
    validate_key_component(cache_path, "cache_path")
    if not record_id:
        raise ValueError("Cache key component 'record_id' must not be empty")
    return f"{cache_path}{CACHE_KEY_SEP}{record_id}"


def namespaced_key(namespace: str, key: str) -> str:
    """Prefix key with namespace; an empty namespace leaves the key unchanged."""
    if not namespace:
        return key
    return f"{namespace}{CACHE_KEY_SEP}{key}"
