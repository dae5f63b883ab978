"""Cache and persistence capabilities for record types.

A record type opts into each capability independently, either by
implementing the protocol by hand or by applying the class decorator.
There is no shared base class.

Example:
    @cacheable(path="user", expiry=600)
    @persistable(name="users")
    class User(BaseModel):
        id: str
        name: str
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Callable
from typing import Any, ClassVar, Protocol, Self, runtime_checkable

from pydantic import BaseModel

from cacheaside.core.constants import DEFAULT_CACHE_EXPIRY, DOCUMENT_ID_FORBIDDEN
from cacheaside.infrastructure.cache.keys import record_key, validate_key_component


@runtime_checkable
class Cacheable(Protocol):
    """How a record maps to a cache key and a cache value.

    cache_expiry is the per-type TTL in seconds: None falls back to the
    configured default, 0 stores without expiry.
    """

    cache_path: ClassVar[str]
    cache_expiry: ClassVar[int | None]

    def cache_id(self) -> str:
        """Identity of this instance within cache_path."""
        ...

    def cache_key(self) -> str:
        """Full key: record_key(cache_path, cache_id())."""
        ...

    def to_cache_bytes(self) -> bytes:
        """Serialize for the cache. Must round-trip through from_cache_bytes."""
        ...

    @classmethod
    def from_cache_bytes(cls, data: bytes) -> Self:
        """Rebuild an instance from to_cache_bytes output."""
        ...


@runtime_checkable
class Persistable(Protocol):
    """How a record maps to a document in the persistent store."""

    collection_name: ClassVar[str]

    def persist_id(self) -> str:
        """Document ID (primary key) in collection_name."""
        ...

    def to_document(self) -> dict[str, Any]:
        """Serialize to a document. Must round-trip through from_document."""
        ...

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Self:
        """Rebuild an instance from to_document output."""
        ...


@runtime_checkable
class CacheablePersistable(Cacheable, Persistable, Protocol):
    """A record type with both capabilities (what DataServices operates on)."""


def _field_names(cls: type) -> set[str]:
    if issubclass(cls, BaseModel):
        return set(cls.model_fields)
    if dataclasses.is_dataclass(cls):
        return {f.name for f in dataclasses.fields(cls)}
    raise TypeError(
        f"{cls.__name__} must be a pydantic model or a dataclass to use the "
        "capability decorators; implement the protocol by hand otherwise"
    )


def _id_getter(
    cls: type,
    id_field: str | None,
    id_func: Callable[[Any], Any] | None,
    decorator: str,
) -> Callable[[Any], str]:
    """Resolve the id accessor: id_func, then id_field, then a field named 'id'."""
    if id_func is not None:
        return lambda self: str(id_func(self))
    fields = _field_names(cls)
    field = id_field or "id"
    if field not in fields:
        raise TypeError(
            f"@{decorator} on {cls.__name__} expects an id field or id_func "
            f"(no field named {field!r})"
        )
    return lambda self: str(getattr(self, field))


def _install(cls: type, name: str, value: Any) -> None:
    """Set an attribute unless the class body already defines it."""
    if name not in cls.__dict__:
        setattr(cls, name, value)


def _as_dict(record: Any) -> dict[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json")
    return dataclasses.asdict(record)


def _from_dict(cls: type, data: dict[str, Any]) -> Any:
    if issubclass(cls, BaseModel):
        return cls.model_validate(data)
    names = _field_names(cls)
    return cls(**{k: v for k, v in data.items() if k in names})


def _to_json_bytes(self: Any) -> bytes:
    if isinstance(self, BaseModel):
        return self.model_dump_json().encode("utf-8")
    return json.dumps(dataclasses.asdict(self), separators=(",", ":")).encode("utf-8")


def _from_json_bytes(cls: type, data: bytes) -> Any:
    if issubclass(cls, BaseModel):
        return cls.model_validate_json(data)
    return _from_dict(cls, json.loads(data))


def cacheable(
    cls: type | None = None,
    *,
    path: str | None = None,
    expiry: int | None = DEFAULT_CACHE_EXPIRY,
    id_field: str | None = None,
    id_func: Callable[[Any], Any] | None = None,
) -> Any:
    """Class decorator implementing Cacheable for a pydantic model or dataclass.

    Cache values are JSON. Dataclass fields must be JSON-native types.

    Args:
        path: Key namespace for the type; defaults to the lower-cased class name.
        expiry: TTL in seconds (None = configured default, 0 = never expire).
        id_field: Field holding the id; defaults to 'id'.
        id_func: Callable(record) -> id, overrides id_field.

    Raises:
        TypeError: If no id can be resolved or the class is unsupported.
        ValueError: If path contains the key separator or expiry is negative.
    """

    def decorate(target: type) -> type:
        cache_path = path if path is not None else target.__name__.lower()
        validate_key_component(cache_path, "cache_path")
        if expiry is not None and expiry < 0:
            raise ValueError(f"cache expiry must be >= 0, got {expiry}")
        get_id = _id_getter(target, id_field, id_func, "cacheable")

        def cache_key(self: Any) -> str:
            return record_key(type(self).cache_path, self.cache_id())

        _install(target, "cache_path", cache_path)
        _install(target, "cache_expiry", expiry)
        _install(target, "cache_id", get_id)
        _install(target, "cache_key", cache_key)
        _install(target, "to_cache_bytes", _to_json_bytes)
        _install(target, "from_cache_bytes", classmethod(_from_json_bytes))
        return target

    if cls is not None:
        return decorate(cls)
    return decorate


def persistable(
    cls: type | None = None,
    *,
    name: str | None = None,
    id_field: str | None = None,
    id_func: Callable[[Any], Any] | None = None,
) -> Any:
    """Class decorator implementing Persistable for a pydantic model or dataclass.

    Documents are the model's JSON-mode dump (pydantic) or dataclasses.asdict.

    Args:
        name: Collection name; defaults to the lower-cased class name.
        id_field: Field holding the document ID; defaults to 'id'.
        id_func: Callable(record) -> id, overrides id_field.
    """

    def decorate(target: type) -> type:
        collection = name if name is not None else target.__name__.lower()
        if not collection or DOCUMENT_ID_FORBIDDEN in collection:
            raise ValueError(f"invalid collection name: {collection!r}")
        get_id = _id_getter(target, id_field, id_func, "persistable")

        _install(target, "collection_name", collection)
        _install(target, "persist_id", get_id)
        _install(target, "to_document", _as_dict)
        _install(target, "from_document", classmethod(_from_dict))
        return target

    if cls is not None:
        return decorate(cls)
    return decorate
