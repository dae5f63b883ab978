"""Firestore REST typed values to and from plain Python values.

The REST API wraps every value in a one-key object naming its type, e.g.
{"integerValue": "3"} or {"mapValue": {"fields": {...}}}. Timestamps are
sent in UTC; naive datetimes are taken to be UTC already.
"""

import base64
import re
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any


def _timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


# The API sends up to nanosecond precision; datetime holds microseconds.
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(_EXTRA_FRACTION.sub(r"\1", value))


def _b64(value: bytes) -> str:
    return base64.standard_b64encode(value).decode("ascii")


# Checked in order: bool before int, since bool is an int subclass.
_ENCODERS: list[tuple[type | tuple[type, ...], str, Callable[[Any], Any]]] = [
    (bool, "booleanValue", bool),
    (int, "integerValue", str),
    (float, "doubleValue", float),
    (datetime, "timestampValue", _timestamp),
    (str, "stringValue", str),
    (bytes, "bytesValue", _b64),
    ((list, tuple), "arrayValue", lambda items: {"values": [to_value(x) for x in items]}),
    (Mapping, "mapValue", lambda data: {"fields": encode_fields(data)}),
]

_DECODERS: dict[str, Callable[[Any], Any]] = {
    "nullValue": lambda _: None,
    "booleanValue": bool,
    "integerValue": int,
    # float() also parses the "NaN" / "Infinity" strings the API uses.
    "doubleValue": float,
    "timestampValue": _parse_timestamp,
    "stringValue": str,
    "bytesValue": base64.standard_b64decode,
    "referenceValue": str,
    "arrayValue": lambda raw: [from_value(x) for x in raw.get("values") or []],
    "mapValue": lambda raw: decode_fields(raw.get("fields") or {}),
}


def to_value(value: Any) -> dict[str, Any]:
    """Wrap one Python value in its Firestore type tag."""
    if value is None:
        return {"nullValue": None}
    for kind, tag, convert in _ENCODERS:
        if isinstance(value, kind):
            return {tag: convert(value)}
    raise TypeError(f"Unsupported Firestore value type: {type(value)}")


def from_value(value: Mapping[str, Any]) -> Any:
    """Unwrap a Firestore typed value; unknown tags decode to None."""
    for tag, raw in value.items():
        decode = _DECODERS.get(tag)
        if decode is not None:
            return decode(raw)
    return None


def encode_fields(data: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Python dict to a Firestore 'fields' map."""
    return {name: to_value(value) for name, value in data.items()}


def decode_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Firestore 'fields' map to a Python dict."""
    return {name: from_value(value) for name, value in fields.items()}


def encode_document(data: Mapping[str, Any]) -> dict[str, Any]:
    """Python dict to a Firestore Document body."""
    return {"fields": encode_fields(data)}


def decode_document(document: Mapping[str, Any] | None) -> dict[str, Any]:
    """Firestore Document body to the plain dict of its fields."""
    if not document:
        return {}
    return decode_fields(document.get("fields") or {})
