"""Shared telemetry: logging setup and OpenTelemetry tracing helpers."""

from cacheaside.shared.telemetry.logging import setup_logging
from cacheaside.shared.telemetry.tracing import (
    add_span_attributes,
    add_span_event,
    traced,
)

__all__ = [
    "add_span_attributes",
    "add_span_event",
    "setup_logging",
    "traced",
]
