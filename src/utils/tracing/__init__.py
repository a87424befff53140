"""
Distributed tracing using OpenTelemetry.

Instruments database connects, identifier discovery, batch processing
and whole reingest runs.
"""

from .context import add_span_attributes, add_span_event, attribute_value, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
    "add_span_event",
    "attribute_value",
]
