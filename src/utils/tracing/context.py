"""
Span helpers for reingest runs.

Attribute values keep their type when OpenTelemetry accepts it (str, bool,
int, float), so batch numbers and record counts stay numeric in the trace
backend; anything else is recorded as its string form. A failed operation
marks its span with ERROR status.
"""

from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from .tracer import get_tracer

_NATIVE_TYPES = (str, bool, int, float)


def attribute_value(value: Any) -> str | bool | int | float:
    """Span-safe form of ``value``; None becomes an empty string."""
    if value is None:
        return ""
    if isinstance(value, _NATIVE_TYPES):
        return value
    return str(value)


def _attributes(attributes: dict[str, Any]) -> dict[str, str | bool | int | float]:
    return {key: attribute_value(value) for key, value in attributes.items()}


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Context manager for tracing one step of a run.

    Args:
        operation_name: Span name (e.g. "reingest_batch")
        kind: Span kind; CLIENT for calls that reach the database
        **attributes: Initial span attributes

    Yields:
        The active span

    Example:
        >>> with trace_operation("reingest_batch", batch_number=3) as span:
        ...     result = process(batch)
        ...     span.set_attribute("records_failed", result.failed)
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(
        operation_name,
        kind=kind,
        attributes=_attributes(attributes),
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.set_attribute("error.type", type(e).__name__)
            span.record_exception(e)
            raise


def add_span_attributes(**attributes):
    """
    Add attributes to the current span.

    Example:
        >>> with trace_operation("reingest_run"):
        ...     summary = collect()
        ...     add_span_attributes(total_records=summary.total_records)
    """
    current_span = trace.get_current_span()
    if current_span.is_recording():
        current_span.set_attributes(_attributes(attributes))


def add_span_event(name: str, **attributes):
    """
    Add an event to the current span.

    Workers use this to mark individual record failures on the batch span.
    """
    current_span = trace.get_current_span()
    if current_span.is_recording():
        current_span.add_event(name, attributes=_attributes(attributes))
