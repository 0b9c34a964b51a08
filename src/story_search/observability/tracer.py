"""
Process-wide tracer for search and ingestion spans.

Until init_tracing() installs an OTelTracer, get_tracer() hands out a
NoOpTracer. Spans only need set_attribute(); an exception leaving a span
is recorded by OpenTelemetry itself.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Protocol


class Tracer(Protocol):
    def start_span(self, name: str, attributes: dict[str, Any] | None = None):
        ...


class NoOpSpan:
    def set_attribute(self, key: str, value: Any) -> None:
        pass


class NoOpTracer:
    @contextmanager
    def start_span(self, name: str, attributes: dict[str, Any] | None = None) -> Iterator[NoOpSpan]:
        yield NoOpSpan()


class OTelTracer:
    """Adapts an opentelemetry Tracer; yields the real span."""

    def __init__(self, tracer: Any):
        self._tracer = tracer

    @contextmanager
    def start_span(self, name: str, attributes: dict[str, Any] | None = None):
        with self._tracer.start_as_current_span(name, attributes=attributes) as span:
            yield span


_tracer: Tracer | None = None


def set_tracer(tracer: Tracer) -> None:
    global _tracer
    _tracer = tracer


def get_tracer() -> Tracer:
    global _tracer
    if _tracer is None:
        _tracer = NoOpTracer()
    return _tracer


def reset_tracer() -> None:
    """Drop the installed tracer (tests, shutdown)."""
    global _tracer
    _tracer = None
