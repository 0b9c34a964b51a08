"""
Observability Module - Phoenix + OpenTelemetry Integration

USAGE:
------
# At application startup:
from story_search.observability import init_tracing

init_tracing(settings)  # No-op unless TRACING_ENABLED=true

# In code that needs tracing:
from story_search.observability import get_tracer

with get_tracer().start_span("search", attributes={...}) as span:
    span.set_attribute("search.result_count", 3)
"""

from __future__ import annotations

import logging

from story_search.config import Settings
from story_search.observability.tracer import (
    NoOpSpan,
    NoOpTracer,
    OTelTracer,
    get_tracer,
    reset_tracer,
    set_tracer,
)
from story_search.observability import attributes

logger = logging.getLogger(__name__)

_provider = None


def init_tracing(settings: Settings) -> bool:
    """
    Set up an OpenTelemetry tracer provider exporting to Phoenix.

    Call once at startup. Registers the OpenInference OpenAI instrumentor
    so embedding and chat calls show up as child spans.

    Returns:
        True if tracing was initialized, False if disabled or unavailable
    """
    global _provider
    if _provider is not None:
        return True

    if not settings.tracing_enabled:
        logger.debug("Tracing disabled")
        return False

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

        if settings.collector_endpoint:
            endpoint = settings.collector_endpoint
            logger.info(f"Phoenix connecting to remote: {endpoint}")
        else:
            import phoenix as px

            session = px.launch_app()
            endpoint = f"{session.url.rstrip('/')}/v1/traces"
            logger.info(f"Phoenix UI available at: {session.url}")

        provider = TracerProvider(
            resource=Resource.create({"openinference.project.name": settings.project_name})
        )
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        trace.set_tracer_provider(provider)
        set_tracer(OTelTracer(trace.get_tracer("story-search")))
        _provider = provider
    except ImportError as e:
        logger.warning(f"Tracing packages not installed, tracing disabled: {e}")
        return False

    try:
        from openinference.instrumentation.openai import OpenAIInstrumentor

        OpenAIInstrumentor().instrument(tracer_provider=_provider)
    except ImportError:
        logger.debug("OpenAI instrumentor not available")

    return True


def shutdown_tracing() -> None:
    """Flush spans and drop the tracer."""
    global _provider
    if _provider is None:
        return
    _provider.shutdown()
    _provider = None
    reset_tracer()


__all__ = [
    "init_tracing",
    "shutdown_tracing",
    "get_tracer",
    "reset_tracer",
    "set_tracer",
    "NoOpTracer",
    "NoOpSpan",
    "OTelTracer",
    "attributes",
]
