"""
OpenTelemetry distributed tracing configuration for the goodtraining web app.

This module provides automatic instrumentation for:
- FastAPI (incoming page requests)
- HTTPX (outbound REST backend calls)

Configuration via environment variables:
- OTEL_ENABLED: Enable/disable tracing (default: true)
- OTEL_SERVICE_NAME: Service name for traces (default: goodtraining-web)
- OTEL_EXPORTER_OTLP_ENDPOINT: OTLP collector endpoint (default: http://localhost:4317)
- OTEL_EXPORTER_OTLP_HEADERS: Optional headers for OTLP exporter
- OTEL_TRACES_SAMPLER: Sampling strategy (default: parent_trace_always)
- OTEL_TRACES_SAMPLER_ARG: Sampling rate (default: 1.0)
"""

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.sdk.trace.sampling import (
    ALWAYS_OFF,
    ALWAYS_ON,
    ParentBased,
    Sampler,
    TraceIdRatioBased,
)

logger = logging.getLogger(__name__)

# Global tracer provider reference for shutdown
_tracer_provider: TracerProvider | None = None


def _parse_headers(headers_string: str | None) -> dict[str, str]:
    """
    Parse OTLP headers from environment variable format.

    Args:
        headers_string: Headers in format "key1=value1,key2=value2"

    Returns:
        Dictionary of headers
    """
    if not headers_string:
        return {}

    headers = {}
    for pair in headers_string.split(","):
        pair = pair.strip()
        if "=" in pair:
            key, value = pair.split("=", 1)
            headers[key.strip()] = value.strip()
    return headers


def _build_sampler(sampler_name: str, sampler_arg: float) -> Sampler:
    if sampler_name == "always_on":
        return ALWAYS_ON
    if sampler_name == "always_off":
        return ALWAYS_OFF
    if sampler_name == "traceidratio":
        return TraceIdRatioBased(sampler_arg)
    # parent_trace_always (default)
    return ParentBased(root=TraceIdRatioBased(sampler_arg))


def init_telemetry(
    service_name: str | None = None,
    app_env: str | None = None,
    otlp_endpoint: str | None = None,
    otlp_headers: str | None = None,
    sampler_name: str | None = None,
    sampler_arg: float | None = None,
) -> TracerProvider | None:
    """
    Initialize OpenTelemetry distributed tracing.

    Sets up the tracer provider, an OTLP gRPC span exporter and a batch span
    processor. Missing arguments fall back to settings.

    Returns:
        TracerProvider instance if enabled, None otherwise
    """
    global _tracer_provider

    from goodtraining.core.config import settings

    if not settings.otel_enabled:
        logger.info("OpenTelemetry tracing is disabled (OTEL_ENABLED=false)")
        return None

    service_name = service_name or settings.otel_service_name
    app_env = app_env or settings.app_env.value
    otlp_endpoint = otlp_endpoint or settings.otel_exporter_otlp_endpoint
    otlp_headers = otlp_headers or settings.otel_exporter_otlp_headers
    sampler_name = sampler_name or settings.otel_traces_sampler
    sampler_arg = sampler_arg if sampler_arg is not None else settings.otel_traces_sampler_arg

    resource = Resource.create(
        {
            SERVICE_NAME: service_name,
            DEPLOYMENT_ENVIRONMENT: app_env,
            "service.version": "0.1.0",
        }
    )

    tracer_provider = TracerProvider(
        resource=resource, sampler=_build_sampler(sampler_name, sampler_arg)
    )

    span_exporter: SpanExporter = OTLPSpanExporter(
        endpoint=otlp_endpoint,
        headers=_parse_headers(otlp_headers),
    )
    tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))

    trace.set_tracer_provider(tracer_provider)
    _tracer_provider = tracer_provider

    logger.info(
        f"OpenTelemetry initialized: service={service_name}, "
        f"environment={app_env}, endpoint={otlp_endpoint}, sampler={sampler_name}"
    )
    return tracer_provider


def instrument_fastapi(app: Any) -> None:
    """Instrument FastAPI application with OpenTelemetry."""
    from goodtraining.core.config import settings

    if not settings.otel_enabled:
        logger.debug("OpenTelemetry disabled - skipping FastAPI instrumentation")
        return

    FastAPIInstrumentor.instrument_app(app, excluded_urls="health,readyz,metrics,static")
    logger.info("FastAPI instrumentation enabled")


def instrument_httpx() -> None:
    """
    Instrument HTTPX client with OpenTelemetry.

    Traces every call made to the REST backend.
    """
    from goodtraining.core.config import settings

    if not settings.otel_enabled:
        logger.debug("OpenTelemetry disabled - skipping HTTPX instrumentation")
        return

    instrumentor = HTTPXClientInstrumentor()
    if not instrumentor.is_instrumented_by_opentelemetry:
        instrumentor.instrument()
        logger.info("HTTPX instrumentation enabled")


def shutdown_telemetry() -> None:
    """Flush pending spans and shut the tracer provider down."""
    global _tracer_provider

    if _tracer_provider is None:
        logger.debug("OpenTelemetry tracer provider not initialized")
        return

    logger.info("Shutting down OpenTelemetry tracer provider")
    _tracer_provider.shutdown()
    _tracer_provider = None


def get_trace_id() -> str | None:
    """Current trace ID as hex, or None when no span is recording."""
    current_span = trace.get_current_span()
    if not current_span.is_recording():
        return None
    return format(current_span.get_span_context().trace_id, "032x")


def get_span_id() -> str | None:
    """Current span ID as hex, or None when no span is recording."""
    current_span = trace.get_current_span()
    if not current_span.is_recording():
        return None
    return format(current_span.get_span_context().span_id, "016x")
