"""
OpenTelemetry setup for the availability service.

- One span per upstream call (ILS connector, Solr)
- Spans are exported over OTLP only when an endpoint is configured;
  otherwise the provider records nothing outward
"""
from __future__ import annotations
from typing import Optional
import logging
import os

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)

TRACER_NAME = "availability.upstream"


def setup_otel(
    service_name: str = "availability-service",
    endpoint: Optional[str] = None,
):
    """Install the tracer provider and return a tracer for *service_name*."""
    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)

    otlp_endpoint = endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        except ImportError:
            logger.warning("OTLP exporter is not installed; traces will not leave the process")
        else:
            provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
            logger.info("Exporting traces to %s", otlp_endpoint)

    trace.set_tracer_provider(provider)
    return trace.get_tracer(service_name)


def upstream_span(adapter_name: str, method: str, url: str):
    """Context manager for a span around one upstream request."""
    return trace.get_tracer(TRACER_NAME).start_as_current_span(
        f"{adapter_name} {method}",
        kind=trace.SpanKind.CLIENT,
        attributes={
            "upstream.name": adapter_name,
            "http.request.method": method,
            "url.full": url,
        },
    )
