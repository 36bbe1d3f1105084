"""
OpenTelemetry tracing for provisioning runs.

The Runner records a ``bootstrap.run`` span and one ``bootstrap.step`` span
per step through the OTel API. Without ``configure_tracing()`` the global
tracer provider is a no-op, so spans cost nothing.

Usage:
    from bootstrapcore.telemetry import configure_tracing, shutdown_tracing

    if configure_tracing("collector:4317"):
        ...
        shutdown_tracing()
"""

from __future__ import annotations

import logging

import click
from opentelemetry import trace

from bootstrapcore.models import StepOutcome, StepResult

logger = logging.getLogger(__name__)

TRACER_NAME = "bootstrapcore"


def get_tracer() -> trace.Tracer:
    return trace.get_tracer(TRACER_NAME)


def configure_tracing(endpoint: str, service_name: str = "bootstrapcore") -> bool:
    """
    Configure the global TracerProvider with an OTLP gRPC exporter.

    Args:
        endpoint: OTLP endpoint (e.g., localhost:4317)
        service_name: Value for the service.name resource attribute

    Returns:
        True if configuration succeeded, False otherwise
    """
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        resource = Resource.create({
            "service.name": service_name,
            "service.namespace": "bootstrapcore",
        })
        provider = TracerProvider(resource=resource)
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
        )
        trace.set_tracer_provider(provider)
        logger.debug("Tracing configured for %s", endpoint)
        return True

    except Exception as e:
        click.echo(f"Warning: Failed to configure OTel: {e}", err=True)
        return False


def shutdown_tracing() -> None:
    """Flush and shut down the tracer provider if it supports it."""
    provider = trace.get_tracer_provider()
    if hasattr(provider, "force_flush"):
        provider.force_flush(timeout_millis=10000)
    if hasattr(provider, "shutdown"):
        provider.shutdown()


def record_step_result(span: trace.Span, result: StepResult) -> None:
    """Copy a step outcome onto its span."""
    if not span.is_recording():
        return
    span.set_attribute("step.outcome", result.outcome.value)
    span.set_attribute("step.duration_ms", result.duration_ms)
    if result.outcome == StepOutcome.FAILED:
        span.set_status(trace.Status(trace.StatusCode.ERROR, result.detail))
