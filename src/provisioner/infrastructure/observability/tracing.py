"""OpenTelemetry tracing for provisioning runs."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Status, StatusCode

from provisioner import __version__
from provisioner.config import ObservabilitySettings


def setup_tracing(settings: ObservabilitySettings) -> bool:
    """Install a tracer provider. Returns False when tracing is disabled."""
    if not settings.tracing_enabled:
        return False

    provider = TracerProvider(
        resource=Resource.create({
            "service.name": settings.service_name,
            "service.version": __version__,
        })
    )
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)
    return True


def get_tracer(name: str = "provisioner") -> trace.Tracer:
    """Get a tracer instance; a no-op tracer until ``setup_tracing`` runs."""
    return trace.get_tracer(name)


@contextmanager
def stage_span(tracer: trace.Tracer, stage: str, run_id: str) -> Iterator[trace.Span]:
    """Open the span of one pipeline stage.

    A stage that raises, cancellation included, leaves its span in ERROR
    status with the exception recorded and the error's own stage attached.
    """
    with tracer.start_as_current_span(
        f"provisioning.{stage}",
        attributes={"provisioning.stage": stage, "provisioning.run_id": run_id},
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except BaseException as e:
            span.record_exception(e)
            span.set_attribute("provisioning.error_stage", getattr(e, "stage", stage))
            span.set_status(Status(StatusCode.ERROR, type(e).__name__))
            raise
