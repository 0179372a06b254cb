"""Unit tests for provisioning stage spans."""

from __future__ import annotations

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from provisioner.config import ObservabilitySettings
from provisioner.domain.errors import DeploymentReverted
from provisioner.infrastructure.observability.tracing import setup_tracing, stage_span


@pytest.fixture
def exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer(exporter: InMemorySpanExporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return provider.get_tracer("test")


class TestStageSpan:
    def test_successful_stage(self, tracer, exporter: InMemorySpanExporter) -> None:
        with stage_span(tracer, "account", "run-1"):
            pass

        (span,) = exporter.get_finished_spans()
        assert span.name == "provisioning.account"
        assert span.attributes["provisioning.run_id"] == "run-1"
        assert span.status.status_code != StatusCode.ERROR

    def test_failed_stage(self, tracer, exporter: InMemorySpanExporter) -> None:
        with pytest.raises(DeploymentReverted):
            with stage_span(tracer, "token_deployment", "run-1"):
                raise DeploymentReverted("reverted")

        (span,) = exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR
        assert span.attributes["provisioning.error_stage"] == "token_deployment"
        assert span.events[0].name == "exception"


class TestSetupTracing:
    def test_disabled(self) -> None:
        assert setup_tracing(ObservabilitySettings(tracing_enabled=False)) is False
