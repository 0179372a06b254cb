"""Prometheus metrics for the provisioning pipeline."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
)


PROVISIONING_RUNS_TOTAL = Counter(
    "provisioner_runs_total",
    "Provisioning runs by outcome",
    ["outcome"],  # "succeeded", "failed"
)

PROVISIONING_FAILURES_TOTAL = Counter(
    "provisioner_failures_total",
    "Provisioning failures by the stage reached and error type",
    ["failed_after", "error_type"],
)

ACTIVE_PROVISIONING_RUNS = Gauge(
    "provisioner_active_runs",
    "Provisioning runs currently in progress",
)

STAGE_DURATION = Histogram(
    "provisioner_stage_duration_seconds",
    "Time spent in each provisioning stage",
    ["stage"],
    buckets=[0.1, 0.5, 1, 5, 15, 30, 60, 120, 300],
)

DAO_CREATION_STEPS_TOTAL = Counter(
    "provisioner_dao_creation_steps_total",
    "DAO creation progress steps received",
    ["key"],
)

RESULT_STORE_WRITES_TOTAL = Counter(
    "provisioner_result_store_writes_total",
    "Result store writes",
    ["backend"],
)
