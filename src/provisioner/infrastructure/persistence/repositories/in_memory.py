"""In-memory repository implementations for development and testing."""

from __future__ import annotations

from provisioner.domain.models.provisioning import ProvisioningResult, ProvisioningRun
from provisioner.domain.ports.repositories import ProvisioningRunRepository, ResultStore
from provisioner.infrastructure.observability.metrics import RESULT_STORE_WRITES_TOTAL


# Module-level shared stores so every instance sees the same data,
# cleared in one place by test fixtures.
_result_store: dict[str, ProvisioningResult] = {}
_run_store: dict[str, ProvisioningRun] = {}


class InMemoryResultStore(ResultStore):
    """Keeps the result document of each slot in process memory."""

    def __init__(self, slot: str = "default") -> None:
        self._slot = slot
        self._store = _result_store

    async def write(self, result: ProvisioningResult) -> None:
        self._store[self._slot] = result
        RESULT_STORE_WRITES_TOTAL.labels(backend="memory").inc()

    async def read(self) -> ProvisioningResult | None:
        return self._store.get(self._slot)

    @classmethod
    def clear(cls) -> None:
        """Clear the shared store. Used by test fixtures for isolation."""
        _result_store.clear()


class InMemoryProvisioningRunRepository(ProvisioningRunRepository):
    """In-memory run history for testing and demo use."""

    def __init__(self) -> None:
        self._store = _run_store

    async def save(self, run: ProvisioningRun) -> ProvisioningRun:
        self._store[run.id] = run.model_copy(deep=True)
        return run

    async def update(self, run: ProvisioningRun) -> ProvisioningRun:
        self._store[run.id] = run.model_copy(deep=True)
        return run

    async def get_by_id(self, run_id: str) -> ProvisioningRun | None:
        return self._store.get(run_id)

    async def list_recent(self, limit: int = 20) -> list[ProvisioningRun]:
        items = sorted(self._store.values(), key=lambda r: r.created_at, reverse=True)
        return items[:limit]

    @classmethod
    def clear(cls) -> None:
        """Clear the shared store. Used by test fixtures for isolation."""
        _run_store.clear()
