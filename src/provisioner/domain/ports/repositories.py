"""Repository port interfaces (hexagonal architecture)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from provisioner.domain.models.provisioning import ProvisioningResult, ProvisioningRun


class ResultStore(ABC):
    """Port for the durable record of a successful provisioning.

    Each store holds a single document slot; a write overwrites it.
    """

    @abstractmethod
    async def write(self, result: ProvisioningResult) -> None:
        """Persist the result, replacing whatever the slot held."""

    @abstractmethod
    async def read(self) -> ProvisioningResult | None:
        """Return the stored result, or None if the slot was never written."""


class ProvisioningRunRepository(ABC):
    """Port for provisioning run history."""

    @abstractmethod
    async def save(self, run: ProvisioningRun) -> ProvisioningRun:
        """Persist a new run."""

    @abstractmethod
    async def update(self, run: ProvisioningRun) -> ProvisioningRun:
        """Update an existing run."""

    @abstractmethod
    async def get_by_id(self, run_id: str) -> ProvisioningRun | None:
        """Retrieve a run by ID."""

    @abstractmethod
    async def list_recent(self, limit: int = 20) -> list[ProvisioningRun]:
        """List runs, newest first."""
