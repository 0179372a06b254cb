"""Relational result store."""

from __future__ import annotations

from sqlalchemy import select

from provisioner.domain.models.provisioning import ProvisioningResult
from provisioner.domain.ports.repositories import ResultStore
from provisioner.infrastructure.observability.metrics import RESULT_STORE_WRITES_TOTAL
from provisioner.infrastructure.persistence.database import DatabaseManager
from provisioner.infrastructure.persistence.models import ProvisioningResultORM


class SqlResultStore(ResultStore):
    """Keeps one row per slot; writing replaces the row."""

    def __init__(self, db: DatabaseManager, slot: str = "default") -> None:
        self._db = db
        self._slot = slot

    async def write(self, result: ProvisioningResult) -> None:
        async with self._db.session() as session:
            await session.merge(ProvisioningResultORM(
                slot=self._slot,
                dao_address=result.dao_address,
                token_voting_plugin_address=result.token_voting_plugin_address,
                erc20_token_address=result.erc20_token_address,
            ))
        RESULT_STORE_WRITES_TOTAL.labels(backend="postgres").inc()

    async def read(self) -> ProvisioningResult | None:
        async with self._db.session() as session:
            result = await session.execute(
                select(ProvisioningResultORM).where(ProvisioningResultORM.slot == self._slot)
            )
            orm = result.scalar_one_or_none()
            if orm is None:
                return None
            return ProvisioningResult(
                dao_address=orm.dao_address,
                token_voting_plugin_address=orm.token_voting_plugin_address,
                erc20_token_address=orm.erc20_token_address,
            )
