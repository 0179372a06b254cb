"""Provisioning run repository implementation."""

from __future__ import annotations

from sqlalchemy import select, update

from provisioner.domain.models.provisioning import ProvisioningRun, ProvisioningStage
from provisioner.domain.ports.repositories import ProvisioningRunRepository
from provisioner.infrastructure.persistence.database import DatabaseManager
from provisioner.infrastructure.persistence.models import ProvisioningRunORM


class SqlProvisioningRunRepository(ProvisioningRunRepository):
    """PostgreSQL implementation of ProvisioningRunRepository.

    Each call commits in its own session so that progress checkpoints are
    durable even when a later stage fails.
    """

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def save(self, run: ProvisioningRun) -> ProvisioningRun:
        async with self._db.session() as session:
            session.add(self._to_orm(run))
            await session.flush()
        return run

    async def update(self, run: ProvisioningRun) -> ProvisioningRun:
        async with self._db.session() as session:
            await session.execute(
                update(ProvisioningRunORM)
                .where(ProvisioningRunORM.id == run.id)
                .values(**self._orm_values(run))
            )
        return run

    async def get_by_id(self, run_id: str) -> ProvisioningRun | None:
        async with self._db.session() as session:
            result = await session.execute(
                select(ProvisioningRunORM).where(ProvisioningRunORM.id == run_id)
            )
            orm = result.scalar_one_or_none()
            return self._to_domain(orm) if orm else None

    async def list_recent(self, limit: int = 20) -> list[ProvisioningRun]:
        async with self._db.session() as session:
            result = await session.execute(
                select(ProvisioningRunORM)
                .order_by(ProvisioningRunORM.created_at.desc())
                .limit(limit)
            )
            return [self._to_domain(orm) for orm in result.scalars().all()]

    @staticmethod
    def _orm_values(run: ProvisioningRun) -> dict:
        return {
            "rpc_endpoint": run.rpc_endpoint,
            "stage": run.stage.value,
            "smart_account_address": run.smart_account_address,
            "token_address": run.token_address,
            "dao_address": run.dao_address,
            "voting_plugin_address": run.voting_plugin_address,
            "failed_stage": run.failed_stage.value if run.failed_stage else None,
            "error_type": run.error_type,
            "error_message": run.error_message,
            "completed_at": run.completed_at,
        }

    def _to_orm(self, run: ProvisioningRun) -> ProvisioningRunORM:
        return ProvisioningRunORM(
            id=run.id,
            created_at=run.created_at,
            updated_at=run.updated_at,
            **self._orm_values(run),
        )

    @staticmethod
    def _to_domain(orm: ProvisioningRunORM) -> ProvisioningRun:
        return ProvisioningRun(
            id=orm.id,
            rpc_endpoint=orm.rpc_endpoint,
            stage=ProvisioningStage(orm.stage),
            smart_account_address=orm.smart_account_address,
            token_address=orm.token_address,
            dao_address=orm.dao_address,
            voting_plugin_address=orm.voting_plugin_address,
            failed_stage=ProvisioningStage(orm.failed_stage) if orm.failed_stage else None,
            error_type=orm.error_type or "",
            error_message=orm.error_message or "",
            completed_at=orm.completed_at,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )
