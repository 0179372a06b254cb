"""Unit tests for in-memory repository implementations."""

from __future__ import annotations

from datetime import timedelta

import pytest

from provisioner.domain.models.provisioning import (
    ProvisioningResult,
    ProvisioningRun,
    ProvisioningStage,
)
from provisioner.infrastructure.persistence.repositories.in_memory import (
    InMemoryProvisioningRunRepository,
    InMemoryResultStore,
)


def _result(dao_address: str = "0xdao") -> ProvisioningResult:
    return ProvisioningResult(
        dao_address=dao_address,
        token_voting_plugin_address="0xplugin",
        erc20_token_address="0xtoken",
    )


class TestInMemoryResultStore:
    @pytest.mark.asyncio
    async def test_empty_slot(self) -> None:
        assert await InMemoryResultStore().read() is None

    @pytest.mark.asyncio
    async def test_write_overwrites_slot(self) -> None:
        store = InMemoryResultStore()
        await store.write(_result("0xfirst"))
        await store.write(_result("0xsecond"))
        stored = await store.read()
        assert stored is not None
        assert stored.dao_address == "0xsecond"

    @pytest.mark.asyncio
    async def test_slots_are_independent(self) -> None:
        await InMemoryResultStore(slot="a").write(_result("0xa"))
        assert await InMemoryResultStore(slot="b").read() is None

    @pytest.mark.asyncio
    async def test_shared_between_instances(self) -> None:
        await InMemoryResultStore().write(_result())
        assert await InMemoryResultStore().read() == _result()

    @pytest.mark.asyncio
    async def test_clear(self) -> None:
        await InMemoryResultStore().write(_result())
        InMemoryResultStore.clear()
        assert await InMemoryResultStore().read() is None


class TestInMemoryProvisioningRunRepository:
    @pytest.mark.asyncio
    async def test_save_and_get(self) -> None:
        repo = InMemoryProvisioningRunRepository()
        run = ProvisioningRun(rpc_endpoint="https://rpc.test")
        await repo.save(run)
        stored = await repo.get_by_id(run.id)
        assert stored is not None
        assert stored.rpc_endpoint == "https://rpc.test"

    @pytest.mark.asyncio
    async def test_get_missing(self) -> None:
        assert await InMemoryProvisioningRunRepository().get_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_update_snapshots_progress(self) -> None:
        repo = InMemoryProvisioningRunRepository()
        run = ProvisioningRun(rpc_endpoint="https://rpc.test")
        await repo.save(run)
        run.account_provisioned("0xacc")
        stored = await repo.get_by_id(run.id)
        assert stored is not None
        assert stored.stage == ProvisioningStage.START

        await repo.update(run)
        stored = await repo.get_by_id(run.id)
        assert stored is not None
        assert stored.stage == ProvisioningStage.ACCOUNT_PROVISIONED

    @pytest.mark.asyncio
    async def test_list_recent_newest_first(self) -> None:
        repo = InMemoryProvisioningRunRepository()
        older = ProvisioningRun(rpc_endpoint="https://rpc.test")
        newer = ProvisioningRun(
            rpc_endpoint="https://rpc.test", created_at=older.created_at + timedelta(seconds=1)
        )
        await repo.save(older)
        await repo.save(newer)
        runs = await repo.list_recent()
        assert [r.id for r in runs] == [newer.id, older.id]
        assert len(await repo.list_recent(limit=1)) == 1
