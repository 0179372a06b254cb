"""Unit tests for the Redis result store and distributed lock."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from provisioner.domain.models.provisioning import ProvisioningResult
from provisioner.infrastructure.cache.redis_store import RedisDistributedLock, RedisResultStore


@pytest.fixture
def client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def result() -> ProvisioningResult:
    return ProvisioningResult(
        dao_address="0xdao",
        token_voting_plugin_address="0xplugin",
        erc20_token_address="0xtoken",
    )


class TestRedisResultStore:
    @pytest.mark.asyncio
    async def test_write_document(self, client: AsyncMock, result: ProvisioningResult) -> None:
        await RedisResultStore(client, slot="main").write(result)
        key, value = client.set.await_args.args
        assert key == "provisioning:result:main"
        assert json.loads(value) == {
            "daoAddress": "0xdao",
            "tokenVotingPluginAddress": "0xplugin",
            "erc20TokenAddress": "0xtoken",
        }

    @pytest.mark.asyncio
    async def test_read(self, client: AsyncMock, result: ProvisioningResult) -> None:
        client.get.return_value = json.dumps(result.to_document()).encode("utf-8")
        assert await RedisResultStore(client).read() == result
        client.get.assert_awaited_once_with("provisioning:result:default")

    @pytest.mark.asyncio
    async def test_read_empty_slot(self, client: AsyncMock) -> None:
        client.get.return_value = None
        assert await RedisResultStore(client).read() is None

    @pytest.mark.asyncio
    async def test_read_unreadable_document(self, client: AsyncMock) -> None:
        client.get.return_value = b'{"daoAddress": "0xdao"}'
        assert await RedisResultStore(client).read() is None


class TestRedisDistributedLock:
    @pytest.mark.asyncio
    async def test_acquire(self, client: AsyncMock) -> None:
        client.set.return_value = True
        lock = RedisDistributedLock(client)
        assert await lock.acquire("provisioning:default", ttl_seconds=60)
        args, kwargs = client.set.await_args
        assert args[0] == "lock:provisioning:default"
        assert kwargs == {"nx": True, "ex": 60}

    @pytest.mark.asyncio
    async def test_acquire_contended(self, client: AsyncMock) -> None:
        client.set.return_value = None
        assert not await RedisDistributedLock(client).acquire("provisioning:default")

    @pytest.mark.asyncio
    async def test_release_own_lock(self, client: AsyncMock) -> None:
        client.set.return_value = True
        client.eval.return_value = 1
        lock = RedisDistributedLock(client)
        await lock.acquire("provisioning:default")
        assert await lock.release("provisioning:default")
        assert client.eval.await_args.args[2] == "lock:provisioning:default"

    @pytest.mark.asyncio
    async def test_release_unheld_lock(self, client: AsyncMock) -> None:
        assert not await RedisDistributedLock(client).release("provisioning:default")
        client.eval.assert_not_awaited()
