"""Unit tests for smart account provisioning."""

from __future__ import annotations

import pytest

from provisioner.domain.errors import ProvisionerUnavailable
from provisioner.domain.models.chain import BundlerConfig
from provisioner.domain.services.account_provisioner import AccountProvisioner
from provisioner.infrastructure.chain.simulated import SimulatedBundlerClient


@pytest.fixture
def provisioner() -> AccountProvisioner:
    return AccountProvisioner(SimulatedBundlerClient)


class TestAccountProvisioner:
    @pytest.mark.asyncio
    async def test_same_key_same_account(
        self, provisioner: AccountProvisioner, bundler_config: BundlerConfig
    ) -> None:
        first = await provisioner.provision_account("0xKEY", bundler_config)
        second = await provisioner.provision_account("0xKEY", bundler_config)
        assert first.address == second.address
        assert first.address.startswith("0x")
        assert len(first.address) == 42

    @pytest.mark.asyncio
    async def test_different_key_different_account(
        self, provisioner: AccountProvisioner, bundler_config: BundlerConfig
    ) -> None:
        first = await provisioner.provision_account("0xKEY", bundler_config)
        second = await provisioner.provision_account("0xOTHER", bundler_config)
        assert first.address != second.address

    @pytest.mark.asyncio
    async def test_account_depends_on_chain(
        self, provisioner: AccountProvisioner, bundler_config: BundlerConfig
    ) -> None:
        other_chain = bundler_config.model_copy(update={"chain_id": 137})
        first = await provisioner.provision_account("0xKEY", bundler_config)
        second = await provisioner.provision_account("0xKEY", other_chain)
        assert first.address != second.address

    @pytest.mark.asyncio
    async def test_account_details(
        self, provisioner: AccountProvisioner, bundler_config: BundlerConfig
    ) -> None:
        account = await provisioner.provision_account("0xKEY", bundler_config)
        assert account.signing_key == "0xKEY"
        assert account.bundler_endpoint == bundler_config.bundler_url
        assert account.chain_id == 80001

    @pytest.mark.asyncio
    async def test_unreachable_bundler(self, bundler_config: BundlerConfig) -> None:
        provisioner = AccountProvisioner(
            lambda config: SimulatedBundlerClient(config, reachable=False)
        )
        with pytest.raises(ProvisionerUnavailable) as exc_info:
            await provisioner.provision_account("0xKEY", bundler_config)
        assert exc_info.value.stage == "account"
        assert isinstance(exc_info.value.__cause__, ConnectionError)
