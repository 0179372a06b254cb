"""Counterfactual smart-account resolution through a bundler."""

from __future__ import annotations

from collections.abc import Callable

import structlog

from provisioner.domain.errors import ProvisionerUnavailable
from provisioner.domain.models.chain import BundlerConfig, SmartAccount
from provisioner.domain.ports.services import BundlerClient


logger = structlog.get_logger(__name__)

BundlerClientFactory = Callable[[BundlerConfig], BundlerClient]


class AccountProvisioner:
    """Derives the smart account that will own the governance token.

    Resolution has no on-chain side effect, so provisioning the same key
    against the same bundler configuration always yields the same account.
    """

    def __init__(self, bundler_client_factory: BundlerClientFactory) -> None:
        self._bundler_client_factory = bundler_client_factory

    async def provision_account(
        self, signing_key: str, bundler_config: BundlerConfig
    ) -> SmartAccount:
        logger.debug(
            "smart_account_resolving",
            bundler_url=bundler_config.bundler_url,
            chain_id=bundler_config.chain_id,
        )
        client = self._bundler_client_factory(bundler_config)
        try:
            address = await client.get_smart_account_address(signing_key)
        except ProvisionerUnavailable:
            raise
        except (ConnectionError, OSError, TimeoutError) as e:
            raise ProvisionerUnavailable(
                f"Bundler at {bundler_config.bundler_url} is unreachable: {e}"
            ) from e

        account = SmartAccount(
            address=address,
            signing_key=signing_key,
            bundler_endpoint=bundler_config.bundler_url,
            chain_id=bundler_config.chain_id,
        )
        logger.info(
            "smart_account_resolved",
            address=account.address,
            chain_id=account.chain_id,
        )
        return account
