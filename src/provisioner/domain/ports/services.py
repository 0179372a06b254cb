"""Service port interfaces (hexagonal architecture)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from provisioner.domain.models.chain import BundlerConfig, TransactionReceipt
from provisioner.domain.models.dao import (
    CreateDaoParams,
    CreatingStep,
    DaoMetadata,
    DoneStep,
    PluginInstallItem,
    TokenVotingPluginInstall,
)


class BundlerClient(ABC):
    """Port for the account-abstraction bundler service.

    Implementations raise ``ProvisionerUnavailable`` (or a ``ConnectionError``)
    when the bundler endpoint cannot be reached.
    """

    @property
    @abstractmethod
    def config(self) -> BundlerConfig:
        """Bundler endpoint, chain and entry point this client is bound to."""

    @abstractmethod
    async def get_smart_account_address(self, signing_key: str, index: int = 0) -> str:
        """Resolve the counterfactual smart account owned by ``signing_key``."""


class ChainClient(ABC):
    """Port for transaction submission and confirmation on the blockchain node.

    Submissions refused by the node raise ``TransactionRejectedError``.
    """

    @abstractmethod
    def account_address(self, signing_key: str) -> str:
        """Externally-owned address controlled by ``signing_key``."""

    @abstractmethod
    async def deploy_contract(
        self,
        signing_key: str,
        abi: list[dict[str, Any]],
        bytecode: str,
        constructor_args: list[Any],
        gas_limit: int,
    ) -> str:
        """Submit a contract-creation transaction. Returns the tx hash."""

    @abstractmethod
    async def transact(
        self,
        signing_key: str,
        contract_address: str,
        abi: list[dict[str, Any]],
        function: str,
        args: list[Any],
    ) -> str:
        """Submit a contract call transaction. Returns the tx hash."""

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str) -> TransactionReceipt:
        """Wait until ``tx_hash`` is included in a block."""


class DaoClient(ABC):
    """Port for the DAO SDK: metadata pinning, plugin encoding, DAO creation."""

    @abstractmethod
    async def pin_metadata(self, metadata: DaoMetadata) -> str:
        """Pin DAO metadata to content-addressed storage. Returns its URI."""

    @abstractmethod
    def get_plugin_install_item(
        self, install: TokenVotingPluginInstall
    ) -> PluginInstallItem:
        """Encode token-voting plugin install parameters."""

    @abstractmethod
    def create_dao(
        self, params: CreateDaoParams
    ) -> AsyncIterator[CreatingStep | DoneStep]:
        """Submit the DAO creation and stream its progress steps.

        The stream is single-pass: calling this again creates another DAO.
        """


class EventPublisher(ABC):
    """Port for publishing domain events."""

    @abstractmethod
    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        """Publish an event."""

    @abstractmethod
    async def publish_batch(self, events: list[tuple[str, dict[str, Any]]]) -> None:
        """Publish a batch of events."""


class DistributedLock(ABC):
    """Port for distributed locking."""

    @abstractmethod
    async def acquire(self, resource_id: str, ttl_seconds: int = 30) -> bool:
        """Acquire a distributed lock."""

    @abstractmethod
    async def release(self, resource_id: str) -> bool:
        """Release a distributed lock."""
