"""Simulated bundler, blockchain node and DAO SDK.

Deterministic, in-process stand-ins for the remote services, for development
and testing. Addresses are derived by hashing, so the same inputs always map
to the same account or contract, while every DAO creation yields a new DAO.
"""

from __future__ import annotations

import asyncio
import hashlib
import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

import structlog

from provisioner.domain.errors import TransactionRejectedError
from provisioner.domain.models.chain import BundlerConfig, TransactionReceipt
from provisioner.domain.models.dao import (
    CreateDaoParams,
    CreatingStep,
    DaoMetadata,
    DoneStep,
    PluginInstallItem,
    TokenVotingPluginInstall,
)
from provisioner.domain.ports.services import BundlerClient, ChainClient, DaoClient


logger = structlog.get_logger(__name__)

TOKEN_VOTING_PLUGIN_ID = "token-voting.plugin.dao.eth"


def derive_address(*parts: str) -> str:
    """Derive a 20-byte hex address from ``parts``."""
    digest = hashlib.sha3_256(":".join(parts).encode("utf-8")).hexdigest()
    return "0x" + digest[-40:]


def derive_hash(*parts: str) -> str:
    return "0x" + hashlib.sha3_256(":".join(parts).encode("utf-8")).hexdigest()


def eoa_address(signing_key: str) -> str:
    """Externally-owned address of a signing key."""
    return derive_address("eoa", signing_key.lower())


class SimulatedBundlerClient(BundlerClient):
    """Resolves smart accounts the way a counterfactual factory would."""

    def __init__(
        self, config: BundlerConfig, reachable: bool = True, latency_seconds: float = 0.0
    ) -> None:
        self._config = config
        self._reachable = reachable
        self._latency = latency_seconds

    @property
    def config(self) -> BundlerConfig:
        return self._config

    async def get_smart_account_address(self, signing_key: str, index: int = 0) -> str:
        if not self._reachable:
            raise ConnectionError(f"Connection refused: {self._config.bundler_url}")
        await asyncio.sleep(self._latency)
        return derive_address(
            "smart-account",
            self._config.entry_point_address.lower(),
            str(self._config.chain_id),
            eoa_address(signing_key),
            str(index),
        )


@dataclass
class _Contract:
    owner: str
    functions: set[str]


@dataclass
class _PendingTransaction:
    sender: str
    contract_address: str
    function: str = ""
    args: list[Any] = field(default_factory=list)
    revert: bool = False
    abi_functions: set[str] = field(default_factory=set)


class SimulatedChainClient(ChainClient):
    """In-memory ledger with explicit confirmation.

    Transactions stay pending until ``wait_for_receipt`` is awaited for
    them; a deployed contract only exists, and can only be called, once its
    creation receipt was obtained. Only the current owner may call
    ``transferOwnership``.
    """

    def __init__(
        self,
        rpc_url: str = "http://localhost:8545",
        confirmation_delay_seconds: float = 0.0,
        revert_deployments: bool = False,
        revert_functions: set[str] | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self._confirmation_delay = confirmation_delay_seconds
        self._revert_deployments = revert_deployments
        self._revert_functions = set(revert_functions or ())
        self._contracts: dict[str, _Contract] = {}
        self._pending: dict[str, _PendingTransaction] = {}
        self._receipts: dict[str, TransactionReceipt] = {}
        self._nonces: dict[str, int] = {}
        self._block_number = 0

    def account_address(self, signing_key: str) -> str:
        return eoa_address(signing_key)

    def _next_nonce(self, sender: str) -> int:
        nonce = self._nonces.get(sender, 0)
        self._nonces[sender] = nonce + 1
        return nonce

    async def deploy_contract(
        self,
        signing_key: str,
        abi: list[dict[str, Any]],
        bytecode: str,
        constructor_args: list[Any],
        gas_limit: int,
    ) -> str:
        if gas_limit <= 0:
            raise TransactionRejectedError("gas limit must be positive")
        sender = self.account_address(signing_key)
        nonce = self._next_nonce(sender)
        tx_hash = derive_hash(self.rpc_url, "tx", sender, str(nonce))
        contract_address = derive_address(self.rpc_url, "contract", sender, str(nonce))

        self._pending[tx_hash] = _PendingTransaction(
            sender=sender,
            contract_address=contract_address,
            args=list(constructor_args),
            revert=self._revert_deployments,
            abi_functions={
                entry["name"] for entry in abi
                if entry.get("type") == "function" and "name" in entry
            },
        )
        logger.debug("simulated_deploy_submitted", tx_hash=tx_hash, sender=sender)
        return tx_hash

    async def transact(
        self,
        signing_key: str,
        contract_address: str,
        abi: list[dict[str, Any]],
        function: str,
        args: list[Any],
    ) -> str:
        contract = self._contracts.get(contract_address)
        if contract is None:
            raise TransactionRejectedError(
                f"No confirmed contract at {contract_address}"
            )
        if function not in contract.functions:
            raise TransactionRejectedError(
                f"Contract {contract_address} has no function {function}"
            )

        sender = self.account_address(signing_key)
        nonce = self._next_nonce(sender)
        tx_hash = derive_hash(self.rpc_url, "tx", sender, str(nonce))
        self._pending[tx_hash] = _PendingTransaction(
            sender=sender,
            contract_address=contract_address,
            function=function,
            args=list(args),
            revert=function in self._revert_functions,
        )
        logger.debug("simulated_call_submitted", tx_hash=tx_hash, function=function)
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> TransactionReceipt:
        if tx_hash in self._receipts:
            return self._receipts[tx_hash]
        pending = self._pending.pop(tx_hash, None)
        if pending is None:
            raise TransactionRejectedError(f"Unknown transaction {tx_hash}")

        await asyncio.sleep(self._confirmation_delay)
        self._block_number += 1
        receipt = self._apply(tx_hash, pending)
        self._receipts[tx_hash] = receipt
        return receipt

    def _apply(self, tx_hash: str, tx: _PendingTransaction) -> TransactionReceipt:
        if not tx.function:
            if tx.revert:
                return TransactionReceipt(
                    tx_hash=tx_hash, status=0, block_number=self._block_number
                )
            self._contracts[tx.contract_address] = _Contract(
                owner=tx.sender, functions=tx.abi_functions
            )
            return TransactionReceipt(
                tx_hash=tx_hash,
                status=1,
                block_number=self._block_number,
                contract_address=tx.contract_address,
            )

        contract = self._contracts[tx.contract_address]
        reverted = tx.revert or (
            tx.function == "transferOwnership" and tx.sender != contract.owner
        )
        if not reverted and tx.function == "transferOwnership":
            contract.owner = tx.args[0]
        return TransactionReceipt(
            tx_hash=tx_hash, status=0 if reverted else 1, block_number=self._block_number
        )

    def owner_of(self, contract_address: str) -> str | None:
        contract = self._contracts.get(contract_address)
        return contract.owner if contract else None

    def is_confirmed(self, contract_address: str) -> bool:
        return contract_address in self._contracts


class SimulatedDaoClient(DaoClient):
    """DAO SDK stand-in: every ``create_dao`` call creates a new DAO."""

    def __init__(
        self,
        creating_steps: int = 1,
        plugin_count: int = 1,
        step_delay_seconds: float = 0.0,
    ) -> None:
        self._creating_steps = creating_steps
        self._plugin_count = plugin_count
        self._step_delay = step_delay_seconds
        self.pinned: dict[str, DaoMetadata] = {}
        self.created: list[CreateDaoParams] = []

    async def pin_metadata(self, metadata: DaoMetadata) -> str:
        digest = hashlib.sha256(metadata.model_dump_json().encode("utf-8")).hexdigest()
        uri = f"ipfs://bafy{digest[:52]}"
        self.pinned[uri] = metadata
        return uri

    def get_plugin_install_item(
        self, install: TokenVotingPluginInstall
    ) -> PluginInstallItem:
        encoded = hashlib.sha256(install.model_dump_json().encode("utf-8")).hexdigest()
        return PluginInstallItem(plugin_id=TOKEN_VOTING_PLUGIN_ID, data="0x" + encoded)

    async def create_dao(
        self, params: CreateDaoParams
    ) -> AsyncIterator[CreatingStep | DoneStep]:
        self.created.append(params)
        dao_id = uuid.uuid4().hex
        for i in range(self._creating_steps):
            await asyncio.sleep(self._step_delay)
            yield CreatingStep(tx_hash=derive_hash("dao-tx", dao_id, str(i)))

        await asyncio.sleep(self._step_delay)
        yield DoneStep(
            address=derive_address("dao", dao_id, params.ens_subdomain),
            plugin_addresses=[
                derive_address("plugin", dao_id, str(n)) for n in range(self._plugin_count)
            ],
        )
