"""Governance token deployment and ownership hand-over."""

from __future__ import annotations

import asyncio

import structlog

from provisioner.domain.errors import (
    ConfirmationTimeout,
    DeploymentReverted,
    TransactionRejectedError,
    TransferReverted,
)
from provisioner.domain.models.chain import (
    DeployedToken,
    TokenArtifact,
    TokenParams,
    TransactionReceipt,
)
from provisioner.domain.ports.services import ChainClient


logger = structlog.get_logger(__name__)


class TokenDeployer:
    """Deploys the token contract, then hands its ownership to the smart account.

    The two transactions are strictly sequential: ownership is only
    transferred once the contract-creation receipt is in. Neither step can be
    undone; a failed transfer leaves a deployed token owned by the deploying
    key, reported through ``TransferReverted.contract_address``.
    """

    def __init__(
        self,
        chain_client: ChainClient,
        artifact: TokenArtifact,
        gas_limit: int = 1_000_000,
        confirmation_timeout_seconds: float = 120.0,
    ) -> None:
        artifact.validate_for_deployment()
        self._chain = chain_client
        self._artifact = artifact
        self._gas_limit = gas_limit
        self._confirmation_timeout = confirmation_timeout_seconds

    async def deploy_token(
        self, signing_key: str, owner_candidate: str, token_params: TokenParams
    ) -> DeployedToken:
        """Deploy the token and make ``owner_candidate`` its owner."""
        token = await self.deploy(signing_key, token_params)
        return await self.transfer_ownership(signing_key, token, owner_candidate)

    async def deploy(self, signing_key: str, token_params: TokenParams) -> DeployedToken:
        """Submit the contract creation and wait for its inclusion."""
        logger.info(
            "token_deploying",
            contract=self._artifact.contract_name,
            name=token_params.name,
            symbol=token_params.symbol,
        )
        try:
            tx_hash = await self._chain.deploy_contract(
                signing_key,
                self._artifact.abi,
                self._artifact.bytecode,
                [token_params.name, token_params.symbol],
                self._gas_limit,
            )
        except TransactionRejectedError as e:
            raise DeploymentReverted(f"Token deployment was rejected: {e}") from e

        receipt = await self._await_receipt(tx_hash)
        if not receipt.succeeded or not receipt.contract_address:
            raise DeploymentReverted(f"Token deployment {tx_hash} reverted")

        token = DeployedToken(
            contract_address=receipt.contract_address,
            owner_address=self._chain.account_address(signing_key),
        )
        logger.info(
            "token_deployed",
            contract_address=token.contract_address,
            tx_hash=tx_hash,
            block_number=receipt.block_number,
        )
        return token

    async def transfer_ownership(
        self, signing_key: str, token: DeployedToken, new_owner: str
    ) -> DeployedToken:
        """Transfer administrative control of a confirmed token to ``new_owner``."""
        transferred = token.transfer_to(new_owner)
        try:
            tx_hash = await self._chain.transact(
                signing_key,
                token.contract_address,
                self._artifact.abi,
                "transferOwnership",
                [new_owner],
            )
        except TransactionRejectedError as e:
            raise TransferReverted(
                f"Ownership transfer of {token.contract_address} was rejected: {e}",
                contract_address=token.contract_address,
            ) from e

        receipt = await self._await_receipt(tx_hash)
        if not receipt.succeeded:
            raise TransferReverted(
                f"Ownership transfer {tx_hash} of {token.contract_address} reverted",
                contract_address=token.contract_address,
            )

        logger.info(
            "token_ownership_transferred",
            contract_address=token.contract_address,
            owner_address=new_owner,
            tx_hash=tx_hash,
        )
        return transferred

    async def _await_receipt(self, tx_hash: str) -> TransactionReceipt:
        try:
            return await asyncio.wait_for(
                self._chain.wait_for_receipt(tx_hash),
                timeout=self._confirmation_timeout,
            )
        except asyncio.TimeoutError as e:
            raise ConfirmationTimeout(
                f"Transaction {tx_hash} not confirmed within {self._confirmation_timeout}s",
                timeout_seconds=self._confirmation_timeout,
            ) from e
