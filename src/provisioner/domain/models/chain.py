"""On-chain value objects: accounts, tokens, receipts and contract artifacts."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from provisioner.domain.errors import ArtifactError, InvalidStateTransitionError
from provisioner.domain.models.base import ValueObject


class BundlerConfig(ValueObject):
    """Where and how smart-account operations are relayed."""

    bundler_url: str = Field(..., min_length=1)
    chain_id: int = Field(..., gt=0)
    entry_point_address: str = Field(..., min_length=1)


class SmartAccount(ValueObject):
    """Counterfactual smart-contract account derived from a signing key.

    The address is known before the account contract exists on-chain; it is
    deployed by the bundler on first use.
    """

    address: str = Field(..., min_length=1)
    signing_key: str = Field(..., min_length=1, repr=False, exclude=True)
    bundler_endpoint: str
    chain_id: int


class TokenParams(ValueObject):
    """Constructor parameters of the governance token."""

    name: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=1)


class DeployedToken(ValueObject):
    """A deployed governance token and its administrative owner."""

    contract_address: str = Field(..., min_length=1)
    owner_address: str = Field(..., min_length=1)
    ownership_transferred: bool = False

    def transfer_to(self, new_owner: str) -> DeployedToken:
        """Return the token as owned by ``new_owner``. Ownership moves once."""
        if self.ownership_transferred:
            raise InvalidStateTransitionError(
                f"Ownership of {self.contract_address} was already transferred "
                f"to {self.owner_address}"
            )
        return self.model_copy(
            update={"owner_address": new_owner, "ownership_transferred": True}
        )


class TransactionReceipt(ValueObject):
    """Inclusion receipt of a mined transaction. ``status`` is 1 on success."""

    tx_hash: str
    status: int
    block_number: int = 0
    contract_address: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class TokenArtifact(ValueObject):
    """Compiled token contract: ABI plus creation bytecode."""

    contract_name: str
    abi: list[dict[str, Any]]
    bytecode: str = ""

    def has_function(self, name: str) -> bool:
        return any(
            entry.get("type") == "function" and entry.get("name") == name
            for entry in self.abi
        )

    @property
    def constructor_inputs(self) -> list[str]:
        for entry in self.abi:
            if entry.get("type") == "constructor":
                return [arg.get("name", "") for arg in entry.get("inputs", [])]
        return []

    def validate_for_deployment(self) -> None:
        """Check the artifact exposes what the token deployer relies on."""
        if self.constructor_inputs != ["name", "symbol"]:
            raise ArtifactError(
                f"{self.contract_name} constructor must take (name, symbol), "
                f"got {self.constructor_inputs}"
            )
        if not self.has_function("transferOwnership"):
            raise ArtifactError(f"{self.contract_name} has no transferOwnership function")
