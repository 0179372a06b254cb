"""DAO creation parameters and the DAO-creation progress stream."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter

from provisioner.domain.models.base import ValueObject


class VotingMode(str, Enum):
    """How votes are tallied by the token-voting plugin."""

    STANDARD = "standard"
    EARLY_EXECUTION = "early_execution"
    VOTE_REPLACEMENT = "vote_replacement"


class VotingSettings(ValueObject):
    """Governance thresholds of the token-voting plugin."""

    min_duration_seconds: int = Field(default=60, ge=0)
    min_participation: float = Field(default=0.25, ge=0, le=1)
    support_threshold: float = Field(default=0.5, ge=0, le=1)
    min_proposer_voting_power: int = Field(default=1, ge=0)
    voting_mode: VotingMode = VotingMode.EARLY_EXECUTION


class DaoLink(ValueObject):
    name: str
    url: str


class DaoMetadata(ValueObject):
    """Descriptive metadata pinned to content-addressed storage."""

    name: str = Field(..., min_length=1)
    description: str = ""
    avatar: str | None = None
    links: list[DaoLink] = Field(default_factory=list)


class WrappedToken(ValueObject):
    name: str
    symbol: str


class GovernanceTokenReference(ValueObject):
    """An existing ERC20 used as the voting-power source."""

    token_address: str = Field(..., min_length=1)
    wrapped_token: WrappedToken


class TokenVotingPluginInstall(ValueObject):
    """Install parameters of the token-voting plugin."""

    voting_settings: VotingSettings
    use_token: GovernanceTokenReference


class PluginInstallItem(ValueObject):
    """Encoded plugin installation, as expected by the DAO factory."""

    plugin_id: str
    data: str


class CreateDaoParams(ValueObject):
    metadata_uri: str = Field(..., min_length=1)
    ens_subdomain: str = Field(..., min_length=1)
    # The factory rejects a DAO without at least one governance plugin.
    plugins: list[PluginInstallItem] = Field(..., min_length=1)


class CreatingStep(ValueObject):
    """The DAO-creation transaction was submitted and awaits inclusion."""

    key: Literal["creating"] = "creating"
    tx_hash: str


class DoneStep(ValueObject):
    """Terminal step carrying the created DAO and its installed plugins."""

    key: Literal["done"] = "done"
    address: str
    plugin_addresses: list[str] = Field(default_factory=list)


DaoCreationStep = Annotated[Union[CreatingStep, DoneStep], Field(discriminator="key")]

_step_adapter: TypeAdapter[Any] = TypeAdapter(DaoCreationStep)


def parse_dao_creation_step(payload: dict[str, Any]) -> CreatingStep | DoneStep:
    """Parse a raw SDK step into the closed step union."""
    return _step_adapter.validate_python(payload)


class DaoCreationOutcome(ValueObject):
    """Addresses captured from the terminal DONE step."""

    dao_address: str = Field(..., min_length=1)
    voting_plugin_address: str = Field(..., min_length=1)
