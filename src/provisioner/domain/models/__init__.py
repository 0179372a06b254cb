"""Domain models package."""

from provisioner.domain.models.base import (
    AggregateRoot,
    DomainEvent,
    generate_id,
    utc_now,
    ValueObject,
)
from provisioner.domain.models.chain import (
    BundlerConfig,
    DeployedToken,
    SmartAccount,
    TokenArtifact,
    TokenParams,
    TransactionReceipt,
)
from provisioner.domain.models.dao import (
    CreateDaoParams,
    CreatingStep,
    DaoCreationOutcome,
    DaoCreationStep,
    DaoMetadata,
    DoneStep,
    GovernanceTokenReference,
    parse_dao_creation_step,
    PluginInstallItem,
    TokenVotingPluginInstall,
    VotingMode,
    VotingSettings,
    WrappedToken,
)


__all__ = [
    "AggregateRoot",
    "BundlerConfig",
    "CreateDaoParams",
    "CreatingStep",
    "DaoCreationOutcome",
    "DaoCreationStep",
    "DaoMetadata",
    "DeployedToken",
    "DomainEvent",
    "DoneStep",
    "GovernanceTokenReference",
    "PluginInstallItem",
    "SmartAccount",
    "TokenArtifact",
    "TokenParams",
    "TokenVotingPluginInstall",
    "TransactionReceipt",
    "ValueObject",
    "VotingMode",
    "VotingSettings",
    "WrappedToken",
    "generate_id",
    "parse_dao_creation_step",
    "utc_now",
]
