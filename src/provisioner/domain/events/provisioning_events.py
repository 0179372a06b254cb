"""Provisioning domain events."""

from __future__ import annotations

from provisioner.domain.models.base import DomainEvent


class ProvisioningStarted(DomainEvent):
    """Emitted when a run begins."""

    run_id: str
    rpc_endpoint: str
    event_type: str = "provisioning.started"


class AccountProvisioned(DomainEvent):
    """Emitted once the smart account address is resolved."""

    run_id: str
    smart_account_address: str
    event_type: str = "provisioning.account_provisioned"


class TokenDeployed(DomainEvent):
    """Emitted when the token contract-creation transaction is confirmed."""

    run_id: str
    token_address: str
    event_type: str = "provisioning.token_deployed"


class OwnershipTransferred(DomainEvent):
    """Emitted when the token is owned by the smart account."""

    run_id: str
    token_address: str
    owner_address: str
    event_type: str = "provisioning.ownership_transferred"


class DaoCreated(DomainEvent):
    """Emitted when the DAO-creation stream reaches its DONE step."""

    run_id: str
    dao_address: str
    voting_plugin_address: str
    event_type: str = "provisioning.dao_created"


class ProvisioningCompleted(DomainEvent):
    """Emitted after the result is persisted."""

    run_id: str
    dao_address: str
    event_type: str = "provisioning.completed"


class ProvisioningFailed(DomainEvent):
    """Emitted when any stage fails."""

    run_id: str
    failed_after: str
    error_type: str
    error_message: str
    event_type: str = "provisioning.failed"
