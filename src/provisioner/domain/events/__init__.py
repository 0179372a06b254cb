"""Domain events package."""

from provisioner.domain.events.provisioning_events import (
    AccountProvisioned,
    DaoCreated,
    OwnershipTransferred,
    ProvisioningCompleted,
    ProvisioningFailed,
    ProvisioningStarted,
    TokenDeployed,
)


__all__ = [
    "AccountProvisioned",
    "DaoCreated",
    "OwnershipTransferred",
    "ProvisioningCompleted",
    "ProvisioningFailed",
    "ProvisioningStarted",
    "TokenDeployed",
]
