"""Provisioning error taxonomy.

Every stage failure is fatal to the run. Errors carry the ``stage`` they
belong to so callers can tell how far the pipeline got.
"""

from __future__ import annotations


class ProvisioningError(Exception):
    """Base class for pipeline failures."""

    stage: str = "provisioning"


class ProvisionerUnavailable(ProvisioningError):
    """The bundler service could not be reached."""

    stage = "account"


class DeploymentReverted(ProvisioningError):
    """The token contract-creation transaction failed."""

    stage = "token_deployment"


class TransferReverted(ProvisioningError):
    """The ownership-transfer transaction failed.

    The token is deployed but still owned by the deploying key and needs
    manual recovery.
    """

    stage = "ownership_transfer"

    def __init__(self, message: str, contract_address: str = "") -> None:
        super().__init__(message)
        self.contract_address = contract_address


class PipelineIncomplete(ProvisioningError):
    """The DAO-creation stream did not end with a usable DONE step."""

    stage = "dao_creation"


class UnknownDaoCreationStepError(PipelineIncomplete):
    """The DAO-creation stream produced a step type this pipeline cannot handle."""


class ConfirmationTimeout(ProvisioningError):
    """A blockchain confirmation did not arrive within the configured bound."""

    stage = "confirmation"

    def __init__(self, message: str, timeout_seconds: float = 0.0) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds


class ProvisioningLockError(ProvisioningError):
    """Another run currently holds the result store slot."""

    stage = "lock"


class TransactionRejectedError(Exception):
    """Raised by chain adapters when a transaction submission is refused."""


class InvalidStateTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""


class ArtifactError(Exception):
    """Raised when the token contract artifact is missing or malformed."""


class ResultNotFoundError(Exception):
    """Raised when the result store slot has never been written."""


class ProvisioningRunNotFoundError(Exception):
    """Raised when no provisioning run has the requested ID."""
