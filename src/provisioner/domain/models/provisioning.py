"""Provisioning run aggregate root with its linear state machine."""

from __future__ import annotations

import asyncio
from datetime import datetime
from enum import Enum

from pydantic import Field

from provisioner.domain.errors import InvalidStateTransitionError
from provisioner.domain.events.provisioning_events import (
    AccountProvisioned,
    DaoCreated,
    OwnershipTransferred,
    ProvisioningCompleted,
    ProvisioningFailed,
    ProvisioningStarted,
    TokenDeployed,
)
from provisioner.domain.models.base import AggregateRoot, utc_now, ValueObject


class ProvisioningStage(str, Enum):
    """Provisioning lifecycle states."""

    START = "start"
    ACCOUNT_PROVISIONED = "account_provisioned"
    TOKEN_DEPLOYED = "token_deployed"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"
    DAO_CREATED = "dao_created"
    PERSISTED = "persisted"
    DONE = "done"
    FAILED = "failed"


# Strictly linear; every non-terminal stage may fail.
VALID_TRANSITIONS: dict[ProvisioningStage, set[ProvisioningStage]] = {
    ProvisioningStage.START: {ProvisioningStage.ACCOUNT_PROVISIONED, ProvisioningStage.FAILED},
    ProvisioningStage.ACCOUNT_PROVISIONED: {
        ProvisioningStage.TOKEN_DEPLOYED, ProvisioningStage.FAILED,
    },
    ProvisioningStage.TOKEN_DEPLOYED: {
        ProvisioningStage.OWNERSHIP_TRANSFERRED, ProvisioningStage.FAILED,
    },
    ProvisioningStage.OWNERSHIP_TRANSFERRED: {
        ProvisioningStage.DAO_CREATED, ProvisioningStage.FAILED,
    },
    ProvisioningStage.DAO_CREATED: {ProvisioningStage.PERSISTED, ProvisioningStage.FAILED},
    ProvisioningStage.PERSISTED: {ProvisioningStage.DONE, ProvisioningStage.FAILED},
    ProvisioningStage.DONE: set(),
    ProvisioningStage.FAILED: set(),
}


class ProvisioningRequest(ValueObject):
    """Inputs of one provisioning invocation. Never persisted."""

    admin_signing_key: str = Field(..., min_length=1, repr=False, exclude=True)
    rpc_endpoint: str = Field(..., min_length=1)
    dao_name: str | None = None


class ProvisioningResult(ValueObject):
    """Addresses of a fully provisioned DAO. All fields are always set."""

    dao_address: str = Field(..., min_length=1, alias="daoAddress")
    token_voting_plugin_address: str = Field(
        ..., min_length=1, alias="tokenVotingPluginAddress"
    )
    erc20_token_address: str = Field(..., min_length=1, alias="erc20TokenAddress")

    model_config = {"frozen": True, "populate_by_name": True}

    def to_document(self) -> dict[str, str]:
        """Serialise with the field names used by the result store document."""
        return self.model_dump(by_alias=True)


class ProvisioningRun(AggregateRoot):
    """Diagnostic record of one pass through the provisioning pipeline.

    Holds addresses only; the result itself is built by the orchestrator at
    the PERSISTED transition.
    """

    rpc_endpoint: str
    stage: ProvisioningStage = ProvisioningStage.START
    smart_account_address: str | None = None
    token_address: str | None = None
    dao_address: str | None = None
    voting_plugin_address: str | None = None
    failed_stage: ProvisioningStage | None = None
    error_type: str = ""
    error_message: str = ""
    completed_at: datetime | None = None

    def _transition_to(self, new_stage: ProvisioningStage) -> None:
        """Validate and execute state transition."""
        valid = VALID_TRANSITIONS.get(self.stage, set())
        if new_stage not in valid:
            raise InvalidStateTransitionError(
                f"Cannot transition from {self.stage.value} to {new_stage.value}. "
                f"Valid transitions: {sorted(s.value for s in valid)}"
            )
        self.stage = new_stage
        self.touch()

    def start(self) -> None:
        self.add_event(ProvisioningStarted(
            run_id=self.id,
            rpc_endpoint=self.rpc_endpoint,
            correlation_id=self.id,
        ))

    def account_provisioned(self, smart_account_address: str) -> None:
        self._transition_to(ProvisioningStage.ACCOUNT_PROVISIONED)
        self.smart_account_address = smart_account_address
        self.add_event(AccountProvisioned(
            run_id=self.id,
            smart_account_address=smart_account_address,
            correlation_id=self.id,
        ))

    def token_deployed(self, token_address: str) -> None:
        self._transition_to(ProvisioningStage.TOKEN_DEPLOYED)
        self.token_address = token_address
        self.add_event(TokenDeployed(
            run_id=self.id,
            token_address=token_address,
            correlation_id=self.id,
        ))

    def ownership_transferred(self, owner_address: str) -> None:
        self._transition_to(ProvisioningStage.OWNERSHIP_TRANSFERRED)
        self.add_event(OwnershipTransferred(
            run_id=self.id,
            token_address=self.token_address or "",
            owner_address=owner_address,
            correlation_id=self.id,
        ))

    def dao_created(self, dao_address: str, voting_plugin_address: str) -> None:
        self._transition_to(ProvisioningStage.DAO_CREATED)
        self.dao_address = dao_address
        self.voting_plugin_address = voting_plugin_address
        self.add_event(DaoCreated(
            run_id=self.id,
            dao_address=dao_address,
            voting_plugin_address=voting_plugin_address,
            correlation_id=self.id,
        ))

    def persisted(self) -> None:
        self._transition_to(ProvisioningStage.PERSISTED)

    def complete(self) -> None:
        self._transition_to(ProvisioningStage.DONE)
        self.completed_at = utc_now()
        self.add_event(ProvisioningCompleted(
            run_id=self.id,
            dao_address=self.dao_address or "",
            correlation_id=self.id,
        ))

    def fail(self, error: BaseException) -> None:
        """Record the failure of the stage following the current one."""
        self.failed_stage = self.stage
        self.error_type = type(error).__name__
        if isinstance(error, asyncio.CancelledError):
            self.error_message = "cancelled"
        else:
            self.error_message = str(error) or self.error_type
        self._transition_to(ProvisioningStage.FAILED)
        self.completed_at = utc_now()
        self.add_event(ProvisioningFailed(
            run_id=self.id,
            failed_after=self.failed_stage.value,
            error_type=self.error_type,
            error_message=self.error_message,
            correlation_id=self.id,
        ))

    @property
    def is_terminal(self) -> bool:
        return self.stage in {ProvisioningStage.DONE, ProvisioningStage.FAILED}

    @property
    def succeeded(self) -> bool:
        return self.stage == ProvisioningStage.DONE
