"""Unit tests for the provisioning run state machine."""

from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError

from provisioner.domain.errors import DeploymentReverted, InvalidStateTransitionError
from provisioner.domain.models.provisioning import (
    ProvisioningRequest,
    ProvisioningResult,
    ProvisioningRun,
    ProvisioningStage,
    VALID_TRANSITIONS,
)


def _run_to(stage: ProvisioningStage) -> ProvisioningRun:
    run = ProvisioningRun(rpc_endpoint="https://rpc.test")
    steps = [
        (ProvisioningStage.ACCOUNT_PROVISIONED, lambda: run.account_provisioned("0xacc")),
        (ProvisioningStage.TOKEN_DEPLOYED, lambda: run.token_deployed("0xtoken")),
        (ProvisioningStage.OWNERSHIP_TRANSFERRED, lambda: run.ownership_transferred("0xacc")),
        (ProvisioningStage.DAO_CREATED, lambda: run.dao_created("0xdao", "0xplugin")),
        (ProvisioningStage.PERSISTED, run.persisted),
        (ProvisioningStage.DONE, run.complete),
    ]
    for target, advance in steps:
        if run.stage == stage:
            break
        advance()
        assert run.stage == target
    return run


class TestProvisioningRun:
    def test_starts_at_start(self) -> None:
        run = ProvisioningRun(rpc_endpoint="https://rpc.test")
        assert run.stage == ProvisioningStage.START
        assert not run.is_terminal

    def test_full_lifecycle(self) -> None:
        run = _run_to(ProvisioningStage.DONE)
        assert run.succeeded
        assert run.is_terminal
        assert run.completed_at is not None
        assert run.dao_address == "0xdao"
        assert run.voting_plugin_address == "0xplugin"

    def test_cannot_skip_stages(self) -> None:
        run = ProvisioningRun(rpc_endpoint="https://rpc.test")
        with pytest.raises(InvalidStateTransitionError):
            run.token_deployed("0xtoken")

    def test_cannot_go_backwards(self) -> None:
        run = _run_to(ProvisioningStage.TOKEN_DEPLOYED)
        with pytest.raises(InvalidStateTransitionError):
            run.account_provisioned("0xacc")

    def test_every_non_terminal_stage_can_fail(self) -> None:
        for stage, targets in VALID_TRANSITIONS.items():
            if stage in {ProvisioningStage.DONE, ProvisioningStage.FAILED}:
                assert targets == set()
            else:
                assert ProvisioningStage.FAILED in targets

    def test_fail_records_reached_stage(self) -> None:
        run = _run_to(ProvisioningStage.ACCOUNT_PROVISIONED)
        run.fail(DeploymentReverted("reverted"))
        assert run.stage == ProvisioningStage.FAILED
        assert run.failed_stage == ProvisioningStage.ACCOUNT_PROVISIONED
        assert run.error_type == "DeploymentReverted"
        assert run.error_message == "reverted"
        assert not run.succeeded

    def test_fail_after_done_rejected(self) -> None:
        run = _run_to(ProvisioningStage.DONE)
        with pytest.raises(InvalidStateTransitionError):
            run.fail(RuntimeError("late"))

    def test_cancellation_reason(self) -> None:
        run = ProvisioningRun(rpc_endpoint="https://rpc.test")
        run.fail(asyncio.CancelledError())
        assert run.error_type == "CancelledError"
        assert run.error_message == "cancelled"

    def test_events_in_stage_order(self) -> None:
        run = ProvisioningRun(rpc_endpoint="https://rpc.test")
        run.start()
        run.account_provisioned("0xacc")
        run.token_deployed("0xtoken")
        run.ownership_transferred("0xacc")
        run.dao_created("0xdao", "0xplugin")
        run.persisted()
        run.complete()
        assert [e.event_type for e in run.collect_events()] == [
            "provisioning.started",
            "provisioning.account_provisioned",
            "provisioning.token_deployed",
            "provisioning.ownership_transferred",
            "provisioning.dao_created",
            "provisioning.completed",
        ]

    def test_failed_event_payload(self) -> None:
        run = _run_to(ProvisioningStage.OWNERSHIP_TRANSFERRED)
        run.collect_events()
        run.fail(RuntimeError("stream broke"))
        (event,) = run.collect_events()
        assert event.event_type == "provisioning.failed"
        assert event.failed_after == "ownership_transferred"


class TestProvisioningRequest:
    def test_signing_key_hidden(self) -> None:
        request = ProvisioningRequest(admin_signing_key="0xKEY", rpc_endpoint="https://rpc.test")
        assert "0xKEY" not in repr(request)
        assert "admin_signing_key" not in request.model_dump()

    def test_empty_endpoint_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ProvisioningRequest(admin_signing_key="0xKEY", rpc_endpoint="")


class TestProvisioningResult:
    def test_document_field_names(self) -> None:
        result = ProvisioningResult(
            dao_address="0xdao",
            token_voting_plugin_address="0xplugin",
            erc20_token_address="0xtoken",
        )
        assert result.to_document() == {
            "daoAddress": "0xdao",
            "tokenVotingPluginAddress": "0xplugin",
            "erc20TokenAddress": "0xtoken",
        }

    def test_accepts_document(self) -> None:
        result = ProvisioningResult.model_validate({
            "daoAddress": "0xdao",
            "tokenVotingPluginAddress": "0xplugin",
            "erc20TokenAddress": "0xtoken",
        })
        assert result.dao_address == "0xdao"

    def test_all_fields_required(self) -> None:
        with pytest.raises(ValidationError):
            ProvisioningResult(dao_address="0xdao", token_voting_plugin_address="0xplugin")
