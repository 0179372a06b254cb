"""Unit tests for DAO value objects and the creation step union."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from provisioner.domain.models.dao import (
    CreateDaoParams,
    CreatingStep,
    DaoCreationOutcome,
    DoneStep,
    parse_dao_creation_step,
    VotingMode,
    VotingSettings,
)


class TestDaoCreationStep:
    def test_parse_creating(self) -> None:
        step = parse_dao_creation_step({"key": "creating", "tx_hash": "0xabc"})
        assert isinstance(step, CreatingStep)
        assert step.tx_hash == "0xabc"

    def test_parse_done(self) -> None:
        step = parse_dao_creation_step({
            "key": "done",
            "address": "0xdao",
            "plugin_addresses": ["0xplugin", "0xother"],
        })
        assert isinstance(step, DoneStep)
        assert step.plugin_addresses[0] == "0xplugin"

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_dao_creation_step({"key": "pending", "tx_hash": "0xabc"})

    def test_default_keys(self) -> None:
        assert CreatingStep(tx_hash="0x1").key == "creating"
        assert DoneStep(address="0xdao").key == "done"


class TestCreateDaoParams:
    def test_requires_a_plugin(self) -> None:
        with pytest.raises(ValidationError):
            CreateDaoParams(metadata_uri="ipfs://x", ens_subdomain="dao-1", plugins=[])


class TestVotingSettings:
    def test_defaults(self) -> None:
        settings = VotingSettings()
        assert settings.min_duration_seconds == 60
        assert settings.min_participation == 0.25
        assert settings.support_threshold == 0.5
        assert settings.min_proposer_voting_power == 1
        assert settings.voting_mode == VotingMode.EARLY_EXECUTION

    def test_participation_bounded(self) -> None:
        with pytest.raises(ValidationError):
            VotingSettings(min_participation=1.5)


class TestDaoCreationOutcome:
    def test_addresses_required(self) -> None:
        with pytest.raises(ValidationError):
            DaoCreationOutcome(dao_address="", voting_plugin_address="0xplugin")
