"""Unit tests for the token artifact loader."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from provisioner.domain.errors import ArtifactError
from provisioner.infrastructure.chain.artifact import load_token_artifact


class TestLoadTokenArtifact:
    def test_packaged_artifact(self) -> None:
        artifact = load_token_artifact()
        assert artifact.contract_name == "Erc20VotesControlled"
        assert artifact.constructor_inputs == ["name", "symbol"]
        for function in ("transferOwnership", "allot", "owner", "decimals"):
            assert artifact.has_function(function)

    def test_compiled_build(self, tmp_path: Path) -> None:
        packaged = load_token_artifact()
        path = tmp_path / "Token.json"
        path.write_text(json.dumps({
            "contractName": "Token",
            "abi": packaged.abi,
            "bytecode": "0x6080",
        }))
        artifact = load_token_artifact(str(path))
        assert artifact.contract_name == "Token"
        assert artifact.bytecode == "0x6080"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ArtifactError):
            load_token_artifact(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ArtifactError):
            load_token_artifact(str(path))

    def test_missing_abi(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.json"
        path.write_text(json.dumps({"contractName": "Token"}))
        with pytest.raises(ArtifactError, match="Malformed"):
            load_token_artifact(str(path))

    def test_abi_without_transfer_ownership(self, tmp_path: Path) -> None:
        path = tmp_path / "token.json"
        path.write_text(json.dumps({
            "abi": [{"type": "constructor", "inputs": [{"name": "name"}, {"name": "symbol"}]}],
        }))
        with pytest.raises(ArtifactError, match="transferOwnership"):
            load_token_artifact(str(path))
