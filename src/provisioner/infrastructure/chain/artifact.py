"""Loading of the compiled governance token artifact."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path

from pydantic import ValidationError

from provisioner.domain.errors import ArtifactError
from provisioner.domain.models.chain import TokenArtifact


TOKEN_ARTIFACT_NAME = "Erc20VotesControlled.json"


def load_token_artifact(path: str | None = None) -> TokenArtifact:
    """Load a truffle-style artifact (``contractName``, ``abi``, ``bytecode``).

    Without ``path`` the ABI packaged with the service is used; it carries no
    bytecode, so deployments against a real node need the compiled build.
    """
    try:
        if path:
            raw = Path(path).read_text(encoding="utf-8")
        else:
            packaged = resources.files("provisioner") / "contracts" / TOKEN_ARTIFACT_NAME
            raw = packaged.read_text(encoding="utf-8")
        data = json.loads(raw)
    except (OSError, json.JSONDecodeError) as e:
        raise ArtifactError(f"Cannot read token artifact {path or TOKEN_ARTIFACT_NAME}: {e}") from e

    try:
        artifact = TokenArtifact(
            contract_name=data.get("contractName", Path(TOKEN_ARTIFACT_NAME).stem),
            abi=data["abi"],
            bytecode=data.get("bytecode") or "",
        )
    except (KeyError, TypeError, AttributeError, ValidationError) as e:
        raise ArtifactError(f"Malformed token artifact: {e}") from e

    artifact.validate_for_deployment()
    return artifact
