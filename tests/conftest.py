"""Shared test fixtures."""

from __future__ import annotations

import pytest

from provisioner.config import ChainSettings, Environment, Settings
from provisioner.domain.models.chain import BundlerConfig, TokenArtifact, TokenParams
from provisioner.domain.models.dao import DaoMetadata, VotingMode, VotingSettings
from provisioner.domain.models.provisioning import ProvisioningRequest
from provisioner.domain.services.account_provisioner import AccountProvisioner
from provisioner.domain.services.dao_creator import DaoCreator
from provisioner.domain.services.provisioning_service import (
    PipelineConfig,
    ProvisioningService,
)
from provisioner.domain.services.token_deployer import TokenDeployer
from provisioner.infrastructure.chain.artifact import load_token_artifact
from provisioner.infrastructure.chain.simulated import (
    SimulatedBundlerClient,
    SimulatedChainClient,
    SimulatedDaoClient,
)
from provisioner.infrastructure.messaging.event_publisher import InMemoryEventPublisher
from provisioner.infrastructure.persistence.repositories.in_memory import (
    InMemoryProvisioningRunRepository,
    InMemoryResultStore,
)


ADMIN_KEY = "0xKEY"
RPC_URL = "https://rpc.test"


@pytest.fixture(autouse=True)
def clear_stores() -> None:
    """Clear in-memory stores before each test."""
    InMemoryResultStore.clear()
    InMemoryProvisioningRunRepository.clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment=Environment.TESTING,
        debug=True,
        chain=ChainSettings(admin_private_key=ADMIN_KEY, confirmation_timeout_seconds=1.0),
    )


@pytest.fixture
def bundler_config() -> BundlerConfig:
    return BundlerConfig(
        bundler_url="https://bundler.test/api/v2/80001/abc",
        chain_id=80001,
        entry_point_address="0x5FF137D4b0FDCD49DcA30c7CF57E578a026d2789",
    )


@pytest.fixture
def token_params() -> TokenParams:
    return TokenParams(name="DeFi France", symbol="DFF")


@pytest.fixture
def voting_settings() -> VotingSettings:
    return VotingSettings(
        min_duration_seconds=60,
        min_participation=0.25,
        support_threshold=0.5,
        min_proposer_voting_power=1,
        voting_mode=VotingMode.EARLY_EXECUTION,
    )


@pytest.fixture
def dao_metadata() -> DaoMetadata:
    return DaoMetadata(name="DeFi France", description="Test DAO")


@pytest.fixture
def token_artifact() -> TokenArtifact:
    return load_token_artifact()


@pytest.fixture
def chain_client() -> SimulatedChainClient:
    return SimulatedChainClient(RPC_URL)


@pytest.fixture
def dao_client() -> SimulatedDaoClient:
    return SimulatedDaoClient()


@pytest.fixture
def event_publisher() -> InMemoryEventPublisher:
    return InMemoryEventPublisher()


@pytest.fixture
def result_store() -> InMemoryResultStore:
    return InMemoryResultStore()


@pytest.fixture
def run_repo() -> InMemoryProvisioningRunRepository:
    return InMemoryProvisioningRunRepository()


@pytest.fixture
def token_deployer(
    chain_client: SimulatedChainClient, token_artifact: TokenArtifact
) -> TokenDeployer:
    return TokenDeployer(chain_client, token_artifact, confirmation_timeout_seconds=1.0)


@pytest.fixture
def dao_creator(
    dao_client: SimulatedDaoClient,
    voting_settings: VotingSettings,
    token_params: TokenParams,
) -> DaoCreator:
    return DaoCreator(
        dao_client,
        voting_settings,
        token_params,
        lambda: "defi-france-1700000000",
        confirmation_timeout_seconds=1.0,
    )


@pytest.fixture
def pipeline_config(
    bundler_config: BundlerConfig, token_params: TokenParams, dao_metadata: DaoMetadata
) -> PipelineConfig:
    return PipelineConfig(
        bundler_config=bundler_config,
        token_params=token_params,
        dao_metadata=dao_metadata,
    )


@pytest.fixture
def provisioning_service(
    token_deployer: TokenDeployer,
    dao_creator: DaoCreator,
    result_store: InMemoryResultStore,
    run_repo: InMemoryProvisioningRunRepository,
    event_publisher: InMemoryEventPublisher,
    pipeline_config: PipelineConfig,
) -> ProvisioningService:
    return ProvisioningService(
        account_provisioner=AccountProvisioner(SimulatedBundlerClient),
        token_deployer_factory=lambda rpc_url: token_deployer,
        dao_creator=dao_creator,
        result_store=result_store,
        run_repo=run_repo,
        event_publisher=event_publisher,
        config=pipeline_config,
    )


@pytest.fixture
def provisioning_request() -> ProvisioningRequest:
    return ProvisioningRequest(admin_signing_key=ADMIN_KEY, rpc_endpoint=RPC_URL)
