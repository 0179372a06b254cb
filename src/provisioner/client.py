"""Library entry point: provision a DAO without running the HTTP service."""

from __future__ import annotations

from typing import Any

from provisioner.config import get_settings, Settings
from provisioner.domain.models.provisioning import ProvisioningRequest
from provisioner.domain.ports.repositories import ProvisioningRunRepository, ResultStore
from provisioner.domain.ports.services import (
    ChainClient,
    DaoClient,
    DistributedLock,
    EventPublisher,
)
from provisioner.domain.services.account_provisioner import (
    AccountProvisioner,
    BundlerClientFactory,
)
from provisioner.domain.services.dao_creator import DaoCreator, StepObserver
from provisioner.domain.services.provisioning_service import (
    PipelineConfig,
    ProvisioningService,
    TokenDeployerFactory,
)
from provisioner.domain.services.token_deployer import TokenDeployer
from provisioner.infrastructure.chain.artifact import load_token_artifact
from provisioner.infrastructure.chain.simulated import (
    SimulatedBundlerClient,
    SimulatedChainClient,
)
from provisioner.infrastructure.messaging.event_publisher import InMemoryEventPublisher
from provisioner.infrastructure.persistence.repositories.in_memory import (
    InMemoryProvisioningRunRepository,
    InMemoryResultStore,
)


def build_provisioning_service(
    dao_client: DaoClient,
    settings: Settings | None = None,
    *,
    bundler_client_factory: BundlerClientFactory | None = None,
    token_deployer_factory: TokenDeployerFactory | None = None,
    chain_client: ChainClient | None = None,
    result_store: ResultStore | None = None,
    run_repo: ProvisioningRunRepository | None = None,
    event_publisher: EventPublisher | None = None,
    lock_service: DistributedLock | None = None,
    step_observer: StepObserver | None = None,
) -> ProvisioningService:
    """Wire a ``ProvisioningService`` from settings.

    Adapters that are not given fall back to the simulated bundler and
    chain and to in-memory stores. ``chain_client`` is used for every RPC
    endpoint; without it each endpoint gets its own simulated chain.
    """
    settings = settings or get_settings()
    timeout = settings.chain.confirmation_timeout_seconds

    if token_deployer_factory is None:
        artifact = load_token_artifact(settings.token.artifact_path)

        def token_deployer_factory(rpc_url: str) -> TokenDeployer:
            return TokenDeployer(
                chain_client or SimulatedChainClient(rpc_url),
                artifact,
                gas_limit=settings.chain.deploy_gas_limit,
                confirmation_timeout_seconds=timeout,
            )

    return ProvisioningService(
        account_provisioner=AccountProvisioner(
            bundler_client_factory or SimulatedBundlerClient
        ),
        token_deployer_factory=token_deployer_factory,
        dao_creator=DaoCreator(
            dao_client,
            settings.dao.voting_settings(),
            settings.token.params,
            settings.dao.ens_subdomain,
            confirmation_timeout_seconds=timeout,
            step_observer=step_observer,
        ),
        result_store=result_store or InMemoryResultStore(slot=settings.store.slot),
        run_repo=run_repo or InMemoryProvisioningRunRepository(),
        event_publisher=event_publisher or InMemoryEventPublisher(),
        config=PipelineConfig(
            bundler_config=settings.chain.bundler_config,
            token_params=settings.token.params,
            dao_metadata=settings.dao.metadata(),
            lock_key=f"provisioning:{settings.store.slot}",
            lock_ttl_seconds=settings.store.lock_ttl_seconds,
        ),
        lock_service=lock_service,
    )


async def create_dao(
    dao_client: DaoClient,
    admin_signing_key: str,
    rpc_url: str | None = None,
    dao_name: str | None = None,
    settings: Settings | None = None,
    **adapters: Any,
) -> str:
    """Provision a DAO and return its address.

    Deploys the governance token, hands it to the admin's smart account,
    creates the DAO with a token-voting plugin and writes the result record.
    Errors of any stage propagate unchanged. ``adapters`` are passed on to
    :func:`build_provisioning_service`.
    """
    settings = settings or get_settings()
    service = build_provisioning_service(dao_client, settings, **adapters)
    result = await service.run(ProvisioningRequest(
        admin_signing_key=admin_signing_key,
        rpc_endpoint=rpc_url or settings.chain.rpc_url,
        dao_name=dao_name,
    ))
    return result.dao_address
