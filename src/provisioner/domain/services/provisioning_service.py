"""Provisioning orchestrator: account, token, DAO, then the result record."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

import structlog

from provisioner.domain.errors import (
    ProvisioningLockError,
    ProvisioningRunNotFoundError,
    ResultNotFoundError,
)
from provisioner.domain.models.base import generate_id, ValueObject
from provisioner.domain.models.chain import BundlerConfig, TokenParams
from provisioner.domain.models.dao import DaoMetadata
from provisioner.domain.models.provisioning import (
    ProvisioningRequest,
    ProvisioningResult,
    ProvisioningRun,
)
from provisioner.domain.ports.repositories import ProvisioningRunRepository, ResultStore
from provisioner.domain.ports.services import DistributedLock, EventPublisher
from provisioner.domain.services.account_provisioner import AccountProvisioner
from provisioner.domain.services.dao_creator import DaoCreator
from provisioner.domain.services.token_deployer import TokenDeployer
from provisioner.infrastructure.observability.metrics import (
    ACTIVE_PROVISIONING_RUNS,
    PROVISIONING_FAILURES_TOTAL,
    PROVISIONING_RUNS_TOTAL,
    STAGE_DURATION,
)
from provisioner.infrastructure.observability.tracing import get_tracer, stage_span


logger = structlog.get_logger(__name__)

TokenDeployerFactory = Callable[[str], TokenDeployer]


class PipelineConfig(ValueObject):
    """Fixed inputs shared by every run of a provisioning service."""

    bundler_config: BundlerConfig
    token_params: TokenParams
    dao_metadata: DaoMetadata
    lock_key: str = "provisioning:default"
    lock_ttl_seconds: int = 900


class ProvisioningService:
    """Runs the provisioning pipeline for one request at a time.

    Stages run strictly in sequence and each one needs the previous one's
    output. Any failure moves the run to FAILED, discards the partial result,
    records the failure and re-raises the original exception. Nothing is
    retried and submitted transactions are never rolled back; the result
    store is written once, only after every stage succeeded.
    """

    def __init__(
        self,
        account_provisioner: AccountProvisioner,
        token_deployer_factory: TokenDeployerFactory,
        dao_creator: DaoCreator,
        result_store: ResultStore,
        run_repo: ProvisioningRunRepository,
        event_publisher: EventPublisher,
        config: PipelineConfig,
        lock_service: DistributedLock | None = None,
    ) -> None:
        self._accounts = account_provisioner
        self._token_deployer_factory = token_deployer_factory
        self._dao_creator = dao_creator
        self._result_store = result_store
        self._run_repo = run_repo
        self._event_publisher = event_publisher
        self._config = config
        self._lock_service = lock_service
        self._tracer = get_tracer(__name__)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _checkpoint(self, run: ProvisioningRun) -> None:
        """Persist run progress and publish its pending events."""
        await self._run_repo.update(run)
        for event in run.collect_events():
            await self._event_publisher.publish(event.event_type, event.model_dump(mode="json"))

    @contextmanager
    def _stage(self, run: ProvisioningRun, name: str) -> Iterator[None]:
        started = time.perf_counter()
        with stage_span(self._tracer, name, run.id):
            try:
                yield
            finally:
                STAGE_DURATION.labels(stage=name).observe(time.perf_counter() - started)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def run(
        self, request: ProvisioningRequest, run_id: str | None = None
    ) -> ProvisioningResult:
        """Provision a DAO. Returns the persisted result or raises.

        ``run_id`` lets the caller know which run history entry to look up
        when the pipeline raises.
        """
        run = ProvisioningRun(id=run_id or generate_id(), rpc_endpoint=request.rpc_endpoint)
        run.start()
        await self._run_repo.save(run)

        with structlog.contextvars.bound_contextvars(run_id=run.id):
            logger.info("provisioning_started", rpc_endpoint=request.rpc_endpoint)
            ACTIVE_PROVISIONING_RUNS.inc()
            locked = False
            try:
                if self._lock_service is not None:
                    locked = await self._lock_service.acquire(
                        self._config.lock_key, ttl_seconds=self._config.lock_ttl_seconds
                    )
                    if not locked:
                        raise ProvisioningLockError(
                            f"Result slot {self._config.lock_key} is held by another run"
                        )
                result = await self._execute(run, request)
            except (Exception, asyncio.CancelledError) as e:
                await self._record_failure(run, e)
                raise
            finally:
                if locked and self._lock_service is not None:
                    await self._lock_service.release(self._config.lock_key)
                ACTIVE_PROVISIONING_RUNS.dec()

            PROVISIONING_RUNS_TOTAL.labels(outcome="succeeded").inc()
            try:
                await self._checkpoint(run)
            except Exception:
                # The result is stored; only the run history lags behind.
                logger.exception(
                    "provisioning_completion_not_recorded",
                    dao_address=result.dao_address,
                )
            logger.info(
                "provisioning_completed",
                dao_address=result.dao_address,
                token_voting_plugin_address=result.token_voting_plugin_address,
                erc20_token_address=result.erc20_token_address,
            )
            return result

    async def _execute(
        self, run: ProvisioningRun, request: ProvisioningRequest
    ) -> ProvisioningResult:
        signing_key = request.admin_signing_key

        with self._stage(run, "account"):
            account = await self._accounts.provision_account(
                signing_key, self._config.bundler_config
            )
        run.account_provisioned(account.address)
        await self._checkpoint(run)

        deployer = self._token_deployer_factory(request.rpc_endpoint)
        with self._stage(run, "token_deployment"):
            token = await deployer.deploy(signing_key, self._config.token_params)
        run.token_deployed(token.contract_address)
        await self._checkpoint(run)

        with self._stage(run, "ownership_transfer"):
            token = await deployer.transfer_ownership(signing_key, token, account.address)
        run.ownership_transferred(token.owner_address)
        await self._checkpoint(run)

        metadata = self._config.dao_metadata
        if request.dao_name:
            metadata = metadata.model_copy(update={"name": request.dao_name})
        with self._stage(run, "dao_creation"):
            metadata_uri = await self._dao_creator.pin_metadata(metadata)
            outcome = await self._dao_creator.create_dao_with_plugin(
                token.contract_address, metadata_uri
            )
        run.dao_created(outcome.dao_address, outcome.voting_plugin_address)
        await self._checkpoint(run)

        result = ProvisioningResult(
            dao_address=outcome.dao_address,
            token_voting_plugin_address=outcome.voting_plugin_address,
            erc20_token_address=token.contract_address,
        )
        with self._stage(run, "persist"):
            await self._result_store.write(result)
        run.persisted()
        run.complete()
        return result

    async def _record_failure(self, run: ProvisioningRun, error: BaseException) -> None:
        if not run.is_terminal:
            run.fail(error)
        PROVISIONING_RUNS_TOTAL.labels(outcome="failed").inc()
        PROVISIONING_FAILURES_TOTAL.labels(
            failed_after=run.failed_stage.value if run.failed_stage else "unknown",
            error_type=run.error_type or type(error).__name__,
        ).inc()
        logger.error(
            "provisioning_failed",
            failed_after=run.failed_stage.value if run.failed_stage else None,
            error_type=run.error_type,
            error=run.error_message,
            token_address=run.token_address,
            exc_info=error,
        )
        try:
            await self._checkpoint(run)
        except Exception:
            # The pipeline error is what the caller must see.
            logger.exception("provisioning_failure_not_recorded")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def latest_result(self) -> ProvisioningResult:
        result = await self._result_store.read()
        if result is None:
            raise ResultNotFoundError("No DAO has been provisioned yet")
        return result

    async def get_run(self, run_id: str) -> ProvisioningRun:
        run = await self._run_repo.get_by_id(run_id)
        if run is None:
            raise ProvisioningRunNotFoundError(f"Provisioning run {run_id} not found")
        return run

    async def list_runs(self, limit: int = 20) -> list[ProvisioningRun]:
        return await self._run_repo.list_recent(limit=limit)
