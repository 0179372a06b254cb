"""Service dependencies for FastAPI dependency injection."""

from __future__ import annotations

import redis.asyncio
import structlog

from provisioner.client import build_provisioning_service
from provisioner.config import get_settings, Settings, StoreBackend
from provisioner.domain.models.chain import BundlerConfig, TokenArtifact
from provisioner.domain.models.dao import CreatingStep, DoneStep
from provisioner.domain.ports.repositories import ProvisioningRunRepository, ResultStore
from provisioner.domain.ports.services import (
    BundlerClient,
    DaoClient,
    DistributedLock,
    EventPublisher,
)
from provisioner.domain.services.provisioning_service import ProvisioningService
from provisioner.domain.services.token_deployer import TokenDeployer
from provisioner.infrastructure.cache.redis_store import (
    create_redis_client,
    RedisDistributedLock,
    RedisResultStore,
)
from provisioner.infrastructure.chain.artifact import load_token_artifact
from provisioner.infrastructure.chain.simulated import (
    SimulatedBundlerClient,
    SimulatedChainClient,
    SimulatedDaoClient,
)
from provisioner.infrastructure.messaging.event_publisher import InMemoryEventPublisher
from provisioner.infrastructure.observability.metrics import DAO_CREATION_STEPS_TOTAL
from provisioner.infrastructure.persistence.database import DatabaseManager
from provisioner.infrastructure.persistence.repositories.in_memory import (
    InMemoryProvisioningRunRepository,
    InMemoryResultStore,
)
from provisioner.infrastructure.persistence.repositories.result_store import SqlResultStore
from provisioner.infrastructure.persistence.repositories.run_repo import (
    SqlProvisioningRunRepository,
)


logger = structlog.get_logger(__name__)


def count_dao_creation_step(step: CreatingStep | DoneStep) -> None:
    DAO_CREATION_STEPS_TOTAL.labels(key=step.key).inc()


class ServiceContainer:
    """Composition root for the provisioning pipeline.

    Backends are chosen from ``StoreSettings``; the Redis client and the
    database engine are only created when a backend needs them.
    """

    _instance: ServiceContainer | None = None

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._event_publisher = InMemoryEventPublisher()
        self._dao_client: DaoClient = SimulatedDaoClient()
        self._chain_clients: dict[str, SimulatedChainClient] = {}
        self._artifact: TokenArtifact | None = None

        # Lazy init
        self._db: DatabaseManager | None = None
        self._redis_client: redis.asyncio.Redis | None = None
        self._result_store: ResultStore | None = None
        self._run_repo: ProvisioningRunRepository | None = None
        self._lock_service: DistributedLock | None = None
        self._provisioning_service: ProvisioningService | None = None

    @classmethod
    def get_instance(cls, settings: Settings | None = None) -> ServiceContainer:
        if cls._instance is None:
            cls._instance = cls(settings)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def uses_backend(self, backend: StoreBackend) -> bool:
        store = self._settings.store
        return backend in {store.result_backend, store.run_history_backend}

    async def startup(self) -> None:
        if self.uses_backend(StoreBackend.POSTGRES):
            self._db = DatabaseManager(self._settings.database)
            await self._db.initialize()
        logger.info(
            "service_container_started",
            result_backend=self._settings.store.result_backend.value,
            run_history_backend=self._settings.store.run_history_backend.value,
            locking=self.uses_backend(StoreBackend.REDIS),
        )

    async def shutdown(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
        if self._redis_client is not None:
            await self._redis_client.aclose()
            self._redis_client = None

    # ------------------------------------------------------------------
    # Adapters
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def event_publisher(self) -> EventPublisher:
        return self._event_publisher

    @property
    def dao_client(self) -> DaoClient:
        return self._dao_client

    @property
    def token_artifact(self) -> TokenArtifact:
        if self._artifact is None:
            self._artifact = load_token_artifact(self._settings.token.artifact_path)
        return self._artifact

    @property
    def database(self) -> DatabaseManager:
        if self._db is None:
            raise RuntimeError("Database not initialized. Call startup() first.")
        return self._db

    @property
    def redis_client(self) -> redis.asyncio.Redis:
        if self._redis_client is None:
            self._redis_client = create_redis_client(self._settings.redis)
        return self._redis_client

    @property
    def result_store(self) -> ResultStore:
        if self._result_store is None:
            backend = self._settings.store.result_backend
            slot = self._settings.store.slot
            if backend == StoreBackend.REDIS:
                self._result_store = RedisResultStore(self.redis_client, slot=slot)
            elif backend == StoreBackend.POSTGRES:
                self._result_store = SqlResultStore(self.database, slot=slot)
            else:
                self._result_store = InMemoryResultStore(slot=slot)
        return self._result_store

    @property
    def run_repo(self) -> ProvisioningRunRepository:
        if self._run_repo is None:
            if self._settings.store.run_history_backend == StoreBackend.POSTGRES:
                self._run_repo = SqlProvisioningRunRepository(self.database)
            else:
                self._run_repo = InMemoryProvisioningRunRepository()
        return self._run_repo

    @property
    def lock_service(self) -> DistributedLock | None:
        """Run serialisation lock; only available with the Redis backend."""
        if self._lock_service is None and self.uses_backend(StoreBackend.REDIS):
            self._lock_service = RedisDistributedLock(self.redis_client)
        return self._lock_service

    def bundler_client(self, config: BundlerConfig) -> BundlerClient:
        return SimulatedBundlerClient(config)

    def chain_client(self, rpc_url: str) -> SimulatedChainClient:
        if rpc_url not in self._chain_clients:
            self._chain_clients[rpc_url] = SimulatedChainClient(rpc_url)
        return self._chain_clients[rpc_url]

    def token_deployer(self, rpc_url: str) -> TokenDeployer:
        chain = self._settings.chain
        return TokenDeployer(
            self.chain_client(rpc_url),
            self.token_artifact,
            gas_limit=chain.deploy_gas_limit,
            confirmation_timeout_seconds=chain.confirmation_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    @property
    def provisioning_service(self) -> ProvisioningService:
        if self._provisioning_service is None:
            self._provisioning_service = self._build_provisioning_service()
        return self._provisioning_service

    def _build_provisioning_service(self) -> ProvisioningService:
        return build_provisioning_service(
            self.dao_client,
            self._settings,
            bundler_client_factory=self.bundler_client,
            token_deployer_factory=self.token_deployer,
            result_store=self.result_store,
            run_repo=self.run_repo,
            event_publisher=self.event_publisher,
            lock_service=self.lock_service,
            step_observer=count_dao_creation_step,
        )


def get_service_container() -> ServiceContainer:
    return ServiceContainer.get_instance()
