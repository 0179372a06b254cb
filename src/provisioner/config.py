"""Application configuration using pydantic-settings."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from provisioner.domain.models.chain import BundlerConfig, TokenParams
from provisioner.domain.models.dao import DaoLink, DaoMetadata, VotingMode, VotingSettings


# Entry point contract shared by every ERC-4337 bundler on the supported chains.
DEFAULT_ENTRY_POINT_ADDRESS = "0x5FF137D4b0FDCD49DcA30c7CF57E578a026d2789"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class StoreBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"
    POSTGRES = "postgres"


class DatabaseSettings(BaseSettings):
    """Database configuration."""

    host: str = Field(default="localhost", alias="DB_HOST")
    port: int = Field(default=5432, alias="DB_PORT")
    name: str = Field(default="provisioner", alias="DB_NAME")
    user: str = Field(default="provisioner", alias="DB_USER")
    password: str = Field(default="", alias="DB_PASSWORD")
    pool_size: int = Field(default=5, alias="DB_POOL_SIZE")
    max_overflow: int = Field(default=5, alias="DB_MAX_OVERFLOW")
    pool_timeout: int = Field(default=30, alias="DB_POOL_TIMEOUT")

    @property
    def async_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.name}"
        )

    model_config = {"env_prefix": "DB_", "extra": "ignore", "populate_by_name": True}


class RedisSettings(BaseSettings):
    """Redis configuration."""

    host: str = Field(default="localhost", alias="REDIS_HOST")
    port: int = Field(default=6379, alias="REDIS_PORT")
    password: str = Field(default="", alias="REDIS_PASSWORD")
    db: int = Field(default=0, alias="REDIS_DB")

    @property
    def url(self) -> str:
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"

    model_config = {"env_prefix": "REDIS_", "extra": "ignore", "populate_by_name": True}


class ChainSettings(BaseSettings):
    """Blockchain node and bundler configuration."""

    rpc_url: str = Field(default="https://rpc-mumbai.maticvigil.com", alias="CHAIN_RPC_URL")
    chain_id: int = Field(default=80001, alias="CHAIN_ID")
    admin_private_key: str = Field(default="", alias="CHAIN_ADMIN_PRIVATE_KEY", repr=False)
    bundler_url: str = Field(
        default="https://bundler.biconomy.io/api/v2/80001/abc", alias="CHAIN_BUNDLER_URL"
    )
    entry_point_address: str = Field(
        default=DEFAULT_ENTRY_POINT_ADDRESS, alias="CHAIN_ENTRY_POINT_ADDRESS"
    )
    confirmation_timeout_seconds: float = Field(
        default=120.0, gt=0, alias="CHAIN_CONFIRMATION_TIMEOUT_SECONDS"
    )
    deploy_gas_limit: int = Field(default=1_000_000, gt=0, alias="CHAIN_DEPLOY_GAS_LIMIT")

    @property
    def bundler_config(self) -> BundlerConfig:
        return BundlerConfig(
            bundler_url=self.bundler_url,
            chain_id=self.chain_id,
            entry_point_address=self.entry_point_address,
        )

    model_config = {"env_prefix": "CHAIN_", "extra": "ignore", "populate_by_name": True}


class TokenSettings(BaseSettings):
    """Governance token constructor parameters."""

    name: str = Field(default="DeFi France", alias="TOKEN_NAME")
    symbol: str = Field(default="DFF", alias="TOKEN_SYMBOL")
    artifact_path: str | None = Field(default=None, alias="TOKEN_ARTIFACT_PATH")

    @property
    def params(self) -> TokenParams:
        return TokenParams(name=self.name, symbol=self.symbol)

    model_config = {"env_prefix": "TOKEN_", "extra": "ignore", "populate_by_name": True}


class DaoSettings(BaseSettings):
    """DAO metadata and token-voting plugin parameters."""

    name: str = Field(default="DeFi France", alias="DAO_NAME")
    description: str = Field(default="DAO created with DAO Provisioner", alias="DAO_DESCRIPTION")
    avatar: str = Field(default="", alias="DAO_AVATAR")
    repository_url: str = Field(default="", alias="DAO_REPOSITORY_URL")
    ens_subdomain_prefix: str = Field(default="defi-france", alias="DAO_ENS_SUBDOMAIN_PREFIX")

    min_duration_seconds: int = Field(default=60, ge=0, alias="DAO_MIN_DURATION_SECONDS")
    min_participation: float = Field(default=0.25, ge=0, le=1, alias="DAO_MIN_PARTICIPATION")
    support_threshold: float = Field(default=0.5, ge=0, le=1, alias="DAO_SUPPORT_THRESHOLD")
    min_proposer_voting_power: int = Field(default=1, ge=0, alias="DAO_MIN_PROPOSER_VOTING_POWER")
    voting_mode: VotingMode = Field(default=VotingMode.EARLY_EXECUTION, alias="DAO_VOTING_MODE")

    def voting_settings(self) -> VotingSettings:
        return VotingSettings(
            min_duration_seconds=self.min_duration_seconds,
            min_participation=self.min_participation,
            support_threshold=self.support_threshold,
            min_proposer_voting_power=self.min_proposer_voting_power,
            voting_mode=self.voting_mode,
        )

    def metadata(self, name: str | None = None) -> DaoMetadata:
        links = []
        if self.repository_url:
            links.append(DaoLink(name="Github repository", url=self.repository_url))
        return DaoMetadata(
            name=name or self.name,
            description=self.description,
            avatar=self.avatar or None,
            links=links,
        )

    def ens_subdomain(self, now: datetime | None = None) -> str:
        """Build a unique ENS subdomain: ``<prefix>-<unix timestamp>``."""
        moment = now or datetime.now(timezone.utc)
        return f"{self.ens_subdomain_prefix}-{int(moment.timestamp())}"

    model_config = {"env_prefix": "DAO_", "extra": "ignore", "populate_by_name": True}


class StoreSettings(BaseSettings):
    """Result store and run history configuration."""

    result_backend: StoreBackend = Field(default=StoreBackend.MEMORY, alias="STORE_RESULT_BACKEND")
    run_history_backend: StoreBackend = Field(
        default=StoreBackend.MEMORY, alias="STORE_RUN_HISTORY_BACKEND"
    )
    slot: str = Field(default="default", min_length=1, alias="STORE_SLOT")
    lock_ttl_seconds: int = Field(default=900, gt=0, alias="STORE_LOCK_TTL_SECONDS")

    model_config = {"env_prefix": "STORE_", "extra": "ignore", "populate_by_name": True}


class ObservabilitySettings(BaseSettings):
    """Observability configuration."""

    otlp_endpoint: str = Field(default="http://localhost:4317", alias="OTLP_ENDPOINT")
    service_name: str = Field(default="dao-provisioner", alias="SERVICE_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    metrics_enabled: bool = Field(default=True, alias="METRICS_ENABLED")
    tracing_enabled: bool = Field(default=False, alias="TRACING_ENABLED")

    model_config = {"env_prefix": "OBS_", "extra": "ignore", "populate_by_name": True}


class Settings(BaseSettings):
    """Main application settings."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_prefix: str = Field(default="/api/v1", alias="API_PREFIX")
    host: str = Field(default="0.0.0.0", alias="HOST")  # noqa: S104
    port: int = Field(default=8000, alias="PORT")
    workers: int = Field(default=1, alias="WORKERS")

    chain: ChainSettings = Field(default_factory=ChainSettings)
    token: TokenSettings = Field(default_factory=TokenSettings)
    dao: DaoSettings = Field(default_factory=DaoSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = {"env_prefix": "", "extra": "ignore", "populate_by_name": True}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
