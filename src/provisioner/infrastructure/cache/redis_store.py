"""Redis result store and distributed lock implementations."""

from __future__ import annotations

import json
import uuid

import redis.asyncio
import structlog
from pydantic import ValidationError

from provisioner.config import RedisSettings
from provisioner.domain.models.provisioning import ProvisioningResult
from provisioner.domain.ports.repositories import ResultStore
from provisioner.domain.ports.services import DistributedLock
from provisioner.infrastructure.observability.metrics import RESULT_STORE_WRITES_TOTAL


logger = structlog.get_logger(__name__)


class RedisResultStore(ResultStore):
    """Keeps the result document as JSON under ``provisioning:result:<slot>``."""

    def __init__(self, client: redis.asyncio.Redis, slot: str = "default") -> None:
        self._client = client
        self._key = f"provisioning:result:{slot}"

    async def write(self, result: ProvisioningResult) -> None:
        await self._client.set(self._key, json.dumps(result.to_document()))
        RESULT_STORE_WRITES_TOTAL.labels(backend="redis").inc()

    async def read(self) -> ProvisioningResult | None:
        value = await self._client.get(self._key)
        if value is None:
            return None
        try:
            return ProvisioningResult.model_validate(json.loads(value))
        except (json.JSONDecodeError, TypeError, ValidationError):
            logger.warning("result_document_unreadable", key=self._key)
            return None


class RedisDistributedLock(DistributedLock):
    """Redis implementation of distributed locking using SETNX."""

    _RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    def __init__(self, client: redis.asyncio.Redis) -> None:
        self._client = client
        self._lock_values: dict[str, str] = {}

    async def acquire(self, resource_id: str, ttl_seconds: int = 30) -> bool:
        lock_key = f"lock:{resource_id}"
        lock_value = str(uuid.uuid4())

        acquired = await self._client.set(lock_key, lock_value, nx=True, ex=ttl_seconds)
        if acquired:
            self._lock_values[resource_id] = lock_value
            logger.debug("lock_acquired", resource_id=resource_id, ttl=ttl_seconds)
            return True

        logger.debug("lock_not_acquired", resource_id=resource_id)
        return False

    async def release(self, resource_id: str) -> bool:
        lock_value = self._lock_values.get(resource_id)
        if lock_value is None:
            return False

        # Only the holder may delete the key.
        result = await self._client.eval(
            self._RELEASE_SCRIPT, 1, f"lock:{resource_id}", lock_value
        )
        if result:
            del self._lock_values[resource_id]
            logger.debug("lock_released", resource_id=resource_id)
            return True
        return False


def create_redis_client(settings: RedisSettings) -> redis.asyncio.Redis:
    """Factory function to create a Redis client."""
    return redis.asyncio.Redis.from_url(
        settings.url,
        decode_responses=False,
        socket_timeout=5.0,
        socket_connect_timeout=5.0,
        retry_on_timeout=True,
    )
