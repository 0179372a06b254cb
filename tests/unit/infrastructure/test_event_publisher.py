"""Unit tests for event publisher."""

from __future__ import annotations

import pytest

from provisioner.infrastructure.messaging.event_publisher import (
    ALL_EVENTS,
    InMemoryEventPublisher,
)


class TestInMemoryEventPublisher:
    @pytest.mark.asyncio
    async def test_publish(self) -> None:
        publisher = InMemoryEventPublisher()
        await publisher.publish("provisioning.started", {"run_id": "r1"})
        assert publisher.published_events == [("provisioning.started", {"run_id": "r1"})]

    @pytest.mark.asyncio
    async def test_publish_batch(self) -> None:
        publisher = InMemoryEventPublisher()
        await publisher.publish_batch([
            ("provisioning.started", {"run_id": "r1"}),
            ("provisioning.failed", {"run_id": "r1"}),
        ])
        assert len(publisher.published_events) == 2
        assert publisher.events_of_type("provisioning.failed") == [{"run_id": "r1"}]

    @pytest.mark.asyncio
    async def test_subscribe_and_receive(self) -> None:
        publisher = InMemoryEventPublisher()
        received: list = []

        async def handler(payload: dict) -> None:
            received.append(payload)

        publisher.subscribe("provisioning.completed", handler)
        await publisher.publish("provisioning.completed", {"dao_address": "0xdao"})
        await publisher.publish("provisioning.started", {})
        assert received == [{"dao_address": "0xdao"}]

    @pytest.mark.asyncio
    async def test_clear(self) -> None:
        publisher = InMemoryEventPublisher()
        await publisher.publish("test", {})
        publisher.clear()
        assert publisher.published_events == []

    @pytest.mark.asyncio
    async def test_wildcard_subscriber_receives_every_event(self) -> None:
        publisher = InMemoryEventPublisher()
        received: list[str] = []

        async def exact(payload: dict) -> None:
            received.append("exact")

        async def every(payload: dict) -> None:
            received.append(payload["step"])

        publisher.subscribe(ALL_EVENTS, every)
        publisher.subscribe("provisioning.started", exact)
        await publisher.publish("provisioning.started", {"step": "a"})
        await publisher.publish("provisioning.completed", {"step": "b"})
        assert received == ["exact", "a", "b"]

    @pytest.mark.asyncio
    async def test_events_for_run(self) -> None:
        publisher = InMemoryEventPublisher()
        await publisher.publish("provisioning.started", {"run_id": "r1"})
        await publisher.publish("provisioning.started", {"run_id": "r2"})
        await publisher.publish("provisioning.failed", {"run_id": "r1"})
        assert publisher.events_for_run("r1") == ["provisioning.started", "provisioning.failed"]

    @pytest.mark.asyncio
    async def test_failing_handler_propagates(self) -> None:
        publisher = InMemoryEventPublisher()

        async def broken(payload: dict) -> None:
            raise RuntimeError("subscriber down")

        publisher.subscribe("provisioning.started", broken)
        with pytest.raises(RuntimeError, match="subscriber down"):
            await publisher.publish("provisioning.started", {})
        assert len(publisher.published_events) == 1
