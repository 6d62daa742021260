"""Shared test fixtures for hookrelay tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest
from qdrant_client import AsyncQdrantClient

from hookrelay.models import Failure, NotificationPayload, Success, WebhookTarget
from hookrelay.storage import TargetStore
from hookrelay.webhooks import DeliveryClient


class ScriptedDeliveryClient(DeliveryClient):
    """Delivery client that replays scripted outcomes per URL.

    Each URL maps to a list of outcomes consumed in order; the last one
    repeats once the list is exhausted. URLs without a script get
    ``default``. Every call is recorded, along with start/end events so
    tests can check how many deliveries overlapped.
    """

    def __init__(
        self,
        script: dict[str, list[Success | Failure]] | None = None,
        default: Success | Failure | None = None,
        delay: float = 0.0,
    ) -> None:
        super().__init__()
        self._script = {url: list(outcomes) for url, outcomes in (script or {}).items()}
        self._default = default or Success(status_code=200)
        self._delay = delay
        self.calls: list[str] = []
        self.events: list[tuple[str, str]] = []
        self.payloads: list[NotificationPayload] = []
        self.timeouts: list[float] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def deliver(self, target, payload, timeout=10.0):
        self.calls.append(target.id)
        self.payloads.append(payload)
        self.timeouts.append(timeout)
        self.events.append(("start", target.id))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self._delay)
            outcomes = self._script.get(target.url)
            if not outcomes:
                return self._default
            return outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        finally:
            self.in_flight -= 1
            self.events.append(("end", target.id))

    def calls_for(self, target_id: str) -> int:
        return self.calls.count(target_id)


@pytest.fixture
def make_targets() -> Callable[[int], list[WebhookTarget]]:
    """Factory for a list of targets with distinct URLs."""

    def _make(count: int, prefix: str = "https://hooks.example.com") -> list[WebhookTarget]:
        return [
            WebhookTarget(id=f"whk_{i:04d}", url=f"{prefix}/t{i}") for i in range(count)
        ]

    return _make


@pytest.fixture
def payload() -> NotificationPayload:
    """A notification payload for one trigger event."""
    return NotificationPayload(source_address="203.0.113.7")


@pytest.fixture
async def store():
    """Create a target store backed by qdrant-client's in-memory mode."""
    target_store = TargetStore(prefix="test")
    target_store._client = AsyncQdrantClient(location=":memory:")
    await target_store.initialize()

    yield target_store

    await target_store.close()
