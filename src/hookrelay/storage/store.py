"""Qdrant-backed webhook target registry.

Targets are stored as payload-only points in a single collection. The
vector is a one-dimensional placeholder: the registry is a keyed store and
never runs similarity search.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from qdrant_client import AsyncQdrantClient, models

from hookrelay.config import settings
from hookrelay.exceptions import StorageError
from hookrelay.models import WebhookTarget

from .retry import qdrant_retry

COLLECTION_SUFFIX = "webhooks"

_PLACEHOLDER_VECTOR = [1.0]

# Points fetched per scroll request when reading a full snapshot
DEFAULT_SCROLL_LIMIT = 256


class TargetStore:
    """Durable mapping from target ID to callback URL.

    Example:
        ```python
        async with TargetStore() as store:
            target = await store.insert("https://example.com/hook")
            snapshot = await store.list_all_targets()
        ```
    """

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        prefix: str | None = None,
        scroll_limit: int = DEFAULT_SCROLL_LIMIT,
    ) -> None:
        """Initialize the store.

        Args:
            url: Qdrant server URL. Defaults to settings.qdrant_url.
            api_key: Qdrant API key. Defaults to settings.qdrant_api_key.
            prefix: Collection name prefix. Defaults to settings.collection_prefix.
            scroll_limit: Page size used when reading every target.
        """
        self._url = url or settings.qdrant_url
        self._api_key = api_key or settings.qdrant_api_key
        self._prefix = prefix or settings.collection_prefix
        self._scroll_limit = scroll_limit
        self._client: AsyncQdrantClient | None = None

    @property
    def client(self) -> AsyncQdrantClient:
        """Get the Qdrant client, raising if not initialized."""
        if self._client is None:
            raise RuntimeError("Storage not initialized. Call initialize() first.")
        return self._client

    @property
    def collection_name(self) -> str:
        return f"{self._prefix}_{COLLECTION_SUFFIX}"

    async def initialize(self) -> None:
        """Connect to Qdrant and ensure the collection exists."""
        if self._client is None:
            self._client = AsyncQdrantClient(url=self._url, api_key=self._api_key)
        await self._ensure_collection()

    async def close(self) -> None:
        """Close the Qdrant client connection."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def __aenter__(self) -> TargetStore:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @staticmethod
    def _key_to_point_id(target_id: str) -> str:
        """Convert a target ID to a deterministic UUID-format point ID."""
        h = hashlib.sha256(target_id.encode()).hexdigest()[:32]
        return f"{h[:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:32]}"

    @staticmethod
    def _to_target(payload: dict[str, Any]) -> WebhookTarget:
        try:
            return WebhookTarget.model_validate(payload)
        except PydanticValidationError as e:
            raise StorageError(f"Corrupt webhook record {payload.get('id')!r}: {e}") from e

    @qdrant_retry
    async def _ensure_collection(self) -> None:
        collections = await self.client.get_collections()
        existing = [c.name for c in collections.collections]

        if self.collection_name not in existing:
            await self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=models.VectorParams(
                    size=len(_PLACEHOLDER_VECTOR),
                    distance=models.Distance.DOT,
                ),
            )

    @qdrant_retry
    async def save(self, target: WebhookTarget) -> str:
        """Insert or replace a target.

        Returns:
            The target ID.
        """
        await self.client.upsert(
            collection_name=self.collection_name,
            points=[
                models.PointStruct(
                    id=self._key_to_point_id(target.id),
                    vector=_PLACEHOLDER_VECTOR,
                    payload=target.model_dump(mode="json"),
                )
            ],
        )
        return target.id

    async def insert(self, url: str) -> WebhookTarget:
        """Register a new target and return it with its assigned ID."""
        target = WebhookTarget(url=url)
        await self.save(target)
        return target

    async def insert_many(self, urls: Iterable[str]) -> list[WebhookTarget]:
        """Register several targets in one upsert."""
        targets = [WebhookTarget(url=url) for url in urls]
        if not targets:
            return []
        await self._upsert_many(targets)
        return targets

    @qdrant_retry
    async def _upsert_many(self, targets: list[WebhookTarget]) -> None:
        await self.client.upsert(
            collection_name=self.collection_name,
            points=[
                models.PointStruct(
                    id=self._key_to_point_id(t.id),
                    vector=_PLACEHOLDER_VECTOR,
                    payload=t.model_dump(mode="json"),
                )
                for t in targets
            ],
        )

    @qdrant_retry
    async def get(self, target_id: str) -> WebhookTarget | None:
        """Get a target by ID, or None if it does not exist."""
        results = await self.client.retrieve(
            collection_name=self.collection_name,
            ids=[self._key_to_point_id(target_id)],
            with_payload=True,
        )
        if not results or results[0].payload is None:
            return None
        return self._to_target(results[0].payload)

    async def update_url(self, target_id: str, url: str) -> WebhookTarget | None:
        """Point an existing target at a new URL.

        Returns:
            The updated target, or None if the ID is unknown.
        """
        target = await self.get(target_id)
        if target is None:
            return None
        updated = target.with_url(url)
        await self.save(updated)
        return updated

    @qdrant_retry
    async def list_all_targets(self) -> list[WebhookTarget]:
        """Read every registered target.

        Returns:
            All targets ordered by registration time, then ID.
        """
        targets: list[WebhookTarget] = []
        offset: Any = None
        while True:
            records, offset = await self.client.scroll(
                collection_name=self.collection_name,
                limit=self._scroll_limit,
                offset=offset,
                with_payload=True,
                with_vectors=False,
            )
            targets.extend(
                self._to_target(r.payload) for r in records if r.payload is not None
            )
            if offset is None:
                break

        targets.sort(key=lambda t: (t.created_at, t.id))
        return targets

    @qdrant_retry
    async def count(self) -> int:
        """Number of registered targets."""
        result = await self.client.count(collection_name=self.collection_name, exact=True)
        return result.count
