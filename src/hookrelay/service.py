"""Core hookrelay service layer.

Combines the target registry and the dispatch engine behind the
operations exposed by the REST API: register, update, list and trigger.

Example:
    ```python
    from hookrelay.service import RelayService

    async with RelayService.create() as relay:
        target = await relay.register("https://example.com/hook")
        report = await relay.trigger("203.0.113.7")
        print(report.summary)
    ```
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Any

from hookrelay.config import Settings
from hookrelay.exceptions import DispatchEngineError, NotFoundError, ValidationError
from hookrelay.logging import get_logger
from hookrelay.models import DispatchReport, NotificationPayload, WebhookTarget
from hookrelay.storage import TargetStore
from hookrelay.webhooks import DispatchEngine

logger = get_logger(__name__)

# Accepted sort keys, including the camelCase names used by the REST surface
SORT_FIELDS: dict[str, str] = {
    "id": "id",
    "_id": "id",
    "url": "url",
    "target": "url",
    "created_at": "created_at",
    "createdAt": "created_at",
    "updated_at": "updated_at",
    "updatedAt": "updated_at",
}


def parse_sort(sort: str) -> tuple[str, bool]:
    """Parse a sort expression such as ``"-created_at"``.

    Returns:
        Tuple of (attribute name, descending).

    Raises:
        ValidationError: If the field is not sortable.
    """
    descending = sort.startswith("-")
    key = sort.lstrip("-").strip()
    if key not in SORT_FIELDS:
        raise ValidationError("sort", f"cannot sort by {key!r}")
    return SORT_FIELDS[key], descending


def validate_source_address(source_address: str | None) -> str:
    """Check that the trigger address is a valid IPv4 or IPv6 address.

    Raises:
        ValidationError: If the address is missing or not an IP address.
    """
    if source_address is None or not source_address.strip():
        raise ValidationError("ipAddress", "is required")
    value = source_address.strip()
    try:
        ipaddress.ip_address(value)
    except ValueError as e:
        raise ValidationError("ipAddress", f"{value!r} is not a valid IP address") from e
    return value


@dataclass
class RelayService:
    """Webhook registry and dispatcher.

    Attributes:
        store: Target registry.
        engine: Dispatch engine used for trigger events.
        settings: Configuration settings.
    """

    store: TargetStore
    engine: DispatchEngine
    settings: Settings

    @classmethod
    def create(cls, settings: Settings | None = None) -> RelayService:
        """Create a RelayService with default dependencies."""
        if settings is None:
            settings = Settings()

        return cls(
            store=TargetStore(
                url=settings.qdrant_url,
                api_key=settings.qdrant_api_key,
                prefix=settings.collection_prefix,
            ),
            engine=DispatchEngine.from_settings(settings),
            settings=settings,
        )

    async def initialize(self) -> None:
        """Initialize storage and seed the registry if it is empty."""
        await self.store.initialize()
        if self.settings.seed_targets and await self.store.count() == 0:
            seeded = await self.store.insert_many(self.settings.seed_targets)
            logger.info("Seeded webhook registry", count=len(seeded))

    async def close(self) -> None:
        await self.store.close()

    async def __aenter__(self) -> RelayService:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def register(self, url: str) -> WebhookTarget:
        """Add a target URL to the registry.

        Raises:
            ValidationError: If the URL is empty.
        """
        if not url or not url.strip():
            raise ValidationError("targetURL", "must not be empty")
        target = await self.store.insert(url.strip())
        logger.info("Webhook registered", target_id=target.id, url=target.url)
        return target

    async def update(self, target_id: str, new_url: str) -> WebhookTarget:
        """Change the URL of a registered target.

        Raises:
            ValidationError: If the URL is empty.
            NotFoundError: If no target has this ID.
        """
        if not new_url or not new_url.strip():
            raise ValidationError("newTargetURL", "must not be empty")
        target = await self.store.update_url(target_id, new_url.strip())
        if target is None:
            raise NotFoundError("webhook", target_id)
        logger.info("Webhook updated", target_id=target.id, url=target.url)
        return target

    async def get(self, target_id: str) -> WebhookTarget:
        target = await self.store.get(target_id)
        if target is None:
            raise NotFoundError("webhook", target_id)
        return target

    async def count(self) -> int:
        return await self.store.count()

    async def list_targets(
        self,
        page: int = 1,
        page_size: int | None = None,
        sort: str | None = None,
        search: str | None = None,
    ) -> list[str]:
        """List registered target URLs, one page at a time.

        Args:
            page: 1-based page number.
            page_size: Targets per page. Defaults to settings.list_default_page_size.
            sort: Field to sort by, prefixed with "-" for descending.
            search: Case-insensitive substring the URL must contain.

        Returns:
            Target URLs on the requested page.

        Raises:
            ValidationError: If paging or sort parameters are invalid.
        """
        if page_size is None:
            page_size = self.settings.list_default_page_size
        if page < 1:
            raise ValidationError("page", "must be >= 1")
        if page_size < 1 or page_size > self.settings.list_max_page_size:
            raise ValidationError(
                "pageSize", f"must be between 1 and {self.settings.list_max_page_size}"
            )

        targets = await self.store.list_all_targets()

        if search:
            needle = search.lower()
            targets = [t for t in targets if needle in t.url.lower()]

        if sort:
            field, descending = parse_sort(sort)
            targets = sorted(targets, key=lambda t: getattr(t, field), reverse=descending)

        start = (page - 1) * page_size
        return [t.url for t in targets[start : start + page_size]]

    async def trigger(self, source_address: str, event_id: str | None = None) -> DispatchReport:
        """Notify every registered target of a trigger event.

        Args:
            source_address: IP address carried in the notification.
            event_id: Optional trigger event ID.

        Returns:
            Report with one terminal attempt per target.

        Raises:
            ValidationError: If the address is not a valid IP address.
            DispatchEngineError: If the target snapshot cannot be read.
        """
        address = validate_source_address(source_address)

        try:
            snapshot = await self.store.list_all_targets()
        except Exception as e:
            logger.error("Failed to read target snapshot", error=str(e))
            raise DispatchEngineError(f"Failed to read target snapshot: {e}") from e

        payload = NotificationPayload(source_address=address)
        return await self.engine.dispatch(snapshot, payload, event_id=event_id)


__all__ = ["RelayService", "parse_sort", "validate_source_address"]
