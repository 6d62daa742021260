"""Webhook target model.

A target is a registered callback URL. Targets are owned by the target
store; a dispatch run works off an immutable snapshot of them.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .base import generate_id, utc_now


class WebhookTarget(BaseModel):
    """A registered webhook endpoint.

    The URL is stored as given. It is not validated at registration time:
    a malformed URL simply fails on every delivery attempt.

    Attributes:
        id: Store-assigned unique identifier.
        url: Delivery destination.
        created_at: When the target was registered.
        updated_at: When the URL was last changed.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(default_factory=lambda: generate_id("whk"))
    url: str = Field(description="Delivery destination")
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the target was registered",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        description="When the target was last modified",
    )

    def with_url(self, url: str) -> "WebhookTarget":
        """Return a copy of this target pointing at a new URL."""
        return self.model_copy(update={"url": url, "updated_at": utc_now()})


__all__ = ["WebhookTarget"]
