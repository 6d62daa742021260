"""Pydantic schemas for API request/response models.

Field aliases keep the camelCase names of the public REST contract
(``targetURL``, ``newTargetURL``, ``updatedURL``, ``ipAddress``).
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Request body for registering a webhook target.

    Attributes:
        target_url: URL that will receive notifications.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    target_url: str = Field(alias="targetURL", min_length=1, description="Webhook URL")


class RegisterResponse(BaseModel):
    """Response body for a registered target."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(description="Store-assigned target ID")


class UpdateRequest(BaseModel):
    """Request body for changing a target's URL."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    new_target_url: str = Field(alias="newTargetURL", min_length=1, description="New URL")


class UpdateResponse(BaseModel):
    """Response body for a successful update."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    message: str
    id: str
    updated_url: str = Field(alias="updatedURL")


class HealthResponse(BaseModel):
    """Response model for health check."""

    model_config = ConfigDict(extra="forbid")

    status: Literal["healthy", "unhealthy"]
    version: str
    storage_connected: bool


class DispatchSummaryResponse(BaseModel):
    """Counts for one dispatch run."""

    model_config = ConfigDict(extra="forbid")

    total: int
    succeeded: int
    failed: int
    attempts: int


class TargetResultResponse(BaseModel):
    """Final outcome for one target.

    Attributes:
        id: Target ID.
        url: Target URL.
        status: "success" if delivered, "failed" once retries ran out.
        attempts: Number of calls made to this target.
        status_code: HTTP status of the terminal attempt, if any response came back.
        error: Why the terminal attempt was not delivered.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    url: str
    status: Literal["success", "failed"]
    attempts: int = Field(ge=1)
    status_code: int | None = None
    error: str | None = None


class TriggerResponse(BaseModel):
    """Delivery report returned by the trigger endpoint.

    Attributes:
        event_id: Trigger event ID.
        ip_address: Address carried in the notification.
        timestamp: Notification timestamp, milliseconds since epoch.
        summary: Success/failure counts.
        results: Terminal outcome per target, in registry order.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    event_id: str
    ip_address: str = Field(alias="ipAddress")
    timestamp: int
    summary: DispatchSummaryResponse
    results: list[TargetResultResponse] = Field(default_factory=list)
