"""Delivery models: payloads, outcomes, attempts and dispatch reports.

One trigger event produces one ``NotificationPayload`` shared by every
delivery, one ``DeliveryAttempt`` per outbound call (retries included) and
a single ``DispatchReport`` summarising the run.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .base import generate_id, to_epoch_ms, utc_now

FailureReason = Literal["timeout", "connection_error", "other"]

# Only an exact 200 counts as delivered; other 2xx codes are retried.
DEFAULT_ACCEPTED_STATUS_CODES: frozenset[int] = frozenset({200})


class NotificationPayload(BaseModel):
    """Payload sent to every target for one trigger event.

    Attributes:
        source_address: IP address that caused the trigger.
        issued_at: When the trigger event was received.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    source_address: str = Field(min_length=1, description="Address that caused the trigger")
    issued_at: datetime = Field(default_factory=utc_now, description="When the event occurred")

    @property
    def timestamp_ms(self) -> int:
        """Milliseconds since the Unix epoch."""
        return to_epoch_ms(self.issued_at)

    def to_body(self) -> dict[str, Any]:
        """Render the JSON body posted to targets."""
        return {"ipAddress": self.source_address, "timestamp": self.timestamp_ms}


class Success(BaseModel):
    """The endpoint answered. Whether the status code counts is decided by the engine."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["success"] = "success"
    status_code: int = Field(ge=100, le=999)


class Failure(BaseModel):
    """No usable response: timeout, refused connection or anything else."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["failure"] = "failure"
    reason: FailureReason
    detail: str | None = Field(default=None, description="Error text, truncated")


Outcome = Annotated[Success | Failure, Field(discriminator="kind")]


def is_delivered(
    outcome: Success | Failure,
    accepted_status_codes: Iterable[int] = DEFAULT_ACCEPTED_STATUS_CODES,
) -> bool:
    """Success policy: the endpoint responded with an accepted status code."""
    return isinstance(outcome, Success) and outcome.status_code in set(accepted_status_codes)


class DeliveryAttempt(BaseModel):
    """Record of one outbound call to one target.

    Attributes:
        target_id: ID of the target called.
        url: URL the call was made to.
        attempt_number: 1 for the first pass, 2.. for retries.
        outcome: What the delivery client observed.
        succeeded: Success-policy verdict for the outcome.
        started_at: When the call was issued.
        finished_at: When the outcome was known.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    target_id: str
    url: str
    attempt_number: int = Field(ge=1)
    outcome: Outcome
    succeeded: bool
    started_at: datetime
    finished_at: datetime

    @property
    def status_code(self) -> int | None:
        if isinstance(self.outcome, Success):
            return self.outcome.status_code
        return None

    @property
    def error(self) -> str | None:
        """Why this attempt did not count as delivered, if it did not."""
        if self.succeeded:
            return None
        if isinstance(self.outcome, Success):
            return f"HTTP {self.outcome.status_code}"
        if self.outcome.detail:
            return f"{self.outcome.reason}: {self.outcome.detail}"
        return self.outcome.reason

    @property
    def duration_ms(self) -> int:
        return int((self.finished_at - self.started_at).total_seconds() * 1000)


class DispatchSummary(BaseModel):
    """Counts for one dispatch run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    total: int = Field(default=0, ge=0, description="Targets in the snapshot")
    succeeded: int = Field(default=0, ge=0, description="Targets finally delivered")
    failed: int = Field(default=0, ge=0, description="Targets that exhausted their retries")
    attempts: int = Field(default=0, ge=0, description="Outbound calls made, retries included")


class DispatchReport(BaseModel):
    """Outcome of one dispatch run.

    ``per_target`` holds exactly one terminal attempt for every target of
    the snapshot: the first success, or the last attempt made. ``attempts``
    is the full history in the order the calls finished being recorded.

    Attributes:
        event_id: Identifier of the trigger event.
        source_address: Address carried in the payload.
        issued_at: Payload timestamp.
        started_at: When the run began.
        finished_at: When the last attempt was recorded.
        per_target: Terminal attempt per target ID, in snapshot order.
        attempts: Every attempt made during the run.
        summary: Success/failure counts.
    """

    model_config = ConfigDict(extra="forbid")

    event_id: str = Field(default_factory=lambda: generate_id("evt"))
    source_address: str
    issued_at: datetime
    started_at: datetime = Field(default_factory=utc_now)
    finished_at: datetime = Field(default_factory=utc_now)
    per_target: dict[str, DeliveryAttempt] = Field(default_factory=dict)
    attempts: list[DeliveryAttempt] = Field(default_factory=list)
    summary: DispatchSummary = Field(default_factory=DispatchSummary)

    @classmethod
    def empty(cls, payload: NotificationPayload, event_id: str | None = None) -> "DispatchReport":
        """Report for a run over an empty snapshot."""
        return cls.build(payload=payload, histories={}, event_id=event_id)

    @classmethod
    def build(
        cls,
        payload: NotificationPayload,
        histories: Mapping[str, list[DeliveryAttempt]],
        event_id: str | None = None,
        started_at: datetime | None = None,
    ) -> "DispatchReport":
        """Finalize a report from per-target attempt histories.

        Args:
            payload: Payload that was delivered.
            histories: Attempts per target ID, in snapshot order. Each
                history must be non-empty and ordered by attempt number.
            event_id: Trigger event ID. Generated if None.
            started_at: When the run began. Defaults to now.
        """
        per_target: dict[str, DeliveryAttempt] = {}
        attempts: list[DeliveryAttempt] = []
        for target_id, history in histories.items():
            if not history:
                raise ValueError(f"No delivery attempt recorded for target {target_id}")
            per_target[target_id] = next((a for a in history if a.succeeded), history[-1])
            attempts.extend(history)

        succeeded = sum(1 for a in per_target.values() if a.succeeded)
        now = utc_now()
        return cls(
            event_id=event_id or generate_id("evt"),
            source_address=payload.source_address,
            issued_at=payload.issued_at,
            started_at=started_at or now,
            finished_at=now,
            per_target=per_target,
            attempts=attempts,
            summary=DispatchSummary(
                total=len(per_target),
                succeeded=succeeded,
                failed=len(per_target) - succeeded,
                attempts=len(attempts),
            ),
        )

    def attempts_for(self, target_id: str) -> list[DeliveryAttempt]:
        """All attempts made for one target, by attempt number."""
        return sorted(
            (a for a in self.attempts if a.target_id == target_id),
            key=lambda a: a.attempt_number,
        )

    @property
    def succeeded_targets(self) -> list[str]:
        return [tid for tid, a in self.per_target.items() if a.succeeded]

    @property
    def failed_targets(self) -> list[str]:
        return [tid for tid, a in self.per_target.items() if not a.succeeded]


__all__ = [
    "DEFAULT_ACCEPTED_STATUS_CODES",
    "DeliveryAttempt",
    "DispatchReport",
    "DispatchSummary",
    "Failure",
    "FailureReason",
    "NotificationPayload",
    "Outcome",
    "Success",
    "is_delivered",
]
