"""Data models for hookrelay.

Registry:
    - WebhookTarget: A registered callback URL

Delivery:
    - NotificationPayload: Body shared by every delivery of one trigger event
    - Success / Failure: Outcome of a single outbound call
    - DeliveryAttempt: Immutable record of one call
    - DispatchReport: Per-target terminal attempts and summary for one run
"""

from .base import generate_id, to_epoch_ms, utc_now
from .delivery import (
    DEFAULT_ACCEPTED_STATUS_CODES,
    DeliveryAttempt,
    DispatchReport,
    DispatchSummary,
    Failure,
    FailureReason,
    NotificationPayload,
    Outcome,
    Success,
    is_delivered,
)
from .target import WebhookTarget

__all__ = [
    "generate_id",
    "to_epoch_ms",
    "utc_now",
    # Registry
    "WebhookTarget",
    # Delivery
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
