"""Webhook dispatch for hookrelay.

Fans a notification out to every registered target in bounded-size
concurrent batches, then retries failed targets one at a time.

Example:
    ```python
    from hookrelay.models import NotificationPayload
    from hookrelay.webhooks import DeliveryClient, DispatchEngine

    engine = DispatchEngine(DeliveryClient(), batch_size=10, max_retries=5)
    report = await engine.dispatch(targets, NotificationPayload(source_address="10.0.0.1"))
    ```
"""

from .batching import DEFAULT_BATCH_SIZE, batched
from .client import DEFAULT_TIMEOUT_SECONDS, DeliveryClient
from .engine import DEFAULT_MAX_RETRIES, DispatchEngine

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_TIMEOUT_SECONDS",
    "DeliveryClient",
    "DispatchEngine",
    "batched",
]
