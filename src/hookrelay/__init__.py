"""hookrelay: webhook registry with batched, retrying fan-out delivery.

Example:
    ```python
    from hookrelay import RelayService

    async with RelayService.create() as relay:
        await relay.register("https://example.com/hook")
        report = await relay.trigger("203.0.113.7")
    ```
"""

__version__ = "0.1.0"

from hookrelay.config import Settings, settings
from hookrelay.exceptions import (
    DispatchEngineError,
    HookRelayError,
    NotFoundError,
    RegistrationError,
    StorageError,
    ValidationError,
)
from hookrelay.models import (
    DeliveryAttempt,
    DispatchReport,
    Failure,
    NotificationPayload,
    Success,
    WebhookTarget,
)
from hookrelay.service import RelayService
from hookrelay.webhooks import DeliveryClient, DispatchEngine, batched

__all__ = [
    "__version__",
    "Settings",
    "settings",
    # Exceptions
    "DispatchEngineError",
    "HookRelayError",
    "NotFoundError",
    "RegistrationError",
    "StorageError",
    "ValidationError",
    # Models
    "DeliveryAttempt",
    "DispatchReport",
    "Failure",
    "NotificationPayload",
    "Success",
    "WebhookTarget",
    # Services
    "DeliveryClient",
    "DispatchEngine",
    "RelayService",
    "batched",
]
