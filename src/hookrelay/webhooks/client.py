"""Outbound delivery of one notification to one webhook target.

The client reports what happened on the wire and nothing more: any HTTP
response is a ``Success`` carrying its status code, and every error is
folded into a ``Failure`` with a coarse reason. Deciding which status
codes count as delivered is the dispatch engine's job.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from hookrelay.models import Failure, Success

if TYPE_CHECKING:
    from hookrelay.models import NotificationPayload, WebhookTarget

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0

_DETAIL_LIMIT = 200


class DeliveryClient:
    """Posts notification payloads to webhook targets.

    Stateless apart from an optional shared ``httpx.AsyncClient``; safe to
    use from many concurrent deliveries.

    Example:
        ```python
        client = DeliveryClient()
        outcome = await client.deliver(target, payload, timeout=5.0)
        ```
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        """Initialize the delivery client.

        Args:
            http_client: Shared client for connection pooling. If None, a
                short-lived client is opened for every call.
        """
        self._http_client = http_client

    async def deliver(
        self,
        target: WebhookTarget,
        payload: NotificationPayload,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> Success | Failure:
        """Issue one POST carrying the payload to the target's URL.

        Args:
            target: Target to call.
            payload: Notification to send as JSON.
            timeout: Request timeout in seconds.

        Returns:
            ``Success(status_code)`` if the endpoint responded, otherwise
            ``Failure`` with reason ``timeout``, ``connection_error`` or ``other``.
        """
        headers = {
            "Content-Type": "application/json",
            "X-Hookrelay-Target-Id": target.id,
        }
        body = payload.to_body()

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    target.url, json=body, headers=headers, timeout=timeout
                )
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.post(target.url, json=body, headers=headers)
        except httpx.TimeoutException as e:
            logger.debug("Webhook timed out: %s (%s)", target.url, e)
            return Failure(reason="timeout", detail=_truncate(str(e)) or "Request timeout")
        except httpx.ConnectError as e:
            logger.debug("Webhook connection failed: %s (%s)", target.url, e)
            return Failure(reason="connection_error", detail=_truncate(str(e)))
        except httpx.RequestError as e:
            logger.debug("Webhook request error: %s (%s)", target.url, e)
            return Failure(reason="other", detail=_truncate(str(e)))
        except Exception as e:
            # Malformed URLs land here (httpx.InvalidURL is not a RequestError)
            logger.debug("Webhook delivery error: %s (%s)", target.url, e)
            return Failure(reason="other", detail=_truncate(f"{type(e).__name__}: {e}"))

        return Success(status_code=response.status_code)


def _truncate(text: str) -> str | None:
    return text[:_DETAIL_LIMIT] if text else None
