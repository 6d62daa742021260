"""Dispatch engine: fan one notification out to every webhook target.

A dispatch run works in two passes over an immutable snapshot of targets:

1. First pass: the snapshot is split into batches. Batches run one after
   another; the deliveries inside a batch run concurrently and the whole
   batch is awaited before the next one starts, so at most ``batch_size``
   calls are ever in flight.
2. Retry pass: every target whose first attempt was not delivered is
   retried on its own, one target at a time, until it is delivered or
   ``max_retries`` further attempts have been made.

Delivery failures never abort the run. They are recorded as attempts and
summarised in the returned ``DispatchReport``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import TYPE_CHECKING

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)

from hookrelay.exceptions import DispatchEngineError
from hookrelay.logging import event_context, get_logger
from hookrelay.models import (
    DEFAULT_ACCEPTED_STATUS_CODES,
    DeliveryAttempt,
    DispatchReport,
    Failure,
    WebhookTarget,
    generate_id,
    is_delivered,
    utc_now,
)

from .batching import DEFAULT_BATCH_SIZE, batched
from .client import DEFAULT_TIMEOUT_SECONDS, DeliveryClient

if TYPE_CHECKING:
    from hookrelay.config import Settings
    from hookrelay.models import NotificationPayload, Success

logger = get_logger(__name__)

DEFAULT_MAX_RETRIES = 5


def _not_delivered(attempt: DeliveryAttempt) -> bool:
    return not attempt.succeeded


def _last_attempt(retry_state: RetryCallState) -> DeliveryAttempt | None:
    """Return the final attempt instead of raising RetryError when retries run out."""
    if retry_state.outcome is None:
        return None
    return retry_state.outcome.result()  # type: ignore[no-any-return]


def _log_retry(retry_state: RetryCallState) -> None:
    attempt = retry_state.outcome.result() if retry_state.outcome else None
    if attempt is not None:
        logger.info(
            "Retrying webhook delivery",
            target_id=attempt.target_id,
            url=attempt.url,
            next_attempt=attempt.attempt_number + 1,
            error=attempt.error,
        )


class DispatchEngine:
    """Delivers a notification to a snapshot of targets with bounded retry.

    Example:
        ```python
        engine = DispatchEngine(DeliveryClient(), batch_size=10, max_retries=5)
        report = await engine.dispatch(targets, NotificationPayload(source_address="10.0.0.1"))
        print(report.summary)
        ```
    """

    def __init__(
        self,
        client: DeliveryClient | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        retry_delay_seconds: float = 0.0,
        retry_max_delay_seconds: float = 1.0,
        accepted_status_codes: Iterable[int] = DEFAULT_ACCEPTED_STATUS_CODES,
    ) -> None:
        """Initialize the dispatch engine.

        Args:
            client: Delivery client used for every outbound call.
            batch_size: Maximum concurrent deliveries (>= 1).
            max_retries: Additional attempts per failed target (>= 0).
            timeout_seconds: Timeout for each outbound call.
            retry_delay_seconds: Base delay between retries of one target,
                doubling each retry. 0 retries immediately.
            retry_max_delay_seconds: Cap for the retry delay.
            accepted_status_codes: Status codes that count as delivered.

        Raises:
            DispatchEngineError: If any setting is out of range.
        """
        if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
            raise DispatchEngineError(f"batch_size must be an integer >= 1, got {batch_size!r}")
        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
            raise DispatchEngineError(f"max_retries must be an integer >= 0, got {max_retries!r}")
        if timeout_seconds <= 0:
            raise DispatchEngineError(f"timeout_seconds must be positive, got {timeout_seconds!r}")
        if retry_delay_seconds < 0 or retry_max_delay_seconds < retry_delay_seconds:
            raise DispatchEngineError(
                "retry delays must satisfy 0 <= retry_delay_seconds <= retry_max_delay_seconds"
            )
        accepted = frozenset(accepted_status_codes)
        if not accepted:
            raise DispatchEngineError("accepted_status_codes must not be empty")

        self._client = client or DeliveryClient()
        self._batch_size = batch_size
        self._max_retries = max_retries
        self._timeout = timeout_seconds
        self._retry_delay = retry_delay_seconds
        self._retry_max_delay = retry_max_delay_seconds
        self._accepted = accepted

    @classmethod
    def from_settings(
        cls, settings: Settings, client: DeliveryClient | None = None
    ) -> DispatchEngine:
        """Create an engine configured from application settings."""
        return cls(
            client=client,
            batch_size=settings.dispatch_batch_size,
            max_retries=settings.dispatch_max_retries,
            timeout_seconds=settings.delivery_timeout_seconds,
            retry_delay_seconds=settings.retry_delay_seconds,
            retry_max_delay_seconds=settings.retry_max_delay_seconds,
            accepted_status_codes=settings.accepted_status_codes,
        )

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def max_retries(self) -> int:
        return self._max_retries

    async def dispatch(
        self,
        targets: Iterable[WebhookTarget],
        payload: NotificationPayload,
        event_id: str | None = None,
    ) -> DispatchReport:
        """Deliver the payload to every target and report per-target outcomes.

        Args:
            targets: Snapshot of registered targets, in store order.
            payload: Notification shared by every delivery.
            event_id: Trigger event ID. Generated if None.

        Returns:
            DispatchReport with exactly one terminal attempt per target.

        Raises:
            DispatchEngineError: If the snapshot is malformed. No delivery
                is attempted in that case.
        """
        snapshot = self._validate_snapshot(targets)
        event_id = event_id or generate_id("evt")
        started_at = utc_now()

        if not snapshot:
            logger.info("No webhook targets registered", event_id=event_id)
            return DispatchReport.empty(payload, event_id=event_id)

        with event_context(event_id):
            histories: dict[str, list[DeliveryAttempt]] = {t.id: [] for t in snapshot}

            for index, batch in enumerate(batched(snapshot, self._batch_size), start=1):
                first_attempts = await asyncio.gather(
                    *(self._attempt(target, payload, 1) for target in batch)
                )
                for attempt in first_attempts:
                    histories[attempt.target_id].append(attempt)
                logger.debug(
                    "Webhook batch delivered",
                    batch=index,
                    size=len(batch),
                    delivered=sum(1 for a in first_attempts if a.succeeded),
                )

            if self._max_retries > 0:
                for target in snapshot:
                    if not histories[target.id][0].succeeded:
                        histories[target.id].extend(await self._retry(target, payload))

            report = DispatchReport.build(
                payload=payload,
                histories=histories,
                event_id=event_id,
                started_at=started_at,
            )
            logger.info(
                "Webhook dispatch complete",
                targets=report.summary.total,
                succeeded=report.summary.succeeded,
                failed=report.summary.failed,
                attempts=report.summary.attempts,
            )
            return report

    async def _retry(
        self, target: WebhookTarget, payload: NotificationPayload
    ) -> list[DeliveryAttempt]:
        """Retry one target until delivered or out of retries.

        Returns:
            Attempts made by this pass, numbered from 2.
        """
        retries: list[DeliveryAttempt] = []

        async def next_attempt() -> DeliveryAttempt:
            attempt = await self._attempt(target, payload, len(retries) + 2)
            retries.append(attempt)
            return attempt

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_retries),
            wait=(
                wait_exponential(multiplier=self._retry_delay, max=self._retry_max_delay)
                if self._retry_delay > 0
                else wait_none()
            ),
            retry=retry_if_result(_not_delivered),
            before_sleep=_log_retry,
            retry_error_callback=_last_attempt,
        )
        await retrying(next_attempt)

        if not retries[-1].succeeded:
            logger.warning(
                "Webhook delivery failed permanently",
                target_id=target.id,
                url=target.url,
                attempts=retries[-1].attempt_number,
                error=retries[-1].error,
            )
        return retries

    async def _attempt(
        self,
        target: WebhookTarget,
        payload: NotificationPayload,
        attempt_number: int,
    ) -> DeliveryAttempt:
        """Make one outbound call and record it."""
        started_at = utc_now()
        outcome: Success | Failure
        try:
            outcome = await asyncio.wait_for(
                self._client.deliver(target, payload, timeout=self._timeout),
                timeout=self._timeout,
            )
        except TimeoutError:
            outcome = Failure(reason="timeout", detail=f"No response within {self._timeout}s")
        except Exception as e:
            logger.exception("Delivery client raised", target_id=target.id, url=target.url)
            outcome = Failure(reason="other", detail=f"{type(e).__name__}: {e}"[:200])

        attempt = DeliveryAttempt(
            target_id=target.id,
            url=target.url,
            attempt_number=attempt_number,
            outcome=outcome,
            succeeded=is_delivered(outcome, self._accepted),
            started_at=started_at,
            finished_at=utc_now(),
        )
        if not attempt.succeeded:
            logger.warning(
                "Webhook delivery attempt failed",
                target_id=target.id,
                url=target.url,
                attempt=attempt_number,
                error=attempt.error,
            )
        return attempt

    @staticmethod
    def _validate_snapshot(targets: Iterable[WebhookTarget]) -> tuple[WebhookTarget, ...]:
        if targets is None:
            raise DispatchEngineError("Target snapshot is missing")
        try:
            snapshot = tuple(targets)
        except TypeError as e:
            raise DispatchEngineError(f"Target snapshot is not iterable: {e}") from e

        seen: set[str] = set()
        for target in snapshot:
            if not isinstance(target, WebhookTarget):
                raise DispatchEngineError(
                    "Malformed target snapshot: expected WebhookTarget, "
                    f"got {type(target).__name__}"
                )
            if target.id in seen:
                raise DispatchEngineError(f"Malformed target snapshot: duplicate id {target.id}")
            seen.add(target.id)
        return snapshot
