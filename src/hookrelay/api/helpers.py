"""Response builders for the REST API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hookrelay.models import to_epoch_ms

from .schemas import DispatchSummaryResponse, TargetResultResponse, TriggerResponse

if TYPE_CHECKING:
    from hookrelay.models import DispatchReport


def report_to_response(report: DispatchReport) -> TriggerResponse:
    """Convert a DispatchReport to a TriggerResponse.

    Args:
        report: Finalized dispatch report.

    Returns:
        TriggerResponse with one result per target.
    """
    results = [
        TargetResultResponse(
            id=target_id,
            url=attempt.url,
            status="success" if attempt.succeeded else "failed",
            attempts=attempt.attempt_number,
            status_code=attempt.status_code,
            error=attempt.error,
        )
        for target_id, attempt in report.per_target.items()
    ]
    return TriggerResponse(
        event_id=report.event_id,
        ip_address=report.source_address,
        timestamp=to_epoch_ms(report.issued_at),
        summary=DispatchSummaryResponse(**report.summary.model_dump()),
        results=results,
    )
