"""FastAPI router for hookrelay API endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from hookrelay import __version__
from hookrelay.service import RelayService

from .helpers import report_to_response
from .schemas import (
    HealthResponse,
    RegisterRequest,
    RegisterResponse,
    TriggerResponse,
    UpdateRequest,
    UpdateResponse,
)

router = APIRouter()

# Service instance (set by app lifespan)
_service: RelayService | None = None


def set_service(service: RelayService) -> None:
    """Set the global service instance."""
    global _service
    _service = service


async def get_service() -> RelayService:
    """Dependency to get the RelayService instance."""
    if _service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return _service


ServiceDep = Annotated[RelayService, Depends(get_service)]


@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check() -> HealthResponse:
    """Report whether the service and its registry are ready."""
    connected = _service is not None
    return HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        storage_connected=connected,
    )


@router.post(
    "/webhooks/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["webhooks"],
)
async def register(request: RegisterRequest, service: ServiceDep) -> RegisterResponse:
    """Register a URL to receive webhook notifications.

    Returns:
        The generated target ID.
    """
    target = await service.register(request.target_url)
    return RegisterResponse(id=target.id)


@router.put("/webhooks/{target_id}/update", response_model=UpdateResponse, tags=["webhooks"])
async def update(target_id: str, request: UpdateRequest, service: ServiceDep) -> UpdateResponse:
    """Change the URL of a registered target.

    Raises:
        NotFoundError: Rendered as 404 when the ID is unknown.
    """
    target = await service.update(target_id, request.new_target_url)
    return UpdateResponse(message="Updation Successful", id=target.id, updated_url=target.url)


@router.get("/webhooks/list", response_model=list[str], tags=["webhooks"])
async def list_targets(
    service: ServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(alias="pageSize", ge=1)] = None,
    sort: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
) -> list[str]:
    """List registered target URLs with paging, search and sort."""
    return await service.list_targets(page=page, page_size=page_size, sort=sort, search=search)


@router.api_route(
    "/webhooks/trigger",
    methods=["GET", "POST"],
    response_model=TriggerResponse,
    tags=["webhooks"],
)
async def trigger(
    service: ServiceDep,
    ip_address: Annotated[str, Query(alias="ipAddress", min_length=1)],
) -> TriggerResponse:
    """Send a notification carrying ipAddress to every registered target.

    Always answers 200 with a per-target report once the dispatch has run,
    even when some targets could not be reached.
    """
    report = await service.trigger(ip_address)
    return report_to_response(report)
