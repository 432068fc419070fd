"""
Work order endpoints.

Transitions accept an optional ``expected_version``; a stale version is
rejected with 409 before anything is written.
"""

from fastapi import APIRouter, status

from linestart.api.deps import ActorId, WorkOrderServiceDep
from linestart.api.schemas import (
    AssignRequest,
    CompleteRequest,
    CompletionResponse,
    ElapsedTimeResponse,
    ReassignRequest,
    TimeEntryResponse,
    VersionedRequest,
    WorkOrderResponse,
)

router = APIRouter(prefix="/work-orders", tags=["work-orders"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Assign a job to a resource",
    response_model=WorkOrderResponse,
)
def assign(
    request: AssignRequest, actor_id: ActorId, service: WorkOrderServiceDep
) -> WorkOrderResponse:
    work_order = service.assign(
        job_id=request.job_id,
        resource_id=request.resource_id,
        actor_id=actor_id,
        target_qty=request.target_qty,
        scheduled_start=request.scheduled_start,
    )
    return WorkOrderResponse.model_validate(work_order)


@router.get("/{work_order_id}", response_model=WorkOrderResponse)
def get_work_order(work_order_id: str, service: WorkOrderServiceDep) -> WorkOrderResponse:
    return WorkOrderResponse.model_validate(service.get(work_order_id))


@router.post("/{work_order_id}/start", response_model=WorkOrderResponse)
def start(
    work_order_id: str,
    actor_id: ActorId,
    service: WorkOrderServiceDep,
    request: VersionedRequest | None = None,
) -> WorkOrderResponse:
    expected = request.expected_version if request else None
    return WorkOrderResponse.model_validate(
        service.start(work_order_id, actor_id, expected)
    )


@router.post("/{work_order_id}/pause", response_model=WorkOrderResponse)
def pause(
    work_order_id: str,
    actor_id: ActorId,
    service: WorkOrderServiceDep,
    request: VersionedRequest | None = None,
) -> WorkOrderResponse:
    expected = request.expected_version if request else None
    return WorkOrderResponse.model_validate(
        service.pause(work_order_id, actor_id, expected)
    )


@router.post(
    "/{work_order_id}/complete",
    summary="Record delivered quantity",
    description="A short delivery closes the order as partial and creates its remainder.",
    response_model=CompletionResponse,
)
def complete(
    work_order_id: str,
    request: CompleteRequest,
    actor_id: ActorId,
    service: WorkOrderServiceDep,
) -> CompletionResponse:
    result = service.complete(
        work_order_id, request.quantity_delivered, actor_id, request.expected_version
    )
    return CompletionResponse(
        work_order=WorkOrderResponse.model_validate(result.work_order),
        remainder=(
            WorkOrderResponse.model_validate(result.remainder)
            if result.remainder
            else None
        ),
        correlation_id=result.correlation_id,
    )


@router.post("/{work_order_id}/reassign", response_model=WorkOrderResponse)
def reassign(
    work_order_id: str,
    request: ReassignRequest,
    actor_id: ActorId,
    service: WorkOrderServiceDep,
) -> WorkOrderResponse:
    return WorkOrderResponse.model_validate(
        service.reassign(
            work_order_id, request.resource_id, actor_id, request.expected_version
        )
    )


@router.delete("/{work_order_id}", status_code=status.HTTP_204_NO_CONTENT)
def unassign(
    work_order_id: str,
    actor_id: ActorId,
    service: WorkOrderServiceDep,
    expected_version: int | None = None,
) -> None:
    service.unassign(work_order_id, actor_id, expected_version)


@router.get("/{work_order_id}/remainder", response_model=WorkOrderResponse | None)
def get_remainder(
    work_order_id: str, service: WorkOrderServiceDep
) -> WorkOrderResponse | None:
    remainder = service.get_remainder(work_order_id)
    return WorkOrderResponse.model_validate(remainder) if remainder else None


@router.get("/{work_order_id}/time-entries", response_model=list[TimeEntryResponse])
def list_time_entries(
    work_order_id: str, service: WorkOrderServiceDep
) -> list[TimeEntryResponse]:
    return [
        TimeEntryResponse.model_validate(entry)
        for entry in service.time_entries(work_order_id)
    ]


@router.get("/{work_order_id}/elapsed", response_model=ElapsedTimeResponse)
def get_elapsed(work_order_id: str, service: WorkOrderServiceDep) -> ElapsedTimeResponse:
    return ElapsedTimeResponse(
        work_order_id=work_order_id,
        elapsed_minutes=service.elapsed_minutes(work_order_id),
    )
