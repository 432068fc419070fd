"""Resource and downtime endpoints."""

from fastapi import APIRouter, status

from linestart.api.deps import (
    ActorId,
    DowntimeServiceDep,
    ResourceServiceDep,
    WorkOrderServiceDep,
)
from linestart.api.schemas import (
    CreateResourceRequest,
    DowntimeWindowResponse,
    ExpandDowntimeResponse,
    QueueEntryResponse,
    ReportDowntimeRequest,
    ResourceResponse,
    ScheduleDowntimeRequest,
    UpdateResourceRequest,
    WorkOrderResponse,
)

router = APIRouter(prefix="/resources", tags=["resources"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create resource",
    response_model=ResourceResponse,
)
def create_resource(
    request: CreateResourceRequest, actor_id: ActorId, service: ResourceServiceDep
) -> ResourceResponse:
    resource = service.create_resource(
        name=request.name,
        units_per_hour=request.units_per_hour,
        actor_id=actor_id,
        setup_minutes=request.setup_minutes,
        uid=request.uid,
        operational_hours=request.operational_hours,
    )
    return ResourceResponse.model_validate(resource)


@router.get("", summary="List resources", response_model=list[ResourceResponse])
def list_resources(service: ResourceServiceDep) -> list[ResourceResponse]:
    return [ResourceResponse.model_validate(r) for r in service.list_resources()]


# Registered before /{resource_id} routes so the literal path wins
@router.post(
    "/downtime/expand",
    summary="Expand scheduled downtime",
    description="Start scheduled windows that have begun and close those that ended.",
    response_model=ExpandDowntimeResponse,
)
def expand_scheduled_downtime(service: DowntimeServiceDep) -> ExpandDowntimeResponse:
    return ExpandDowntimeResponse(changed=service.expand_scheduled_downtime())


@router.get("/{resource_id}", response_model=ResourceResponse)
def get_resource(resource_id: str, service: ResourceServiceDep) -> ResourceResponse:
    return ResourceResponse.model_validate(service.get_resource(resource_id))


@router.patch("/{resource_id}", response_model=ResourceResponse)
def update_resource(
    resource_id: str,
    request: UpdateResourceRequest,
    actor_id: ActorId,
    service: ResourceServiceDep,
) -> ResourceResponse:
    resource = service.update_resource(
        resource_id,
        actor_id,
        name=request.name,
        setup_minutes=request.setup_minutes,
        units_per_hour=request.units_per_hour,
        operational_hours=(
            request.operational_hours
            if "operational_hours" in request.model_fields_set
            else ...
        ),
        expected_version=request.expected_version,
    )
    return ResourceResponse.model_validate(resource)


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resource(
    resource_id: str,
    actor_id: ActorId,
    service: ResourceServiceDep,
    expected_version: int | None = None,
) -> None:
    service.delete_resource(resource_id, actor_id, expected_version)


@router.get("/{resource_id}/queue", response_model=list[QueueEntryResponse])
def get_queue(
    resource_id: str, service: WorkOrderServiceDep
) -> list[QueueEntryResponse]:
    return [
        QueueEntryResponse.model_validate(entry)
        for entry in service.queue_for(resource_id)
    ]


@router.post("/{resource_id}/downtime", response_model=ResourceResponse)
def report_downtime(
    resource_id: str,
    actor_id: ActorId,
    service: DowntimeServiceDep,
    request: ReportDowntimeRequest | None = None,
) -> ResourceResponse:
    reason = request.reason if request else None
    return ResourceResponse.model_validate(
        service.report_downtime(resource_id, reason, actor_id)
    )


@router.delete("/{resource_id}/downtime", response_model=ResourceResponse)
def clear_downtime(
    resource_id: str, actor_id: ActorId, service: DowntimeServiceDep
) -> ResourceResponse:
    return ResourceResponse.model_validate(
        service.clear_downtime(resource_id, actor_id)
    )


@router.post(
    "/{resource_id}/downtime/scheduled",
    status_code=status.HTTP_201_CREATED,
    response_model=WorkOrderResponse,
)
def schedule_downtime(
    resource_id: str,
    request: ScheduleDowntimeRequest,
    actor_id: ActorId,
    service: DowntimeServiceDep,
) -> WorkOrderResponse:
    work_order = service.schedule_downtime(
        resource_id, request.start, request.end, actor_id, request.reason
    )
    return WorkOrderResponse.model_validate(work_order)


@router.get(
    "/{resource_id}/downtime/windows", response_model=list[DowntimeWindowResponse]
)
def list_downtime_windows(
    resource_id: str, service: DowntimeServiceDep
) -> list[DowntimeWindowResponse]:
    return [
        DowntimeWindowResponse.model_validate(window)
        for window in service.windows(resource_id)
    ]
