"""Job endpoints."""

from fastapi import APIRouter, Query, status

from linestart.api.deps import ActorId, JobServiceDep
from linestart.api.schemas import (
    CreateJobRequest,
    JobResponse,
    JobStatusResponse,
    WorkOrderResponse,
)

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create job",
    response_model=JobResponse,
)
def create_job(
    request: CreateJobRequest, actor_id: ActorId, service: JobServiceDep
) -> JobResponse:
    job = service.create_job(
        quantity=request.quantity,
        actor_id=actor_id,
        project_id=request.project_id,
        custom_field_values=request.custom_field_values,
    )
    return JobResponse.model_validate(job)


@router.get("", summary="List jobs", response_model=list[JobResponse])
def list_jobs(
    service: JobServiceDep,
    project_id: str | None = Query(None, description="Filter by project"),
) -> list[JobResponse]:
    return [JobResponse.model_validate(job) for job in service.list_jobs(project_id)]


@router.get("/{job_id}", summary="Get job", response_model=JobResponse)
def get_job(job_id: str, service: JobServiceDep) -> JobResponse:
    return JobResponse.model_validate(service.get_job(job_id))


@router.get(
    "/{job_id}/status",
    summary="Derived job status",
    description="Status derived live from the job's work orders.",
    response_model=JobStatusResponse,
)
def get_job_status(job_id: str, service: JobServiceDep) -> JobStatusResponse:
    return JobStatusResponse(job_id=job_id, status=service.get_status(job_id))


@router.get(
    "/{job_id}/work-orders",
    summary="Work orders of a job",
    response_model=list[WorkOrderResponse],
)
def list_job_work_orders(job_id: str, service: JobServiceDep) -> list[WorkOrderResponse]:
    return [WorkOrderResponse.model_validate(wo) for wo in service.work_orders(job_id)]
