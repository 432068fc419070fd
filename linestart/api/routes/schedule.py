"""Schedule read endpoints."""

from datetime import datetime

from fastapi import APIRouter, Query

from linestart.api.deps import ScheduleServiceDep
from linestart.api.schemas import ScheduleItemResponse
from linestart.application.services import ScheduleItem

router = APIRouter(prefix="/schedule", tags=["schedule"])


def _to_response(item: ScheduleItem) -> ScheduleItemResponse:
    entry, effective = item.entry, item.effective
    return ScheduleItemResponse(
        work_order_id=entry.work_order_id,
        job_id=entry.job_id,
        resource_id=entry.resource_id,
        resource_name=entry.resource_name,
        kind=entry.kind,
        status=entry.status,
        planned_start=entry.planned_start,
        planned_end=entry.planned_end,
        effective_start=effective.start,
        effective_end=effective.end,
        pushed_minutes=effective.pushed.total_seconds() / 60,
        is_live=effective.is_live,
        target_qty=entry.target_qty,
        completed_qty=entry.completed_qty,
        remainder_of=entry.remainder_of,
    )


@router.get(
    "",
    summary="Query the schedule",
    description=(
        "Entries overlapping the range with downtime applied at the current "
        "instant, sorted by effective start."
    ),
    response_model=list[ScheduleItemResponse],
)
def query_schedule(
    service: ScheduleServiceDep,
    start: datetime | None = Query(None, description="Range start"),
    end: datetime | None = Query(None, description="Range end"),
    resource_id: str | None = Query(None, description="Filter by resource"),
) -> list[ScheduleItemResponse]:
    return [_to_response(item) for item in service.query(start, end, resource_id)]


@router.get("/{work_order_id}", response_model=ScheduleItemResponse)
def get_effective_schedule(
    work_order_id: str, service: ScheduleServiceDep
) -> ScheduleItemResponse:
    return _to_response(service.effective_schedule(work_order_id))
