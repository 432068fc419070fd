"""
API Data Transfer Objects.

Request bodies validate shape only; domain rules (positive rates, quantity
bounds, custom field schema) are enforced by the services so the HTTP and
in-process surfaces reject the same inputs.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from linestart.domain.scheduling.value_objects.enums import (
    ChangeAction,
    DowntimeProvenance,
    JobStatus,
    WorkOrderKind,
    WorkOrderStatus,
)
from linestart.domain.scheduling.value_objects.operational_hours import OperationalHours


class ResponseModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------
class CreateJobRequest(BaseModel):
    quantity: int = Field(..., description="Units to produce")
    project_id: str | None = Field(None, max_length=64)
    custom_field_values: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "quantity": 100,
                "project_id": "PRJ-2024-017",
                "custom_field_values": {"customer": "Acme", "rush": True},
            }
        }
    )


class JobResponse(ResponseModel):
    id: str
    version: int
    project_id: str | None
    quantity: int
    status: JobStatus
    custom_field_values: dict[str, Any]
    created_by: str | None
    created_at: datetime
    modified_at: datetime | None


class JobStatusResponse(BaseModel):
    job_id: str
    status: JobStatus


# ---------------------------------------------------------------------------
# Work orders
# ---------------------------------------------------------------------------
class AssignRequest(BaseModel):
    job_id: str
    resource_id: str
    target_qty: int | None = Field(None, description="Defaults to the job quantity")
    scheduled_start: datetime | None = None


class VersionedRequest(BaseModel):
    expected_version: int | None = Field(
        None, description="Version the caller read; stale reads are rejected"
    )


class CompleteRequest(VersionedRequest):
    quantity_delivered: int


class ReassignRequest(VersionedRequest):
    resource_id: str


class WorkOrderResponse(ResponseModel):
    id: str
    version: int
    job_id: str
    resource_id: str | None
    kind: WorkOrderKind
    provenance: DowntimeProvenance | None
    status: WorkOrderStatus
    target_qty: int
    completed_qty: int
    estimated_duration_min: int
    scheduled_start: datetime | None
    assigned_by: str | None
    assigned_at: datetime | None
    started_by: str | None
    started_at: datetime | None
    completed_by: str | None
    completed_at: datetime | None
    remainder_of: str | None
    reason: str | None


class CompletionResponse(BaseModel):
    work_order: WorkOrderResponse
    remainder: WorkOrderResponse | None
    correlation_id: str


class TimeEntryResponse(ResponseModel):
    id: str
    work_order_id: str
    actor_id: str
    started_at: datetime
    ended_at: datetime | None
    quantity_completed: int


class ElapsedTimeResponse(BaseModel):
    work_order_id: str
    elapsed_minutes: int


class QueueEntryResponse(ResponseModel):
    resource_id: str
    work_order_id: str
    position: int
    added_at: datetime


# ---------------------------------------------------------------------------
# Resources and downtime
# ---------------------------------------------------------------------------
class CreateResourceRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    units_per_hour: float
    setup_minutes: float = 0
    uid: str | None = Field(None, max_length=64)
    operational_hours: OperationalHours | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "CNC Mill 3",
                "units_per_hour": 100,
                "setup_minutes": 15,
                "uid": "CNC-03",
                "operational_hours": {
                    "start_time": "06:00",
                    "end_time": "22:00",
                    "days_of_week": [0, 1, 2, 3, 4],
                },
            }
        }
    )


class UpdateResourceRequest(VersionedRequest):
    name: str | None = Field(None, min_length=1, max_length=100)
    units_per_hour: float | None = None
    setup_minutes: float | None = None
    # Explicit null clears the window; omitted leaves it unchanged
    operational_hours: OperationalHours | None = None


class DowntimeStateResponse(ResponseModel):
    is_down: bool
    since: datetime | None
    reason: str | None
    provenance: DowntimeProvenance | None
    work_order_id: str | None


class ResourceResponse(ResponseModel):
    id: str
    version: int
    uid: str | None
    name: str
    setup_minutes: float
    units_per_hour: float
    operational_hours: OperationalHours | None
    downtime: DowntimeStateResponse
    created_at: datetime
    modified_at: datetime | None


class ReportDowntimeRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class ScheduleDowntimeRequest(BaseModel):
    start: datetime
    end: datetime
    reason: str | None = Field(None, max_length=500)


class DowntimeWindowResponse(ResponseModel):
    resource_id: str
    started_at: datetime
    ended_at: datetime | None
    reason: str | None
    provenance: DowntimeProvenance
    work_order_id: str | None


class ExpandDowntimeResponse(BaseModel):
    changed: list[str]


# ---------------------------------------------------------------------------
# Schedule and audit
# ---------------------------------------------------------------------------
class ScheduleItemResponse(BaseModel):
    work_order_id: str
    job_id: str
    resource_id: str
    resource_name: str
    kind: WorkOrderKind
    status: WorkOrderStatus
    planned_start: datetime
    planned_end: datetime
    effective_start: datetime
    effective_end: datetime
    pushed_minutes: float
    is_live: bool
    target_qty: int
    completed_qty: int
    remainder_of: str | None


class AuditRecordResponse(ResponseModel):
    sequence: int | None
    event_id: str
    correlation_id: str
    causation_id: str | None
    actor_id: str
    action: ChangeAction
    job_id: str | None
    work_order_id: str | None
    resource_id: str | None
    before: dict[str, Any] | None
    after: dict[str, Any] | None
    ts: datetime
