"""
SQLModel table definitions for the scheduling store.

Source records (jobs, resources, work orders, time entries, queue entries,
downtime windows) are written by application services; the change feed and
checkpoints are the transactional outbox; the schedule view, audit ledger and
reconciliation flags are written only by change-feed consumers.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, UniqueConstraint
from sqlmodel import Column, Field, SQLModel

from linestart.domain.scheduling.value_objects.enums import (
    ChangeAction,
    DowntimeProvenance,
    JobStatus,
    WorkOrderKind,
    WorkOrderStatus,
)
from linestart.domain.shared.base import utc_now


class VersionedModel(SQLModel):
    """Base model for records written with compare-and-set."""

    id: str = Field(primary_key=True, max_length=64)
    version: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime | None = None


# ---------------------------------------------------------------------------
# Source records
# ---------------------------------------------------------------------------
class JobRecord(VersionedModel, table=True):
    __tablename__ = "jobs"

    project_id: str | None = Field(default=None, index=True)
    quantity: int = Field(ge=1)
    custom_field_values: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    status: JobStatus = Field(default=JobStatus.UNASSIGNED)
    created_by: str | None = None


class ResourceRecord(VersionedModel, table=True):
    __tablename__ = "resources"

    uid: str | None = Field(default=None, index=True)
    name: str = Field(max_length=100)
    setup_minutes: float = Field(default=0)
    units_per_hour: float
    operational_hours: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))

    is_down: bool = Field(default=False)
    down_since: datetime | None = None
    down_reason: str | None = None
    down_provenance: DowntimeProvenance | None = None
    down_work_order_id: str | None = None


class WorkOrderRecord(VersionedModel, table=True):
    __tablename__ = "work_orders"

    job_id: str = Field(index=True)
    resource_id: str | None = Field(default=None, index=True)
    kind: WorkOrderKind = Field(default=WorkOrderKind.PRODUCTION)
    provenance: DowntimeProvenance | None = None
    status: WorkOrderStatus = Field(default=WorkOrderStatus.QUEUED, index=True)

    target_qty: int = Field(ge=1)
    completed_qty: int = Field(default=0, ge=0)
    estimated_duration_min: int = Field(default=0, ge=0)
    scheduled_start: datetime | None = None

    assigned_by: str | None = None
    assigned_at: datetime | None = None
    started_by: str | None = None
    started_at: datetime | None = None
    completed_by: str | None = None
    completed_at: datetime | None = None

    remainder_of: str | None = Field(default=None, index=True)
    reason: str | None = None


class TimeEntryRecord(SQLModel, table=True):
    __tablename__ = "time_entries"

    id: str = Field(primary_key=True, max_length=64)
    work_order_id: str = Field(index=True)
    actor_id: str
    started_at: datetime
    ended_at: datetime | None = None
    quantity_completed: int = Field(default=0, ge=0)


class ResourceQueueEntryRecord(SQLModel, table=True):
    __tablename__ = "resource_queue_entries"

    work_order_id: str = Field(primary_key=True, max_length=64)
    resource_id: str = Field(index=True)
    position: int = Field(ge=1)
    added_at: datetime = Field(default_factory=utc_now)


class DowntimeWindowRecord(SQLModel, table=True):
    __tablename__ = "downtime_windows"

    id: int | None = Field(default=None, primary_key=True)
    resource_id: str = Field(index=True)
    started_at: datetime
    ended_at: datetime
    reason: str | None = None
    provenance: DowntimeProvenance = Field(default=DowntimeProvenance.UNSCHEDULED)
    work_order_id: str | None = None


# ---------------------------------------------------------------------------
# Change feed (transactional outbox)
# ---------------------------------------------------------------------------
class ChangeEventRecord(SQLModel, table=True):
    __tablename__ = "change_events"

    sequence: int | None = Field(default=None, primary_key=True)
    event_id: str = Field(unique=True, max_length=64)
    correlation_id: str = Field(index=True)
    causation_id: str | None = None
    action: ChangeAction
    actor_id: str
    job_id: str | None = Field(default=None, index=True)
    work_order_id: str | None = Field(default=None, index=True)
    resource_id: str | None = Field(default=None, index=True)
    before: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    after: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    source_version: int | None = None
    occurred_at: datetime = Field(default_factory=utc_now)


class ConsumerCheckpointRecord(SQLModel, table=True):
    __tablename__ = "consumer_checkpoints"

    consumer: str = Field(primary_key=True, max_length=64)
    last_sequence: int = Field(default=0, ge=0)
    updated_at: datetime = Field(default_factory=utc_now)


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------
class ScheduleViewRecord(SQLModel, table=True):
    __tablename__ = "schedule_view"

    work_order_id: str = Field(primary_key=True, max_length=64)
    job_id: str = Field(index=True)
    resource_id: str = Field(index=True)
    resource_name: str
    kind: WorkOrderKind = Field(default=WorkOrderKind.PRODUCTION)
    status: WorkOrderStatus

    planned_start: datetime = Field(index=True)
    planned_end: datetime
    estimated_duration_min: int = Field(ge=0)
    target_qty: int = Field(ge=1)
    completed_qty: int = Field(ge=0)

    assigned_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    remainder_of: str | None = None

    source_version: int = Field(ge=1)
    resource_version: int = Field(ge=1)
    synced_at: datetime = Field(default_factory=utc_now)


class AuditRecordRow(SQLModel, table=True):
    __tablename__ = "audit_records"

    sequence: int | None = Field(default=None, primary_key=True)
    event_id: str = Field(unique=True, max_length=64)
    correlation_id: str = Field(index=True)
    causation_id: str | None = None
    actor_id: str
    action: ChangeAction
    job_id: str | None = Field(default=None, index=True)
    work_order_id: str | None = Field(default=None, index=True)
    resource_id: str | None = None
    before: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    after: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    ts: datetime


class ReconciliationFlagRecord(SQLModel, table=True):
    __tablename__ = "reconciliation_flags"
    __table_args__ = (UniqueConstraint("kind", "subject_id", name="uq_flag_subject"),)

    id: int | None = Field(default=None, primary_key=True)
    kind: str = Field(max_length=32)
    subject_id: str = Field(index=True)
    detail: str = ""
    created_at: datetime = Field(default_factory=utc_now)
    resolved_at: datetime | None = None
