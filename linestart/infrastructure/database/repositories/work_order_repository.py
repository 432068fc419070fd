"""
Work order repository providing compare-and-set persistence and the queries
the services and consumers need.
"""

from typing import Any

from sqlmodel import select

from linestart.domain.scheduling.entities.work_order import TimeEntry, WorkOrder
from linestart.domain.scheduling.value_objects.enums import (
    DowntimeProvenance,
    WorkOrderKind,
    WorkOrderStatus,
)
from linestart.infrastructure.database.models import TimeEntryRecord, WorkOrderRecord

from .base import VersionedRepository


class WorkOrderRepository(VersionedRepository[WorkOrder, WorkOrderRecord]):
    entity_name = "WorkOrder"

    @property
    def record_class(self) -> type[WorkOrderRecord]:
        return WorkOrderRecord

    def to_domain(self, record: WorkOrderRecord) -> WorkOrder:
        return WorkOrder.model_validate(record, from_attributes=True)

    def to_columns(self, aggregate: WorkOrder) -> dict[str, Any]:
        return aggregate.model_dump(exclude={"id", "version"})

    def for_job(self, job_id: str) -> list[WorkOrder]:
        statement = (
            select(WorkOrderRecord)
            .where(WorkOrderRecord.job_id == job_id)
            .order_by(WorkOrderRecord.created_at, WorkOrderRecord.id)
            .execution_options(populate_existing=True)
        )
        return [self.to_domain(record) for record in self.session.exec(statement)]

    def for_resource(self, resource_id: str) -> list[WorkOrder]:
        statement = (
            select(WorkOrderRecord)
            .where(WorkOrderRecord.resource_id == resource_id)
            .execution_options(populate_existing=True)
        )
        return [self.to_domain(record) for record in self.session.exec(statement)]

    def remainder_of(self, origin_id: str) -> WorkOrder | None:
        statement = (
            select(WorkOrderRecord)
            .where(WorkOrderRecord.remainder_of == origin_id)
            .execution_options(populate_existing=True)
        )
        record = self.session.exec(statement).first()
        return None if record is None else self.to_domain(record)

    def partials_without_remainder(self) -> list[WorkOrder]:
        """Partial work orders whose remainder is missing."""
        remainder_origins = select(WorkOrderRecord.remainder_of).where(
            WorkOrderRecord.remainder_of.is_not(None)  # type: ignore[union-attr]
        )
        statement = select(WorkOrderRecord).where(
            WorkOrderRecord.status == WorkOrderStatus.PARTIAL,
            WorkOrderRecord.id.not_in(remainder_origins),  # type: ignore[attr-defined]
        )
        return [self.to_domain(record) for record in self.session.exec(statement)]

    def pending_scheduled_downtime(self) -> list[WorkOrder]:
        statement = select(WorkOrderRecord).where(
            WorkOrderRecord.kind == WorkOrderKind.DOWNTIME,
            WorkOrderRecord.status.in_(  # type: ignore[attr-defined]
                [WorkOrderStatus.QUEUED, WorkOrderStatus.ACTIVE]
            ),
            WorkOrderRecord.provenance == DowntimeProvenance.SCHEDULED,
        )
        return [self.to_domain(record) for record in self.session.exec(statement)]


class TimeEntryRepository:
    """Time-tracking intervals of work orders."""

    def __init__(self, session):
        self.session = session

    def add(self, entry: TimeEntry) -> None:
        self.session.add(TimeEntryRecord(**entry.model_dump()))
        self.session.flush()

    def open_for(self, work_order_id: str) -> list[TimeEntry]:
        statement = select(TimeEntryRecord).where(
            TimeEntryRecord.work_order_id == work_order_id,
            TimeEntryRecord.ended_at.is_(None),  # type: ignore[union-attr]
        )
        return [
            TimeEntry.model_validate(record, from_attributes=True)
            for record in self.session.exec(statement)
        ]

    def for_work_order(self, work_order_id: str) -> list[TimeEntry]:
        statement = (
            select(TimeEntryRecord)
            .where(TimeEntryRecord.work_order_id == work_order_id)
            .order_by(TimeEntryRecord.started_at)
        )
        return [
            TimeEntry.model_validate(record, from_attributes=True)
            for record in self.session.exec(statement)
        ]

    def save(self, entry: TimeEntry) -> None:
        record = self.session.get(TimeEntryRecord, entry.id)
        if record is None:
            self.add(entry)
            return
        record.ended_at = entry.ended_at
        record.quantity_completed = entry.quantity_completed
        self.session.add(record)

    def delete_open_for(self, work_order_id: str) -> int:
        statement = select(TimeEntryRecord).where(
            TimeEntryRecord.work_order_id == work_order_id,
            TimeEntryRecord.ended_at.is_(None),  # type: ignore[union-attr]
        )
        records = list(self.session.exec(statement))
        for record in records:
            self.session.delete(record)
        return len(records)
