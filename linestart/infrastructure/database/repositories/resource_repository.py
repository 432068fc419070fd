"""
Resource repository plus the queue and downtime-window stores that hang off
a resource.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import delete
from sqlmodel import Session, select

from linestart.domain.scheduling.entities.resource import (
    Resource,
    ResourceQueueEntry,
    next_queue_position,
    ordered,
)
from linestart.domain.scheduling.value_objects.downtime import (
    DowntimeState,
    DowntimeWindow,
)
from linestart.domain.scheduling.value_objects.operational_hours import OperationalHours
from linestart.infrastructure.database.models import (
    DowntimeWindowRecord,
    ResourceQueueEntryRecord,
    ResourceRecord,
)

from .base import VersionedRepository


class ResourceRepository(VersionedRepository[Resource, ResourceRecord]):
    entity_name = "Resource"

    @property
    def record_class(self) -> type[ResourceRecord]:
        return ResourceRecord

    def to_domain(self, record: ResourceRecord) -> Resource:
        if record.is_down:
            downtime = DowntimeState.down(
                record.down_since,
                record.down_reason,
                record.down_provenance,
                record.down_work_order_id,
            )
        else:
            downtime = DowntimeState.up()
        return Resource(
            id=record.id,
            version=record.version,
            uid=record.uid,
            name=record.name,
            setup_minutes=record.setup_minutes,
            units_per_hour=record.units_per_hour,
            operational_hours=(
                OperationalHours.model_validate(record.operational_hours)
                if record.operational_hours
                else None
            ),
            downtime=downtime,
            created_at=record.created_at,
            modified_at=record.modified_at,
        )

    def to_columns(self, aggregate: Resource) -> dict[str, Any]:
        downtime = aggregate.downtime
        return {
            "uid": aggregate.uid,
            "name": aggregate.name,
            "setup_minutes": aggregate.setup_minutes,
            "units_per_hour": aggregate.units_per_hour,
            "operational_hours": (
                aggregate.operational_hours.model_dump(mode="json")
                if aggregate.operational_hours
                else None
            ),
            "is_down": downtime.is_down,
            "down_since": downtime.since,
            "down_reason": downtime.reason,
            "down_provenance": downtime.provenance,
            "down_work_order_id": downtime.work_order_id,
            "created_at": aggregate.created_at,
            "modified_at": aggregate.modified_at,
        }

    def list_all(self) -> list[Resource]:
        statement = (
            select(ResourceRecord)
            .order_by(ResourceRecord.name, ResourceRecord.id)
            .execution_options(populate_existing=True)
        )
        return [self.to_domain(record) for record in self.session.exec(statement)]

    def down_resources(self) -> list[Resource]:
        statement = (
            select(ResourceRecord)
            .where(ResourceRecord.is_down.is_(True))  # type: ignore[attr-defined]
            .execution_options(populate_existing=True)
        )
        return [self.to_domain(record) for record in self.session.exec(statement)]


class QueueRepository:
    """Per-resource ordered queue entries."""

    def __init__(self, session: Session):
        self.session = session

    def entries_for(self, resource_id: str) -> list[ResourceQueueEntry]:
        statement = select(ResourceQueueEntryRecord).where(
            ResourceQueueEntryRecord.resource_id == resource_id
        )
        return ordered(
            ResourceQueueEntry.model_validate(record, from_attributes=True)
            for record in self.session.exec(statement)
        )

    def append(
        self, resource_id: str, work_order_id: str, now: datetime
    ) -> ResourceQueueEntry:
        """
        Append at ``max(position) + 1``.

        Two concurrent appends may read the same maximum; the tie is
        resolved by the entry ordering.
        """
        statement = select(ResourceQueueEntryRecord.position).where(
            ResourceQueueEntryRecord.resource_id == resource_id
        )
        positions = list(self.session.exec(statement))
        entry = ResourceQueueEntry(
            resource_id=resource_id,
            work_order_id=work_order_id,
            position=next_queue_position(positions),
            added_at=now,
        )
        self.session.add(ResourceQueueEntryRecord(**entry.model_dump()))
        self.session.flush()
        return entry

    def remove(self, work_order_id: str) -> bool:
        result = self.session.connection().execute(
            delete(ResourceQueueEntryRecord).where(
                ResourceQueueEntryRecord.work_order_id == work_order_id
            )
        )
        return result.rowcount > 0

    def remove_for_resource(self, resource_id: str) -> int:
        result = self.session.connection().execute(
            delete(ResourceQueueEntryRecord).where(
                ResourceQueueEntryRecord.resource_id == resource_id
            )
        )
        return result.rowcount


class DowntimeWindowRepository:
    """Closed downtime windows; open windows live on the resource row."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, window: DowntimeWindow) -> None:
        if window.ended_at is None:
            raise ValueError("Only closed downtime windows are stored")
        self.session.add(DowntimeWindowRecord(**window.model_dump()))
        self.session.flush()

    def for_resource(self, resource_id: str) -> list[DowntimeWindow]:
        statement = (
            select(DowntimeWindowRecord)
            .where(DowntimeWindowRecord.resource_id == resource_id)
            .order_by(DowntimeWindowRecord.started_at)
        )
        return [self._to_window(record) for record in self.session.exec(statement)]

    def all(self, resource_id: str | None = None) -> list[DowntimeWindow]:
        statement = select(DowntimeWindowRecord)
        if resource_id is not None:
            statement = statement.where(DowntimeWindowRecord.resource_id == resource_id)
        return [self._to_window(record) for record in self.session.exec(statement)]

    @staticmethod
    def _to_window(record: DowntimeWindowRecord) -> DowntimeWindow:
        return DowntimeWindow(
            resource_id=record.resource_id,
            started_at=record.started_at,
            ended_at=record.ended_at,
            reason=record.reason,
            provenance=record.provenance,
            work_order_id=record.work_order_id,
        )
