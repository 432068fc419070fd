"""
Schedule view read model.

One entry per work order that has a resource, re-derived in full from the
work order and resource records every time either changes. Production
orders planned outside their resource's operating hours start at the next
opening; downtime orders keep their window.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ...shared.base import utc_now
from ..entities.resource import Resource
from ..entities.work_order import WorkOrder
from ..value_objects.duration import end_time
from ..value_objects.enums import WorkOrderKind, WorkOrderStatus


class ScheduleViewEntry(BaseModel):
    """Denormalized timeline row for a resource-assigned work order."""

    work_order_id: str
    job_id: str
    resource_id: str
    resource_name: str
    kind: WorkOrderKind = WorkOrderKind.PRODUCTION
    status: WorkOrderStatus

    planned_start: datetime
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

    @classmethod
    def derive(cls, work_order: WorkOrder, resource: Resource) -> "ScheduleViewEntry":
        if work_order.resource_id != resource.id:
            raise ValueError(
                f"Work order {work_order.id} is not on resource {resource.id}"
            )
        planned_start = (
            work_order.scheduled_start or work_order.assigned_at or work_order.created_at
        )
        if resource.operational_hours and work_order.kind == WorkOrderKind.PRODUCTION:
            planned_start = resource.operational_hours.next_available_start(planned_start)
        return cls(
            work_order_id=work_order.id,
            job_id=work_order.job_id,
            resource_id=resource.id,
            resource_name=resource.name,
            kind=work_order.kind,
            status=work_order.status,
            planned_start=planned_start,
            planned_end=end_time(planned_start, work_order.estimated_duration_min),
            estimated_duration_min=work_order.estimated_duration_min,
            target_qty=work_order.target_qty,
            completed_qty=work_order.completed_qty,
            assigned_at=work_order.assigned_at,
            started_at=work_order.started_at,
            completed_at=work_order.completed_at,
            remainder_of=work_order.remainder_of,
            source_version=work_order.version,
            resource_version=resource.version,
        )

    @property
    def derivation_key(self) -> tuple[int, int]:
        return (self.source_version, self.resource_version)

    def supersedes(self, stored: "ScheduleViewEntry | None") -> bool:
        """
        False when the stored entry already reflects an equal-or-newer derivation.

        The source version decides; the resource version only breaks ties, so
        a newer resource never carries older work order data over a newer one.
        """
        if stored is None:
            return True
        return self.derivation_key > stored.derivation_key
