"""Job aggregate and the derivation of its status from its work orders."""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import Field

from ...shared.base import AggregateRoot, utc_now
from ..events.domain_events import ChangeEvent
from ..value_objects.enums import ChangeAction, JobStatus, WorkOrderStatus
from .work_order import WorkOrder


class Job(AggregateRoot):
    """
    A production job.

    ``status`` is a cached projection of the job's work orders, written by
    the job status projector; ``derive_job_status`` is the source of truth.
    """

    project_id: str | None = None
    quantity: int = Field(ge=1)
    custom_field_values: dict[str, Any] = Field(default_factory=dict)
    status: JobStatus = JobStatus.UNASSIGNED
    created_by: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime | None = None

    @classmethod
    def create(
        cls,
        *,
        quantity: int,
        actor_id: str,
        now: datetime,
        project_id: str | None = None,
        custom_field_values: dict[str, Any] | None = None,
        job_id: str | None = None,
    ) -> "Job":
        extra = {"id": job_id} if job_id else {}
        job = cls(
            project_id=project_id,
            quantity=quantity,
            custom_field_values=custom_field_values or {},
            created_by=actor_id,
            created_at=now,
            **extra,
        )
        job.add_domain_event(
            ChangeEvent(
                action=ChangeAction.JOB_CREATED,
                actor_id=actor_id,
                job_id=job.id,
                after=job.snapshot(),
                source_version=1,
            )
        )
        return job

    def apply_status(
        self,
        status: JobStatus,
        actor_id: str,
        now: datetime,
        causation_id: str | None = None,
    ) -> bool:
        """
        Write the derived status; returns False when it is unchanged.

        The status change starts its own correlation group; ``causation_id``
        names the event that triggered the re-derivation.
        """
        if status == self.status:
            return False

        before = self.snapshot()
        self.status = status
        self.modified_at = now
        self.add_domain_event(
            ChangeEvent(
                action=ChangeAction.JOB_STATUS_CHANGED,
                actor_id=actor_id,
                job_id=self.id,
                before=before,
                after=self.snapshot(),
                source_version=self.next_version,
                causation_id=causation_id,
            )
        )
        return True

    def snapshot(self) -> dict[str, Any]:
        return self.model_dump(
            mode="json",
            include={"project_id", "quantity", "custom_field_values", "status"},
        )


def derive_job_status(work_orders: Iterable[WorkOrder]) -> JobStatus:
    """
    Status of a job from the full set of its work orders.

    Order-independent, so replayed or reordered change events converge on
    the same answer.
    """
    orders = list(work_orders)
    if not orders:
        return JobStatus.UNASSIGNED
    if any(order.status == WorkOrderStatus.ACTIVE for order in orders):
        return JobStatus.IN_PROGRESS

    remainder_origins = {order.remainder_of for order in orders if order.remainder_of}
    if all(
        order.status == WorkOrderStatus.COMPLETED
        or (order.status == WorkOrderStatus.PARTIAL and order.id in remainder_origins)
        for order in orders
    ):
        return JobStatus.FINISHED
    return JobStatus.ASSIGNED
