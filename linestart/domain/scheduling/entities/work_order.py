"""Work order aggregate: a unit of assignable work and its state machine."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from pydantic import Field

from ...shared.base import AggregateRoot, Entity, utc_now
from ...shared.exceptions import InvalidQuantity, InvalidTransition
from ..events.domain_events import ChangeEvent
from ..value_objects.duration import estimated_duration, minutes_between, whole_minutes
from ..value_objects.enums import (
    ChangeAction,
    DowntimeProvenance,
    WorkOrderKind,
    WorkOrderStatus,
)

if TYPE_CHECKING:
    from .resource import Resource

SNAPSHOT_FIELDS = {
    "resource_id",
    "kind",
    "status",
    "target_qty",
    "completed_qty",
    "estimated_duration_min",
    "scheduled_start",
    "started_by",
    "started_at",
    "completed_by",
    "completed_at",
    "remainder_of",
}


class TimeEntry(Entity):
    """One time-tracking interval of an operator on a work order."""

    work_order_id: str
    actor_id: str
    started_at: datetime
    ended_at: datetime | None = None
    quantity_completed: int = Field(default=0, ge=0)

    @property
    def is_open(self) -> bool:
        return self.ended_at is None

    def close(self, now: datetime, quantity: int = 0) -> None:
        self.ended_at = now
        self.quantity_completed = quantity


def total_elapsed_minutes(entries: Iterable[TimeEntry]) -> int:
    """Whole minutes logged across closed entries; open entries are not counted."""
    elapsed = sum(
        (entry.ended_at - entry.started_at for entry in entries if entry.ended_at),
        timedelta(),
    )
    return whole_minutes(elapsed)


class WorkOrder(AggregateRoot):
    """
    A single assignable unit of production or downtime work.

    All mutations go through the transition methods below; each one checks
    its precondition against the current status, applies the change and
    records a ``ChangeEvent`` carrying before/after snapshots. Persisting the
    result is a compare-and-set on ``version`` done by the repository.
    """

    job_id: str
    resource_id: str | None = None
    kind: WorkOrderKind = WorkOrderKind.PRODUCTION
    provenance: DowntimeProvenance | None = None
    status: WorkOrderStatus = WorkOrderStatus.QUEUED

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

    remainder_of: str | None = None
    reason: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime | None = None

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    @classmethod
    def assign(
        cls,
        *,
        job_id: str,
        resource: Resource,
        target_qty: int,
        actor_id: str,
        now: datetime,
        scheduled_start: datetime | None = None,
    ) -> WorkOrder:
        """Create a queued production order on a resource."""
        if target_qty < 1:
            raise InvalidQuantity("target_qty", target_qty, "must be at least 1")

        work_order = cls(
            job_id=job_id,
            resource_id=resource.id,
            target_qty=target_qty,
            estimated_duration_min=estimated_duration(
                resource.setup_minutes, target_qty, resource.units_per_hour
            ),
            scheduled_start=scheduled_start,
            assigned_by=actor_id,
            assigned_at=now,
            created_at=now,
        )
        work_order._record(ChangeAction.JOB_ASSIGNED, actor_id, None, source_version=1)
        return work_order

    @classmethod
    def remainder_for(
        cls,
        origin: WorkOrder,
        *,
        remainder_id: str,
        actor_id: str,
        now: datetime,
        correlation_id: str | None = None,
    ) -> WorkOrder:
        """Queued, unassigned order carrying what a partial order left undone."""
        if origin.status != WorkOrderStatus.PARTIAL:
            raise InvalidTransition(origin.id, origin.status.value, "split")

        remainder = cls(
            id=remainder_id,
            job_id=origin.job_id,
            kind=origin.kind,
            target_qty=origin.target_qty - origin.completed_qty,
            remainder_of=origin.id,
            created_at=now,
        )
        remainder._record(
            ChangeAction.WO_CREATED_REMAINDER,
            actor_id,
            None,
            source_version=1,
            correlation_id=correlation_id,
        )
        return remainder

    @classmethod
    def open_downtime(
        cls,
        *,
        job_id: str,
        resource_id: str,
        since: datetime,
        actor_id: str,
        reason: str | None = None,
    ) -> WorkOrder:
        """Active downtime order occupying the resource from ``since`` onwards."""
        return cls(
            job_id=job_id,
            resource_id=resource_id,
            kind=WorkOrderKind.DOWNTIME,
            provenance=DowntimeProvenance.UNSCHEDULED,
            status=WorkOrderStatus.ACTIVE,
            target_qty=1,
            scheduled_start=since,
            assigned_by=actor_id,
            assigned_at=since,
            started_by=actor_id,
            started_at=since,
            created_at=since,
            reason=reason,
        )

    @classmethod
    def schedule_downtime(
        cls,
        *,
        job_id: str,
        resource_id: str,
        start: datetime,
        end: datetime,
        actor_id: str,
        now: datetime,
        reason: str | None = None,
    ) -> WorkOrder:
        """Queued, pre-planned downtime order covering ``start``..``end``."""
        if end <= start:
            raise InvalidQuantity("end", end.isoformat(), "must be after start")

        work_order = cls(
            job_id=job_id,
            resource_id=resource_id,
            kind=WorkOrderKind.DOWNTIME,
            provenance=DowntimeProvenance.SCHEDULED,
            target_qty=1,
            estimated_duration_min=minutes_between(start, end),
            scheduled_start=start,
            assigned_by=actor_id,
            assigned_at=now,
            created_at=now,
            reason=reason,
        )
        work_order._record(
            ChangeAction.DOWNTIME_SCHEDULED, actor_id, None, source_version=1
        )
        return work_order

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def start(self, actor_id: str, now: datetime) -> ChangeAction:
        """queued -> active, or paused -> active (resume)."""
        self._require_production("start")
        self._require_transition(WorkOrderStatus.ACTIVE, "start")
        if self.resource_id is None:
            raise InvalidTransition(
                self.id, self.status.value, "start", "no resource assigned"
            )

        before = self.snapshot()
        resuming = self.status == WorkOrderStatus.PAUSED
        self.status = WorkOrderStatus.ACTIVE
        if not resuming:
            self.started_by = actor_id
            self.started_at = now
        self.modified_at = now

        action = ChangeAction.WO_RESUMED if resuming else ChangeAction.WO_STARTED
        self._record(action, actor_id, before)
        return action

    def pause(self, actor_id: str, now: datetime) -> None:
        self._require_production("pause")
        self._require_transition(WorkOrderStatus.PAUSED, "pause")

        before = self.snapshot()
        self.status = WorkOrderStatus.PAUSED
        self.modified_at = now
        self._record(ChangeAction.WO_PAUSED, actor_id, before)

    def complete(
        self,
        delivered: int,
        actor_id: str,
        now: datetime,
        correlation_id: str | None = None,
    ) -> WorkOrderStatus:
        """
        Record the quantity delivered in this session and close the order.

        Ends ``completed`` when the target is reached, ``partial`` otherwise;
        the caller is responsible for creating the remainder of a partial.
        """
        self._require_production("complete")
        # Completed and partial share their source states
        self._require_transition(WorkOrderStatus.COMPLETED, "complete")
        if delivered <= 0:
            raise InvalidQuantity(
                "quantity_delivered", delivered, "must be greater than 0"
            )
        new_completed = self.completed_qty + delivered
        if new_completed > self.target_qty:
            raise InvalidQuantity(
                "quantity_delivered",
                delivered,
                f"only {self.outstanding_qty} of {self.target_qty} outstanding",
            )

        before = self.snapshot()
        self.completed_qty = new_completed
        if new_completed == self.target_qty:
            self.status = WorkOrderStatus.COMPLETED
            action = ChangeAction.WO_COMPLETED
        else:
            self.status = WorkOrderStatus.PARTIAL
            action = ChangeAction.WO_PARTIAL
        self.completed_by = actor_id
        self.completed_at = now
        self.modified_at = now
        self.check_invariants()

        self._record(action, actor_id, before, correlation_id=correlation_id)
        return self.status

    def reassign(self, resource: Resource, actor_id: str, now: datetime) -> None:
        """Put a queued, unassigned order (a remainder) on a resource."""
        if self.status != WorkOrderStatus.QUEUED:
            raise InvalidTransition(self.id, self.status.value, "reassign")
        if self.resource_id is not None:
            raise InvalidTransition(
                self.id,
                self.status.value,
                "reassign",
                f"already assigned to resource {self.resource_id}",
            )

        before = self.snapshot()
        self.resource_id = resource.id
        self.estimated_duration_min = estimated_duration(
            resource.setup_minutes, self.outstanding_qty, resource.units_per_hour
        )
        self.assigned_by = actor_id
        self.assigned_at = now
        self.modified_at = now
        self._record(ChangeAction.WO_REASSIGNED, actor_id, before)

    def unassign(self, actor_id: str, now: datetime) -> None:
        """Withdraw an open order; the repository deletes it."""
        if not self.status.is_open:
            raise InvalidTransition(self.id, self.status.value, "unassign")
        if self.kind == WorkOrderKind.DOWNTIME and self.status != WorkOrderStatus.QUEUED:
            raise InvalidTransition(
                self.id, self.status.value, "unassign", "clear the downtime instead"
            )

        before = self.snapshot()
        self.modified_at = now
        self._record(ChangeAction.WO_UNASSIGNED, actor_id, before, after=None)

    def begin_downtime(self, now: datetime) -> None:
        """Scheduled downtime whose window has opened becomes active."""
        if self.kind != WorkOrderKind.DOWNTIME or self.status != WorkOrderStatus.QUEUED:
            raise InvalidTransition(self.id, self.status.value, "begin downtime")
        self.status = WorkOrderStatus.ACTIVE
        self.started_by = self.assigned_by
        self.started_at = self.scheduled_start or now
        self.modified_at = now

    def close_downtime(self, actor_id: str, now: datetime) -> None:
        if self.kind != WorkOrderKind.DOWNTIME:
            raise InvalidTransition(self.id, self.status.value, "close downtime")
        self._require_transition(WorkOrderStatus.COMPLETED, "close downtime")
        self.completed_qty = self.target_qty
        self.status = WorkOrderStatus.COMPLETED
        self.completed_by = actor_id
        self.completed_at = now
        self.modified_at = now

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def outstanding_qty(self) -> int:
        return self.target_qty - self.completed_qty

    def check_invariants(self) -> None:
        """Quantity/status invariants; remainder existence is a store-level check."""
        if self.completed_qty > self.target_qty:
            raise InvalidQuantity(
                "completed_qty", self.completed_qty, "exceeds target quantity"
            )
        if (self.status == WorkOrderStatus.COMPLETED) != (
            self.completed_qty == self.target_qty
        ):
            raise InvalidTransition(
                self.id,
                self.status.value,
                "hold",
                "completed status requires the full target quantity",
            )
        if self.status == WorkOrderStatus.PARTIAL and not (
            0 < self.completed_qty < self.target_qty
        ):
            raise InvalidTransition(
                self.id, self.status.value, "hold", "partial needs 0 < completed < target"
            )

    def snapshot(self) -> dict[str, Any]:
        return self.model_dump(mode="json", include=SNAPSHOT_FIELDS)

    def _require_transition(self, target: WorkOrderStatus, attempted: str) -> None:
        if not self.status.can_transition_to(target):
            raise InvalidTransition(self.id, self.status.value, attempted)

    def _require_production(self, attempted: str) -> None:
        if self.kind == WorkOrderKind.DOWNTIME:
            raise InvalidTransition(
                self.id,
                self.status.value,
                attempted,
                "downtime work orders follow their resource's downtime",
            )

    def _record(
        self,
        action: ChangeAction,
        actor_id: str,
        before: dict[str, Any] | None,
        *,
        source_version: int | None = None,
        correlation_id: str | None = None,
        after: Any = ...,
    ) -> None:
        extra = {"correlation_id": correlation_id} if correlation_id else {}
        self.add_domain_event(
            ChangeEvent(
                action=action,
                actor_id=actor_id,
                job_id=self.job_id,
                work_order_id=self.id,
                resource_id=self.resource_id,
                before=before,
                after=self.snapshot() if after is ... else after,
                source_version=source_version or self.next_version,
                **extra,
            )
        )
