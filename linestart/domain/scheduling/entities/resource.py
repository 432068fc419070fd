"""Resource aggregate and its ordered work queue."""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import Field

from ...shared.base import AggregateRoot, ValueObject, utc_now
from ...shared.exceptions import InvalidQuantity, InvalidRate
from ..events.domain_events import ChangeEvent
from ..value_objects.downtime import DowntimeState, DowntimeWindow
from ..value_objects.enums import ChangeAction, DowntimeProvenance
from ..value_objects.operational_hours import OperationalHours


class Resource(AggregateRoot):
    """
    A machine or workstation that executes work orders.

    Setup time and throughput are read when a work order is created; editing
    them never changes existing orders. The downtime state is only changed
    by ``report_downtime`` and ``clear_downtime``.
    Without ``operational_hours`` the resource is available around the clock.
    """

    uid: str | None = None
    name: str = Field(min_length=1, max_length=100)
    setup_minutes: float = Field(default=0, ge=0)
    units_per_hour: float = Field(gt=0)
    operational_hours: OperationalHours | None = None
    downtime: DowntimeState = Field(default_factory=DowntimeState.up)
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime | None = None

    @classmethod
    def register(
        cls,
        *,
        name: str,
        units_per_hour: float,
        setup_minutes: float = 0,
        uid: str | None = None,
        operational_hours: OperationalHours | None = None,
        actor_id: str,
        now: datetime,
    ) -> "Resource":
        _check_configuration(setup_minutes, units_per_hour)
        resource = cls(
            uid=uid,
            name=name,
            setup_minutes=setup_minutes,
            units_per_hour=units_per_hour,
            operational_hours=operational_hours,
            created_at=now,
        )
        resource._record(ChangeAction.RESOURCE_CREATED, actor_id, None, source_version=1)
        return resource

    @property
    def is_down(self) -> bool:
        return self.downtime.is_down

    def reconfigure(
        self,
        *,
        actor_id: str,
        now: datetime,
        name: str | None = None,
        setup_minutes: float | None = None,
        units_per_hour: float | None = None,
        operational_hours: Any = ...,
    ) -> None:
        """Apply the given changes; ``operational_hours=None`` clears the window."""
        _check_configuration(
            self.setup_minutes if setup_minutes is None else setup_minutes,
            self.units_per_hour if units_per_hour is None else units_per_hour,
        )
        before = self.snapshot()
        if name is not None:
            self.name = name
        if setup_minutes is not None:
            self.setup_minutes = setup_minutes
        if units_per_hour is not None:
            self.units_per_hour = units_per_hour
        if operational_hours is not ...:
            self.operational_hours = operational_hours
        self.modified_at = now
        self._record(ChangeAction.RESOURCE_UPDATED, actor_id, before)

    def mark_deleted(self, actor_id: str) -> None:
        self._record(ChangeAction.RESOURCE_DELETED, actor_id, self.snapshot(), after=None)

    def report_downtime(
        self,
        *,
        reason: str | None,
        actor_id: str,
        now: datetime,
        job_id: str,
        work_order_id: str | None = None,
        provenance: DowntimeProvenance = DowntimeProvenance.UNSCHEDULED,
    ) -> bool:
        """
        Mark the resource down from ``now``.

        Returns False when it is already down; the attempt is still recorded
        so concurrent reports all show up in the audit trail.
        """
        before = self.snapshot()
        applied = not self.downtime.is_down
        if applied:
            self.downtime = DowntimeState.down(now, reason, provenance, work_order_id)
            self.modified_at = now
        self._record(
            ChangeAction.DOWNTIME_REPORTED,
            actor_id,
            before,
            job_id=job_id,
            work_order_id=self.downtime.work_order_id,
        )
        return applied

    def clear_downtime(
        self, *, actor_id: str, now: datetime, job_id: str | None = None
    ) -> DowntimeWindow | None:
        """Mark the resource up; returns the window that just closed, if any."""
        before = self.snapshot()
        window = self.downtime.open_window(self.id)
        if window is not None:
            window = window.model_copy(update={"ended_at": now})
            self.downtime = DowntimeState.up()
            self.modified_at = now
        self._record(
            ChangeAction.DOWNTIME_CLEARED,
            actor_id,
            before,
            job_id=job_id,
            work_order_id=window.work_order_id if window else None,
        )
        return window

    def snapshot(self) -> dict[str, Any]:
        return self.model_dump(
            mode="json",
            include={
                "uid",
                "name",
                "setup_minutes",
                "units_per_hour",
                "operational_hours",
                "downtime",
            },
        )

    def _record(
        self,
        action: ChangeAction,
        actor_id: str,
        before: dict[str, Any] | None,
        *,
        job_id: str | None = None,
        work_order_id: str | None = None,
        source_version: int | None = None,
        after: Any = ...,
    ) -> None:
        self.add_domain_event(
            ChangeEvent(
                action=action,
                actor_id=actor_id,
                job_id=job_id,
                work_order_id=work_order_id,
                resource_id=self.id,
                before=before,
                after=self.snapshot() if after is ... else after,
                source_version=source_version or self.next_version,
            )
        )


def _check_configuration(setup_minutes: float, units_per_hour: float) -> None:
    if units_per_hour <= 0:
        raise InvalidRate(units_per_hour)
    if setup_minutes < 0:
        raise InvalidQuantity("setup_minutes", setup_minutes, "must not be negative")


class ResourceQueueEntry(ValueObject):
    """Position of a queued or active work order on its resource."""

    resource_id: str
    work_order_id: str
    position: int = Field(ge=1)
    added_at: datetime = Field(default_factory=utc_now)

    @property
    def sort_key(self) -> tuple[int, datetime, str]:
        # Concurrent appends may share a position
        return (self.position, self.added_at, self.work_order_id)


def next_queue_position(positions: Iterable[int]) -> int:
    return max(positions, default=0) + 1


def ordered(entries: Iterable[ResourceQueueEntry]) -> list[ResourceQueueEntry]:
    return sorted(entries, key=lambda entry: entry.sort_key)
