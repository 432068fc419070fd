"""Downtime state of a resource and closed downtime history."""

from datetime import datetime, timedelta

from pydantic import model_validator
from typing_extensions import Self

from ...shared.base import ValueObject
from .enums import DowntimeProvenance


class DowntimeState(ValueObject):
    """
    Current down/up state of a resource.

    ``since`` is set exactly while the resource is down. ``work_order_id``
    names the downtime work order occupying the resource's timeline.
    """

    is_down: bool = False
    since: datetime | None = None
    reason: str | None = None
    provenance: DowntimeProvenance | None = None
    work_order_id: str | None = None

    @model_validator(mode="after")
    def _since_iff_down(self) -> Self:
        if self.is_down and self.since is None:
            raise ValueError("A down resource must record since when it is down")
        if not self.is_down and (
            self.since is not None or self.work_order_id is not None
        ):
            raise ValueError("An operational resource cannot carry downtime details")
        return self

    @classmethod
    def up(cls) -> "DowntimeState":
        return cls()

    @classmethod
    def down(
        cls,
        since: datetime,
        reason: str | None,
        provenance: DowntimeProvenance,
        work_order_id: str | None = None,
    ) -> "DowntimeState":
        return cls(
            is_down=True,
            since=since,
            reason=reason,
            provenance=provenance,
            work_order_id=work_order_id,
        )

    def open_window(self, resource_id: str) -> "DowntimeWindow | None":
        """The still-running window for this state, if the resource is down."""
        if not self.is_down:
            return None
        return DowntimeWindow(
            resource_id=resource_id,
            started_at=self.since,
            reason=self.reason,
            provenance=self.provenance or DowntimeProvenance.UNSCHEDULED,
            work_order_id=self.work_order_id,
        )


class DowntimeWindow(ValueObject):
    """A downtime period on one resource; ``ended_at`` is None while it runs."""

    resource_id: str
    started_at: datetime
    ended_at: datetime | None = None
    reason: str | None = None
    provenance: DowntimeProvenance = DowntimeProvenance.UNSCHEDULED
    work_order_id: str | None = None

    @property
    def is_open(self) -> bool:
        return self.ended_at is None

    def elapsed(self, now: datetime) -> timedelta:
        end = self.ended_at if self.ended_at is not None else now
        return max(end - self.started_at, timedelta(0))
