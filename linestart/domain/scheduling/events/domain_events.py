"""
Domain Events

Change events are raised by aggregates on every state transition and land
on the change feed (and from there in the audit ledger). Notices are the
outbound facts external delivery (push, email) subscribes to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ...shared.base import new_id, utc_now
from ..value_objects.enums import ChangeAction


@dataclass(frozen=True)
class ChangeEvent:
    """A committed state change of a job, work order or resource."""

    action: ChangeAction
    actor_id: str
    job_id: str | None
    work_order_id: str | None = None
    resource_id: str | None = None
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    source_version: int | None = None
    correlation_id: str = field(default_factory=new_id)
    causation_id: str | None = None
    event_id: str = field(default_factory=new_id)
    occurred_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class WorkOrderAssignedNotice:
    """Raised when a work order lands on a resource's queue."""

    resource_id: str
    job_id: str | None
    work_order_id: str


@dataclass(frozen=True)
class DowntimeReportedNotice:
    """Raised when an operator reports a resource down."""

    resource_id: str
    reason: str | None = None


@dataclass(frozen=True)
class DowntimeClearedNotice:
    """Raised when a resource is back up."""

    resource_id: str
