"""
Repository implementations on SQLModel.
"""

from .audit_repository import AuditRepository
from .base import DatabaseError, VersionedRepository
from .change_event_repository import ChangeEventRepository, CheckpointRepository, FeedItem
from .job_repository import JobRepository
from .reconciliation_repository import ReconciliationRepository
from .resource_repository import (
    DowntimeWindowRepository,
    QueueRepository,
    ResourceRepository,
)
from .schedule_view_repository import ScheduleViewRepository
from .work_order_repository import TimeEntryRepository, WorkOrderRepository

__all__ = [
    "AuditRepository",
    "ChangeEventRepository",
    "CheckpointRepository",
    "DatabaseError",
    "DowntimeWindowRepository",
    "FeedItem",
    "JobRepository",
    "QueueRepository",
    "ReconciliationRepository",
    "ResourceRepository",
    "ScheduleViewRepository",
    "TimeEntryRepository",
    "VersionedRepository",
    "WorkOrderRepository",
]
