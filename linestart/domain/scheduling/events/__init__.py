"""
Domain Events Module

Exports change events and outbound notices.
"""

from .domain_events import (
    ChangeEvent,
    DowntimeClearedNotice,
    DowntimeReportedNotice,
    WorkOrderAssignedNotice,
)

__all__ = [
    "ChangeEvent",
    "WorkOrderAssignedNotice",
    "DowntimeReportedNotice",
    "DowntimeClearedNotice",
]
