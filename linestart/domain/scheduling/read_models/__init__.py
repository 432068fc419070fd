"""
Read models for scheduling projections.

Written only by change-feed consumers, never by the state machine.
"""

from .audit import AuditRecord, ReconciliationFlag, ReconciliationKind
from .schedule_view import ScheduleViewEntry

__all__ = [
    "AuditRecord",
    "ReconciliationFlag",
    "ReconciliationKind",
    "ScheduleViewEntry",
]
