from .audit_ledger import AuditLedger
from .job_status_projector import JobStatusProjector
from .schedule_view_synchronizer import ScheduleViewSynchronizer
from .split_reconciler import SplitReconciler

__all__ = [
    "AuditLedger",
    "JobStatusProjector",
    "ScheduleViewSynchronizer",
    "SplitReconciler",
]
