from .job import Job, derive_job_status
from .resource import Resource, ResourceQueueEntry, next_queue_position, ordered
from .work_order import TimeEntry, WorkOrder, total_elapsed_minutes

__all__ = [
    "Job",
    "Resource",
    "ResourceQueueEntry",
    "TimeEntry",
    "WorkOrder",
    "derive_job_status",
    "next_queue_position",
    "ordered",
    "total_elapsed_minutes",
]
