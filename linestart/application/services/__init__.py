from .base_service import SYSTEM_ACTOR, ApplicationServiceBase
from .downtime_service import DowntimeService
from .job_service import JobService
from .resource_service import ResourceService
from .schedule_query_service import ScheduleItem, ScheduleQueryService
from .work_order_service import WorkOrderService

__all__ = [
    "SYSTEM_ACTOR",
    "ApplicationServiceBase",
    "DowntimeService",
    "JobService",
    "ResourceService",
    "ScheduleItem",
    "ScheduleQueryService",
    "WorkOrderService",
]
