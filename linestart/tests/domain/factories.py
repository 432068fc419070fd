from datetime import datetime, timedelta

from linestart.domain.scheduling.entities.resource import Resource
from linestart.domain.scheduling.entities.work_order import WorkOrder
from linestart.domain.scheduling.read_models.schedule_view import ScheduleViewEntry

T0 = datetime(2024, 3, 4, 8, 0)
ACTOR = "op-1"


def minutes(n: float) -> timedelta:
    return timedelta(minutes=n)


def make_resource(**overrides) -> Resource:
    values = {"name": "CNC Mill 3", "setup_minutes": 15, "units_per_hour": 30}
    values.update(overrides)
    return Resource(**values)


def make_work_order(resource: Resource | None = None, target_qty: int = 100) -> WorkOrder:
    work_order = WorkOrder.assign(
        job_id="job-1",
        resource=resource or make_resource(),
        target_qty=target_qty,
        actor_id=ACTOR,
        now=T0,
    )
    work_order.clear_domain_events()
    return work_order


def make_entry(**overrides) -> ScheduleViewEntry:
    values = {
        "work_order_id": "wo-1",
        "job_id": "job-1",
        "resource_id": "res-1",
        "resource_name": "CNC Mill 3",
        "status": "queued",
        "planned_start": T0,
        "planned_end": T0 + minutes(215),
        "estimated_duration_min": 215,
        "target_qty": 100,
        "completed_qty": 0,
        "assigned_at": T0,
        "source_version": 1,
        "resource_version": 1,
    }
    values.update(overrides)
    return ScheduleViewEntry(**values)
