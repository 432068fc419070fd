"""Unit tests for job status derivation."""

from linestart.domain.scheduling.entities.job import Job, derive_job_status
from linestart.domain.scheduling.entities.work_order import WorkOrder
from linestart.domain.scheduling.value_objects.enums import (
    ChangeAction,
    JobStatus,
    WorkOrderStatus,
)

from .factories import ACTOR, T0


def order(status: WorkOrderStatus, **kwargs) -> WorkOrder:
    completed = kwargs.pop("completed_qty", 10 if status == WorkOrderStatus.COMPLETED else 0)
    return WorkOrder(
        job_id="job-1", target_qty=10, status=status, completed_qty=completed, **kwargs
    )


class TestDeriveJobStatus:
    def test_no_orders_is_unassigned(self):
        assert derive_job_status([]) == JobStatus.UNASSIGNED

    def test_queued_order_is_assigned(self):
        assert derive_job_status([order(WorkOrderStatus.QUEUED)]) == JobStatus.ASSIGNED

    def test_paused_order_is_assigned(self):
        assert derive_job_status([order(WorkOrderStatus.PAUSED)]) == JobStatus.ASSIGNED

    def test_active_dominates(self):
        orders = [
            order(WorkOrderStatus.COMPLETED),
            order(WorkOrderStatus.ACTIVE),
            order(WorkOrderStatus.QUEUED),
        ]
        assert derive_job_status(orders) == JobStatus.IN_PROGRESS

    def test_all_completed_is_finished(self):
        orders = [order(WorkOrderStatus.COMPLETED), order(WorkOrderStatus.COMPLETED)]
        assert derive_job_status(orders) == JobStatus.FINISHED

    def test_partial_with_completed_remainder_is_finished(self):
        origin = order(WorkOrderStatus.PARTIAL, completed_qty=6)
        remainder = order(WorkOrderStatus.COMPLETED, remainder_of=origin.id)
        assert derive_job_status([origin, remainder]) == JobStatus.FINISHED

    def test_partial_with_open_remainder_is_assigned(self):
        origin = order(WorkOrderStatus.PARTIAL, completed_qty=6)
        remainder = order(WorkOrderStatus.QUEUED, remainder_of=origin.id)
        assert derive_job_status([origin, remainder]) == JobStatus.ASSIGNED

    def test_partial_without_remainder_is_not_finished(self):
        origin = order(WorkOrderStatus.PARTIAL, completed_qty=6)
        assert derive_job_status([origin]) == JobStatus.ASSIGNED

    def test_order_does_not_matter(self):
        origin = order(WorkOrderStatus.PARTIAL, completed_qty=6)
        remainder = order(WorkOrderStatus.COMPLETED, remainder_of=origin.id)
        assert derive_job_status([remainder, origin]) == derive_job_status(
            [origin, remainder]
        )


class TestApplyStatus:
    def test_change_is_recorded(self):
        job = Job.create(quantity=10, actor_id=ACTOR, now=T0)
        job.clear_domain_events()

        assert job.apply_status(JobStatus.ASSIGNED, "system", T0)
        [event] = job.get_domain_events()
        assert event.action == ChangeAction.JOB_STATUS_CHANGED
        assert event.before["status"] == "unassigned"
        assert event.after["status"] == "assigned"

    def test_unchanged_status_is_a_no_op(self):
        job = Job.create(quantity=10, actor_id=ACTOR, now=T0)
        job.clear_domain_events()

        assert not job.apply_status(JobStatus.UNASSIGNED, "system", T0)
        assert job.get_domain_events() == []
