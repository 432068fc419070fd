"""Change feed consumers: schedule view, audit ledger, job status, reconciler."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from linestart.application.consumers import AuditLedger, SplitReconciler
from linestart.domain.scheduling.read_models.audit import ReconciliationKind
from linestart.domain.scheduling.read_models.schedule_view import ScheduleViewEntry
from linestart.domain.scheduling.services.completion_splitter import remainder_id
from linestart.domain.scheduling.value_objects.enums import (
    ChangeAction,
    JobStatus,
    WorkOrderStatus,
)
from linestart.domain.scheduling.value_objects.operational_hours import OperationalHours
from linestart.domain.shared.exceptions import PartialSplitInconsistency
from linestart.tests.utils import OPERATOR

T0 = datetime(2024, 3, 4, 8, 0)


def view_entry(source_version: int, resource_version: int = 1, **overrides):
    values = {
        "work_order_id": "wo-1",
        "job_id": "job-1",
        "resource_id": "res-1",
        "resource_name": "CNC Mill 3",
        "status": "queued",
        "planned_start": T0,
        "planned_end": T0,
        "estimated_duration_min": 0,
        "target_qty": 10,
        "completed_qty": 0,
        "source_version": source_version,
        "resource_version": resource_version,
    }
    values.update(overrides)
    return ScheduleViewEntry(**values)


class FailingLedger(AuditLedger):
    def handle(self, uow, items):
        raise RuntimeError("ledger store unavailable")


class TestScheduleViewSynchronizer:
    def test_entry_follows_work_order(self, container, drain, job, resource):
        work_order = container.work_orders.assign(job.id, resource.id, OPERATOR)
        drain()
        container.work_orders.start(work_order.id, OPERATOR)
        drain()

        with container.uow_factory() as uow:
            entry = uow.schedule_view.get(work_order.id)
        assert entry.status == WorkOrderStatus.ACTIVE
        assert entry.source_version == 2
        assert entry.estimated_duration_min == 215

    def test_out_of_order_write_never_regresses(self, container):
        with container.uow_factory() as uow:
            assert uow.schedule_view.write_if_newer(view_entry(3, status="active"))
            assert not uow.schedule_view.write_if_newer(view_entry(2))
            assert not uow.schedule_view.write_if_newer(view_entry(3))
            assert not uow.schedule_view.write_if_newer(
                view_entry(2, resource_version=2)
            )

        with container.uow_factory() as uow:
            stored = uow.schedule_view.get("wo-1")
        assert stored.source_version == 3
        assert stored.status == WorkOrderStatus.ACTIVE

    def test_resource_rename_rederives_entries(self, container, drain, job, resource):
        work_order = container.work_orders.assign(job.id, resource.id, OPERATOR)
        drain()
        container.resources.update_resource(resource.id, OPERATOR, name="CNC Mill 3B")
        drain()

        with container.uow_factory() as uow:
            entry = uow.schedule_view.get(work_order.id)
        assert entry.resource_name == "CNC Mill 3B"
        # Assignment claimed version 2
        assert entry.resource_version == 3
        # Durations are fixed at assignment
        assert entry.estimated_duration_min == 215

    def test_operating_hours_shift_planned_start(self, container, drain, job, resource):
        hours = OperationalHours(start_time="08:00", end_time="17:00")
        container.resources.update_resource(
            resource.id, OPERATOR, operational_hours=hours
        )
        saturday = datetime(2024, 3, 9, 10, 0)
        work_order = container.work_orders.assign(
            job.id, resource.id, OPERATOR, scheduled_start=saturday
        )
        drain()
        with container.uow_factory() as uow:
            shifted = uow.schedule_view.get(work_order.id)

        container.resources.update_resource(
            resource.id, OPERATOR, operational_hours=None
        )
        drain()
        with container.uow_factory() as uow:
            unshifted = uow.schedule_view.get(work_order.id)

        assert shifted.planned_start == datetime(2024, 3, 11, 8, 0)
        assert unshifted.planned_start == saturday
        assert container.resources.get_resource(resource.id).operational_hours is None

    def test_remainder_enters_view_once_assigned(self, container, drain, job, resource):
        work_orders = container.work_orders
        origin = work_orders.assign(job.id, resource.id, OPERATOR)
        work_orders.start(origin.id, OPERATOR)
        remainder = work_orders.complete(origin.id, 60, OPERATOR).remainder
        drain()
        with container.uow_factory() as uow:
            assert uow.schedule_view.get(remainder.id) is None

        work_orders.reassign(remainder.id, resource.id, OPERATOR)
        drain()
        with container.uow_factory() as uow:
            entry = uow.schedule_view.get(remainder.id)
        assert entry.remainder_of == origin.id

    def test_replay_is_harmless(self, container, drain, job, resource):
        work_order = container.work_orders.assign(job.id, resource.id, OPERATOR)
        drain()

        with container.uow_factory() as uow:
            items = uow.change_events.after(0, 1000)
            container.schedule_view.handle(uow, items)
            entry = uow.schedule_view.get(work_order.id)
        assert entry.source_version == 1


class TestAuditLedger:
    def test_every_event_recorded_once(self, container, drain, job, resource):
        container.work_orders.assign(job.id, resource.id, OPERATOR)
        drain()

        with container.uow_factory() as uow:
            total_events = uow.change_events.last_sequence()
        recorded = container.audit.recent(limit=500)
        assert len(recorded) == total_events
        assert [r.sequence for r in recorded] == sorted(
            (r.sequence for r in recorded), reverse=True
        )

    def test_replay_does_not_duplicate(self, container, drain, job, resource):
        container.work_orders.assign(job.id, resource.id, OPERATOR)
        drain()
        before = len(container.audit.recent(limit=500))

        with container.uow_factory() as uow:
            container.audit.handle(uow, uow.change_events.after(0, 1000))

        assert len(container.audit.recent(limit=500)) == before

    def test_job_history(self, container, drain, job, resource):
        work_order = container.work_orders.assign(job.id, resource.id, OPERATOR)
        container.work_orders.start(work_order.id, OPERATOR)
        drain()

        actions = [record.action for record in container.audit.for_job(job.id)]
        assert actions[:3] == [
            ChangeAction.JOB_CREATED,
            ChangeAction.JOB_ASSIGNED,
            ChangeAction.WO_STARTED,
        ]
        history = container.audit.for_work_order(work_order.id)
        assert history[-1].after["status"] == "active"
        assert history[-1].before["status"] == "queued"

    def test_records_are_immutable(self, container, drain, job, resource):
        container.work_orders.assign(job.id, resource.id, OPERATOR)
        drain()

        [record] = container.audit.recent(limit=1)
        with pytest.raises(ValidationError):
            record.action = ChangeAction.WO_STARTED
        assert container.audit.recent(limit=1)[0].action == record.action

    def test_failed_batch_flags_gap_and_keeps_checkpoint(
        self, container, drain, job, resource
    ):
        container.work_orders.assign(job.id, resource.id, OPERATOR)
        failing = FailingLedger(container.uow_factory)

        with pytest.raises(RuntimeError):
            failing.poll_once()

        with container.uow_factory() as uow:
            assert uow.checkpoints.get(AuditLedger.name) == 0
            [flag] = uow.reconciliation.open_flags(ReconciliationKind.AUDIT_GAP)
        assert "ledger store unavailable" in flag.detail

        drain()
        with container.uow_factory() as uow:
            assert uow.reconciliation.open_flags(ReconciliationKind.AUDIT_GAP) == []
            assert uow.checkpoints.get(AuditLedger.name) == (
                uow.change_events.last_sequence()
            )

    def test_pair_split_across_batches_lands_together(
        self, container, job, resource
    ):
        work_orders = container.work_orders
        work_order = work_orders.assign(job.id, resource.id, OPERATOR)
        work_orders.start(work_order.id, OPERATOR)
        result = work_orders.complete(work_order.id, 60, OPERATOR)

        with container.uow_factory() as uow:
            partial_sequence = uow.change_events.by_correlation(result.correlation_id)[
                0
            ].sequence
        # Batch boundary right after the partial event
        ledger = AuditLedger(container.uow_factory, batch_size=partial_sequence)
        ledger.poll_once()

        assert len(container.audit.correlated(result.correlation_id)) == 2


class TestJobStatusProjector:
    def test_status_progression(self, container, drain, job, resource):
        def cached():
            drain()
            return container.jobs.get_job(job.id).status

        assert cached() == JobStatus.UNASSIGNED
        work_order = container.work_orders.assign(job.id, resource.id, OPERATOR)
        assert cached() == JobStatus.ASSIGNED
        container.work_orders.start(work_order.id, OPERATOR)
        assert cached() == JobStatus.IN_PROGRESS
        container.work_orders.pause(work_order.id, OPERATOR)
        assert cached() == JobStatus.ASSIGNED
        container.work_orders.complete(work_order.id, 100, OPERATOR)
        assert cached() == JobStatus.FINISHED

    def test_status_change_is_audited(self, container, drain, job, resource):
        container.work_orders.assign(job.id, resource.id, OPERATOR)
        drain()

        changes = [
            record
            for record in container.audit.for_job(job.id)
            if record.action == ChangeAction.JOB_STATUS_CHANGED
        ]
        assert len(changes) == 1
        assert changes[0].after["status"] == "assigned"

    def test_status_change_keeps_its_own_correlation(
        self, container, drain, job, resource
    ):
        work_orders = container.work_orders
        work_order = work_orders.assign(job.id, resource.id, OPERATOR)
        work_orders.start(work_order.id, OPERATOR)
        result = work_orders.complete(work_order.id, 60, OPERATOR)
        drain()

        pair = container.audit.correlated(result.correlation_id)
        [change] = [
            record
            for record in container.audit.for_job(job.id)
            if record.action == ChangeAction.JOB_STATUS_CHANGED
        ]
        assert len(pair) == 2
        assert change.correlation_id != result.correlation_id
        assert change.causation_id in {record.event_id for record in pair}


class TestSplitReconciler:
    def _orphan_partial(self, container, job, resource):
        work_orders = container.work_orders
        work_order = work_orders.assign(job.id, resource.id, OPERATOR)
        work_orders.start(work_order.id, OPERATOR)
        remainder = work_orders.complete(work_order.id, 60, OPERATOR).remainder
        with container.uow_factory() as uow:
            uow.work_orders.remove(uow.work_orders.get_required(remainder.id))
        return work_order, remainder

    def test_repairs_missing_remainder_once(self, container, job, resource):
        origin, lost = self._orphan_partial(container, job, resource)
        reconciler = SplitReconciler(container.uow_factory)

        assert reconciler.run_once() == [lost.id]
        assert reconciler.run_once() == []

        restored = container.work_orders.get_remainder(origin.id)
        assert restored.id == remainder_id(origin.id, 3)
        assert restored.target_qty == 40
        assert restored.status == WorkOrderStatus.QUEUED
        with container.uow_factory() as uow:
            [flag] = uow.reconciliation.all_flags()
        assert flag.kind == ReconciliationKind.PARTIAL_SPLIT
        assert flag.subject_id == origin.id
        assert flag.resolved_at is not None

    def test_nothing_to_repair(self, container, job, resource):
        work_orders = container.work_orders
        work_order = work_orders.assign(job.id, resource.id, OPERATOR)
        work_orders.start(work_order.id, OPERATOR)
        work_orders.complete(work_order.id, 60, OPERATOR)

        assert SplitReconciler(container.uow_factory).run_once() == []

    def test_partial_without_remainder_is_inconsistent(self, container, job, resource):
        origin, _ = self._orphan_partial(container, job, resource)
        with pytest.raises(PartialSplitInconsistency):
            container.work_orders.get_remainder(origin.id)
