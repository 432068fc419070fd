"""Downtime reporting, the lazy push and scheduled maintenance windows."""

from datetime import datetime, timedelta

from freezegun import freeze_time

from linestart.domain.scheduling.value_objects.enums import (
    ChangeAction,
    DowntimeProvenance,
    WorkOrderKind,
    WorkOrderStatus,
)
from linestart.tests.utils import OPERATOR

T0 = datetime(2024, 3, 4, 8, 0)


def minutes(n: float) -> timedelta:
    return timedelta(minutes=n)


class TestUnscheduledDowntime:
    def test_push_grows_while_down_and_freezes_on_clear(
        self, container, drain, job, resource
    ):
        with freeze_time(T0) as frozen:
            work_order = container.work_orders.assign(job.id, resource.id, OPERATOR)
            drain()

            frozen.move_to(T0 + minutes(5))
            container.downtime.report_downtime(resource.id, "spindle fault", OPERATOR)
            drain()

            frozen.move_to(T0 + minutes(15))
            first = container.schedule.effective_schedule(work_order.id).effective
            frozen.move_to(T0 + minutes(25))
            second = container.schedule.effective_schedule(work_order.id).effective

            container.downtime.clear_downtime(resource.id, OPERATOR)
            drain()
            frozen.move_to(T0 + minutes(90))
            frozen_view = container.schedule.effective_schedule(work_order.id).effective

        assert first.start == T0 + minutes(10)
        assert first.end == T0 + minutes(225)
        assert first.is_live
        assert second.end - first.end == minutes(10)
        assert frozen_view.end == second.end
        assert frozen_view.pushed == minutes(20)
        assert not frozen_view.is_live

    def test_report_opens_downtime_work_order(self, container, drain, resource):
        with freeze_time(T0) as frozen:
            reported = container.downtime.report_downtime(resource.id, "jam", OPERATOR)
            downtime_order_id = reported.downtime.work_order_id
            drain()
            frozen.move_to(T0 + minutes(30))
            [item] = container.schedule.query(resource_id=resource.id)

        assert reported.is_down
        assert reported.downtime.since == T0
        assert item.entry.work_order_id == downtime_order_id
        assert item.entry.kind == WorkOrderKind.DOWNTIME
        assert item.entry.job_id == container.settings.MAINTENANCE_JOB_CRITICAL
        assert item.effective.start == T0
        assert item.effective.end == T0 + minutes(30)

    def test_clear_completes_downtime_work_order(self, container, resource):
        with freeze_time(T0) as frozen:
            reported = container.downtime.report_downtime(resource.id, "jam", OPERATOR)
            frozen.move_to(T0 + minutes(12))
            cleared = container.downtime.clear_downtime(resource.id, OPERATOR)

        downtime_order = container.work_orders.get(reported.downtime.work_order_id)
        [window] = container.downtime.windows(resource.id)
        assert not cleared.is_down
        assert downtime_order.status == WorkOrderStatus.COMPLETED
        assert downtime_order.completed_at == T0 + minutes(12)
        assert window.started_at == T0
        assert window.ended_at == T0 + minutes(12)
        assert window.reason == "jam"

    def test_repeated_reports_all_audited(self, container, drain, resource):
        first = container.downtime.report_downtime(resource.id, "jam", OPERATOR)
        second = container.downtime.report_downtime(resource.id, "still jammed", "op-2")
        drain()

        critical = container.settings.MAINTENANCE_JOB_CRITICAL
        reports = [
            record
            for record in container.audit.for_job(critical)
            if record.action == ChangeAction.DOWNTIME_REPORTED
        ]
        assert [record.actor_id for record in reports] == [OPERATOR, "op-2"]
        assert second.downtime.since == first.downtime.since
        assert len(container.jobs.work_orders(critical)) == 1

    def test_clearing_operational_resource_changes_nothing(
        self, container, drain, resource
    ):
        cleared = container.downtime.clear_downtime(resource.id, OPERATOR)
        drain()

        assert not cleared.is_down
        assert container.downtime.windows(resource.id) == []
        actions = [record.action for record in container.audit.recent()]
        assert ChangeAction.DOWNTIME_CLEARED in actions

    def test_downtime_notices_published(self, container, resource):
        bus = container.uow_factory.event_bus
        container.downtime.report_downtime(resource.id, "jam", OPERATOR)
        container.downtime.report_downtime(resource.id, "jam", OPERATOR)
        container.downtime.clear_downtime(resource.id, OPERATOR)

        names = [type(notice).__name__ for notice in bus.get_history()]
        assert names == ["DowntimeReportedNotice", "DowntimeClearedNotice"]

    def test_order_assigned_during_downtime_not_pushed(
        self, container, drain, job, resource
    ):
        with freeze_time(T0) as frozen:
            container.downtime.report_downtime(resource.id, "jam", OPERATOR)
            frozen.move_to(T0 + minutes(10))
            work_order = container.work_orders.assign(job.id, resource.id, OPERATOR)
            drain()
            frozen.move_to(T0 + minutes(40))
            item = container.schedule.effective_schedule(work_order.id)

        assert item.effective.pushed == timedelta(0)
        assert item.effective.start == T0 + minutes(10)


class TestScheduledDowntime:
    def test_window_expands_and_closes(self, container, drain, job, resource):
        with freeze_time(T0) as frozen:
            work_order = container.work_orders.assign(job.id, resource.id, OPERATOR)
            planned = container.downtime.schedule_downtime(
                resource.id, T0 + minutes(60), T0 + minutes(120), OPERATOR, "PM"
            )
            assert planned.status == WorkOrderStatus.QUEUED
            assert planned.estimated_duration_min == 60
            assert container.downtime.expand_scheduled_downtime() == []

            frozen.move_to(T0 + minutes(70))
            assert container.downtime.expand_scheduled_downtime() == [planned.id]
            during = container.resources.get_resource(resource.id)
            assert container.work_orders.get(planned.id).status == WorkOrderStatus.ACTIVE

            frozen.move_to(T0 + minutes(130))
            assert container.downtime.expand_scheduled_downtime() == [planned.id]
            assert container.downtime.expand_scheduled_downtime() == []
            drain()
            item = container.schedule.effective_schedule(work_order.id)

        assert during.is_down
        assert during.downtime.provenance == DowntimeProvenance.SCHEDULED
        assert during.downtime.since == T0 + minutes(60)

        after = container.resources.get_resource(resource.id)
        closed = container.work_orders.get(planned.id)
        [window] = container.downtime.windows(resource.id)
        assert not after.is_down
        assert closed.status == WorkOrderStatus.COMPLETED
        assert closed.completed_at == T0 + minutes(120)
        assert window.provenance == DowntimeProvenance.SCHEDULED
        assert window.ended_at == T0 + minutes(120)
        # Planned maintenance occupies the timeline without pushing
        assert item.effective.pushed == timedelta(0)

    def test_elapsed_window_expands_in_one_pass(self, container, resource):
        with freeze_time(T0) as frozen:
            planned = container.downtime.schedule_downtime(
                resource.id, T0 + minutes(10), T0 + minutes(20), OPERATOR
            )
            frozen.move_to(T0 + minutes(45))
            assert container.downtime.expand_scheduled_downtime() == [planned.id]

        assert container.work_orders.get(planned.id).status == WorkOrderStatus.COMPLETED
        assert not container.resources.get_resource(resource.id).is_down

    def test_scheduled_downtime_in_schedule_view(self, container, drain, resource):
        with freeze_time(T0):
            planned = container.downtime.schedule_downtime(
                resource.id, T0 + minutes(60), T0 + minutes(120), OPERATOR
            )
            drain()
            [item] = container.schedule.query(
                start=T0 + minutes(90), end=T0 + minutes(100)
            )

        assert item.entry.work_order_id == planned.id
        assert item.entry.planned_start == T0 + minutes(60)
        assert item.entry.planned_end == T0 + minutes(120)
