"""
Downtime application service.

Reporting and clearing downtime toggles the resource's downtime state with
compare-and-set, re-reading and retrying on conflict so the last writer
wins. Every committed attempt writes its own change event, so concurrent
reports are all audited. Unscheduled downtime occupies the timeline as an
active work order on the critical maintenance job; scheduled downtime is a
pre-planned order on the standard maintenance job, started and ended by
``expand_scheduled_downtime``.
"""

from datetime import datetime, timedelta

from linestart.core.observability import get_logger
from linestart.core.retry import retry_on_conflict
from linestart.domain.scheduling.entities.resource import Resource
from linestart.domain.scheduling.entities.work_order import WorkOrder
from linestart.domain.scheduling.events.domain_events import (
    DowntimeClearedNotice,
    DowntimeReportedNotice,
)
from linestart.domain.scheduling.value_objects.downtime import DowntimeWindow
from linestart.domain.scheduling.value_objects.enums import (
    DowntimeProvenance,
    WorkOrderStatus,
)
from linestart.domain.shared.base import as_naive_utc

from .base_service import SYSTEM_ACTOR, ApplicationServiceBase

logger = get_logger(__name__)


class DowntimeService(ApplicationServiceBase):
    """Use cases for resource downtime."""

    def report_downtime(
        self, resource_id: str, reason: str | None, actor_id: str
    ) -> Resource:
        """
        Mark a resource down from now.

        Reporting a resource that is already down changes nothing but is
        still recorded.
        """
        return retry_on_conflict(
            lambda: self._report(resource_id, reason, actor_id),
            max_attempts=self.settings.CAS_MAX_ATTEMPTS,
            operation_name="report_downtime",
        )

    def clear_downtime(self, resource_id: str, actor_id: str) -> Resource:
        """Mark a resource up; the downtime window closes and its push freezes."""
        return retry_on_conflict(
            lambda: self._clear(resource_id, actor_id),
            max_attempts=self.settings.CAS_MAX_ATTEMPTS,
            operation_name="clear_downtime",
        )

    def schedule_downtime(
        self,
        resource_id: str,
        start: datetime,
        end: datetime,
        actor_id: str,
        reason: str | None = None,
    ) -> WorkOrder:
        """Plan a maintenance window as a queued downtime work order."""
        start, end = as_naive_utc(start), as_naive_utc(end)
        job_id = self.settings.MAINTENANCE_JOB_STANDARD
        with self._uow_factory() as uow:
            resource = uow.resources.get_required(resource_id)
            self.ensure_maintenance_job(uow, job_id)
            work_order = WorkOrder.schedule_downtime(
                job_id=job_id,
                resource_id=resource.id,
                start=start,
                end=end,
                actor_id=actor_id,
                now=self.clock(),
                reason=reason,
            )
            uow.resources.touch(resource)
            uow.work_orders.add(work_order)

        logger.info(
            "downtime_scheduled",
            resource_id=resource_id,
            work_order_id=work_order.id,
            start=start.isoformat(),
            end=end.isoformat(),
        )
        return work_order

    def expand_scheduled_downtime(self, now: datetime | None = None) -> list[str]:
        """
        Open scheduled windows that have begun and close those that ended.

        Returns:
            Ids of the downtime work orders that changed
        """
        now = as_naive_utc(now) or self.clock()
        with self._uow_factory() as uow:
            pending = uow.work_orders.pending_scheduled_downtime()

        changed = []
        for work_order in pending:
            if work_order.scheduled_start is None or work_order.scheduled_start > now:
                continue
            if retry_on_conflict(
                lambda: self._expand(work_order.id, now),
                max_attempts=self.settings.CAS_MAX_ATTEMPTS,
                operation_name="expand_scheduled_downtime",
            ):
                changed.append(work_order.id)
        return changed

    def windows(self, resource_id: str) -> list[DowntimeWindow]:
        """Closed windows followed by the running one, if any."""
        with self._uow_factory() as uow:
            resource = uow.resources.get_required(resource_id)
            windows = uow.downtime_windows.for_resource(resource_id)
        open_window = resource.downtime.open_window(resource.id)
        if open_window is not None:
            windows.append(open_window)
        return windows

    # ------------------------------------------------------------------
    # Single attempts, re-read on every retry
    # ------------------------------------------------------------------
    def _report(self, resource_id: str, reason: str | None, actor_id: str) -> Resource:
        job_id = self.settings.MAINTENANCE_JOB_CRITICAL
        with self._uow_factory() as uow:
            resource = uow.resources.get_required(resource_id)
            now = self.clock()
            downtime_order = None
            if not resource.is_down:
                self.ensure_maintenance_job(uow, job_id)
                downtime_order = WorkOrder.open_downtime(
                    job_id=job_id,
                    resource_id=resource.id,
                    since=now,
                    actor_id=actor_id,
                    reason=reason,
                )
                uow.work_orders.add(downtime_order)

            applied = resource.report_downtime(
                reason=reason,
                actor_id=actor_id,
                now=now,
                job_id=job_id,
                work_order_id=downtime_order.id if downtime_order else None,
            )
            uow.resources.save(resource)
            if applied:
                uow.notify(DowntimeReportedNotice(resource.id, reason))

        logger.info(
            "downtime_reported",
            resource_id=resource_id,
            applied=applied,
            work_order_id=resource.downtime.work_order_id,
        )
        return resource

    def _clear(self, resource_id: str, actor_id: str) -> Resource:
        with self._uow_factory() as uow:
            resource = uow.resources.get_required(resource_id)
            now = self.clock()
            job_id = (
                self._maintenance_job_for(resource.downtime.provenance)
                if resource.is_down
                else None
            )
            window = resource.clear_downtime(actor_id=actor_id, now=now, job_id=job_id)
            uow.resources.save(resource)
            if window is not None:
                self._close_downtime_order(uow, window.work_order_id, actor_id, now)
                uow.downtime_windows.add(window)
                uow.notify(DowntimeClearedNotice(resource.id))

        logger.info(
            "downtime_cleared", resource_id=resource_id, applied=window is not None
        )
        return resource

    def _expand(self, work_order_id: str, now: datetime) -> bool:
        job_id = self.settings.MAINTENANCE_JOB_STANDARD
        with self._uow_factory() as uow:
            work_order = uow.work_orders.get(work_order_id)
            if work_order is None or not work_order.status.is_open:
                return False
            resource = uow.resources.get_required(work_order.resource_id)
            window_start = work_order.scheduled_start
            window_end = window_start + timedelta(
                minutes=work_order.estimated_duration_min
            )
            actor_id = work_order.assigned_by or SYSTEM_ACTOR

            if work_order.status == WorkOrderStatus.QUEUED:
                work_order.begin_downtime(now)
                if resource.report_downtime(
                    reason=work_order.reason,
                    actor_id=actor_id,
                    now=window_start,
                    job_id=job_id,
                    work_order_id=work_order.id,
                    provenance=DowntimeProvenance.SCHEDULED,
                ):
                    uow.notify(DowntimeReportedNotice(resource.id, work_order.reason))

            if window_end <= now:
                work_order.close_downtime(actor_id, window_end)
                if resource.downtime.work_order_id == work_order.id:
                    window = resource.clear_downtime(
                        actor_id=actor_id, now=window_end, job_id=job_id
                    )
                    if window is not None:
                        uow.downtime_windows.add(window)
                        uow.notify(DowntimeClearedNotice(resource.id))

            uow.work_orders.save(work_order)
            if resource.get_domain_events():
                uow.resources.save(resource)

        logger.info(
            "scheduled_downtime_expanded",
            work_order_id=work_order_id,
            status=work_order.status.value,
        )
        return True

    def _close_downtime_order(
        self, uow, work_order_id: str | None, actor_id: str, now: datetime
    ) -> None:
        if work_order_id is None:
            return
        work_order = uow.work_orders.get(work_order_id)
        if work_order is None or not work_order.status.is_in_session:
            return
        work_order.close_downtime(actor_id, now)
        uow.work_orders.save(work_order)

    def _maintenance_job_for(self, provenance: DowntimeProvenance | None) -> str:
        if provenance == DowntimeProvenance.SCHEDULED:
            return self.settings.MAINTENANCE_JOB_STANDARD
        return self.settings.MAINTENANCE_JOB_CRITICAL
