"""
Work order application service.

Drives the work order state machine: assignment onto a resource queue,
start/pause/resume with time tracking, completion with the partial split,
remainder reassignment and unassignment. Every transition is a
compare-and-set write; a caller that passes ``expected_version`` fails
before any write when its read is stale.
"""

from datetime import datetime

from linestart.core.observability import get_logger
from linestart.domain.scheduling.entities.resource import ResourceQueueEntry
from linestart.domain.scheduling.entities.work_order import (
    TimeEntry,
    WorkOrder,
    total_elapsed_minutes,
)
from linestart.domain.scheduling.events.domain_events import WorkOrderAssignedNotice
from linestart.domain.scheduling.services.completion_splitter import (
    CompletionResult,
    CompletionSplitter,
)
from linestart.domain.scheduling.value_objects.enums import WorkOrderStatus
from linestart.domain.shared.base import as_naive_utc
from linestart.domain.shared.exceptions import PartialSplitInconsistency
from linestart.infrastructure.database.unit_of_work import SqlModelUnitOfWork

from .base_service import ApplicationServiceBase

logger = get_logger(__name__)

ENTITY = "WorkOrder"


class WorkOrderService(ApplicationServiceBase):
    """Use cases for the work order lifecycle."""

    def __init__(self, *args, splitter: CompletionSplitter | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._splitter = splitter or CompletionSplitter()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def assign(
        self,
        job_id: str,
        resource_id: str,
        actor_id: str,
        target_qty: int | None = None,
        scheduled_start: datetime | None = None,
    ) -> WorkOrder:
        """
        Create a queued work order for a job on a resource.

        The target defaults to the job quantity; the estimated duration is
        computed from the resource's configuration at this moment.

        Raises:
            ReferenceNotFound: If the job or resource does not exist
            InvalidQuantity: If the target is below 1
        """
        with self._uow_factory() as uow:
            job = uow.jobs.get_required(job_id)
            resource = uow.resources.get_required(resource_id)
            now = self.clock()
            work_order = WorkOrder.assign(
                job_id=job.id,
                resource=resource,
                target_qty=job.quantity if target_qty is None else target_qty,
                actor_id=actor_id,
                now=now,
                scheduled_start=as_naive_utc(scheduled_start),
            )
            # Claim the resource so a concurrent delete cannot strand the order
            uow.resources.touch(resource)
            uow.work_orders.add(work_order)
            uow.queue.append(resource.id, work_order.id, now)
            uow.notify(WorkOrderAssignedNotice(resource.id, job.id, work_order.id))

        logger.info(
            "work_order_assigned",
            work_order_id=work_order.id,
            job_id=job_id,
            resource_id=resource_id,
            estimated_duration_min=work_order.estimated_duration_min,
        )
        return work_order

    def start(
        self, work_order_id: str, actor_id: str, expected_version: int | None = None
    ) -> WorkOrder:
        """Start a queued order or resume a paused one; opens a time entry."""
        with self._uow_factory() as uow:
            work_order = self._load(uow, work_order_id, expected_version)
            now = self.clock()
            action = work_order.start(actor_id, now)
            uow.work_orders.save(work_order)
            uow.time_entries.add(
                TimeEntry(work_order_id=work_order.id, actor_id=actor_id, started_at=now)
            )

        logger.info(
            "work_order_started", work_order_id=work_order_id, action=action.value
        )
        return work_order

    def pause(
        self, work_order_id: str, actor_id: str, expected_version: int | None = None
    ) -> WorkOrder:
        """Pause an active order; closes its time entry with zero quantity."""
        with self._uow_factory() as uow:
            work_order = self._load(uow, work_order_id, expected_version)
            now = self.clock()
            work_order.pause(actor_id, now)
            uow.work_orders.save(work_order)
            for entry in uow.time_entries.open_for(work_order.id):
                entry.close(now, 0)
                uow.time_entries.save(entry)

        logger.info("work_order_paused", work_order_id=work_order_id)
        return work_order

    def complete(
        self,
        work_order_id: str,
        quantity_delivered: int,
        actor_id: str,
        expected_version: int | None = None,
    ) -> CompletionResult:
        """
        Record delivered quantity and close the order.

        A short delivery ends the order ``partial`` and creates its remainder
        in the same transaction; both changes share one correlation id.

        Raises:
            InvalidTransition: If the order is not active or paused
            InvalidQuantity: If the quantity is not positive or overshoots
            ConcurrentModification: If the order changed since it was read
        """
        with self._uow_factory() as uow:
            work_order = self._load(uow, work_order_id, expected_version)
            now = self.clock()
            result = self._splitter.complete(
                work_order, quantity_delivered, actor_id, now
            )
            uow.work_orders.save(work_order)
            if result.remainder is not None:
                uow.work_orders.add(result.remainder)
            uow.queue.remove(work_order.id)
            self._close_session(uow, work_order, actor_id, quantity_delivered, now)

        logger.info(
            "work_order_completed",
            work_order_id=work_order_id,
            status=work_order.status.value,
            completed_qty=work_order.completed_qty,
            remainder_id=result.remainder.id if result.remainder else None,
            correlation_id=result.correlation_id,
        )
        return result

    def reassign(
        self,
        work_order_id: str,
        resource_id: str,
        actor_id: str,
        expected_version: int | None = None,
    ) -> WorkOrder:
        """Put an unassigned remainder on a resource queue."""
        with self._uow_factory() as uow:
            work_order = self._load(uow, work_order_id, expected_version)
            resource = uow.resources.get_required(resource_id)
            now = self.clock()
            work_order.reassign(resource, actor_id, now)
            uow.work_orders.save(work_order)
            uow.resources.touch(resource)
            uow.queue.append(resource.id, work_order.id, now)
            uow.notify(
                WorkOrderAssignedNotice(resource.id, work_order.job_id, work_order.id)
            )

        logger.info(
            "work_order_reassigned",
            work_order_id=work_order_id,
            resource_id=resource_id,
            estimated_duration_min=work_order.estimated_duration_min,
        )
        return work_order

    def unassign(
        self, work_order_id: str, actor_id: str, expected_version: int | None = None
    ) -> WorkOrder:
        """Delete an open order with its queue entry and open time entries."""
        with self._uow_factory() as uow:
            work_order = self._load(uow, work_order_id, expected_version)
            work_order.unassign(actor_id, self.clock())
            uow.work_orders.remove(work_order)
            uow.queue.remove(work_order.id)
            uow.time_entries.delete_open_for(work_order.id)

        logger.info("work_order_unassigned", work_order_id=work_order_id)
        return work_order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get(self, work_order_id: str) -> WorkOrder:
        with self._uow_factory() as uow:
            return uow.work_orders.get_required(work_order_id)

    def get_remainder(self, work_order_id: str) -> WorkOrder | None:
        """
        The remainder split from a work order, if any.

        Raises:
            PartialSplitInconsistency: If a partial order has no remainder
        """
        with self._uow_factory() as uow:
            work_order = uow.work_orders.get_required(work_order_id)
            remainder = uow.work_orders.remainder_of(work_order.id)
        if remainder is None and work_order.status == WorkOrderStatus.PARTIAL:
            raise PartialSplitInconsistency(work_order_id, "remainder is missing")
        return remainder

    def time_entries(self, work_order_id: str) -> list[TimeEntry]:
        with self._uow_factory() as uow:
            uow.work_orders.get_required(work_order_id)
            return uow.time_entries.for_work_order(work_order_id)

    def elapsed_minutes(self, work_order_id: str) -> int:
        """Minutes logged on the order so far; a running session is not counted."""
        return total_elapsed_minutes(self.time_entries(work_order_id))

    def queue_for(self, resource_id: str) -> list[ResourceQueueEntry]:
        with self._uow_factory() as uow:
            uow.resources.get_required(resource_id)
            return uow.queue.entries_for(resource_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _load(
        self,
        uow: SqlModelUnitOfWork,
        work_order_id: str,
        expected_version: int | None,
    ) -> WorkOrder:
        work_order = uow.work_orders.get_required(work_order_id)
        self.check_version(ENTITY, work_order, expected_version)
        return work_order

    @staticmethod
    def _close_session(
        uow: SqlModelUnitOfWork,
        work_order: WorkOrder,
        actor_id: str,
        quantity: int,
        now: datetime,
    ) -> None:
        open_entries = uow.time_entries.open_for(work_order.id)
        if not open_entries:
            # Completed from paused: record the delivery as a zero-length entry
            uow.time_entries.add(
                TimeEntry(
                    work_order_id=work_order.id,
                    actor_id=actor_id,
                    started_at=now,
                    ended_at=now,
                    quantity_completed=quantity,
                )
            )
            return
        for index, entry in enumerate(open_entries):
            entry.close(now, quantity if index == 0 else 0)
            uow.time_entries.save(entry)
