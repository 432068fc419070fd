"""
Schedule View Synchronizer

Keeps one schedule view entry per resource-assigned work order. Entries are
always re-derived from the current source records, never patched from event
payloads, so replayed or reordered events converge on the same view.
"""

from linestart.core.observability import get_logger
from linestart.domain.scheduling.read_models.schedule_view import ScheduleViewEntry
from linestart.domain.scheduling.value_objects.enums import (
    ChangeAction,
    WorkOrderKind,
)
from linestart.infrastructure.database.repositories import FeedItem
from linestart.infrastructure.database.unit_of_work import SqlModelUnitOfWork
from linestart.infrastructure.events.changefeed import ChangeFeedConsumer

logger = get_logger(__name__)

DOWNTIME_ACTIONS = {ChangeAction.DOWNTIME_REPORTED, ChangeAction.DOWNTIME_CLEARED}


class ScheduleViewSynchronizer(ChangeFeedConsumer):
    name = "schedule_view"

    def handle(self, uow: SqlModelUnitOfWork, items: list[FeedItem]) -> None:
        pending: dict[str, None] = {}
        for item in items:
            event = item.event
            if event.action == ChangeAction.RESOURCE_DELETED:
                self._drop_resource(uow, event.resource_id)
                continue
            if event.action.touches_resource_entries:
                for work_order in uow.work_orders.for_resource(event.resource_id):
                    pending[work_order.id] = None
            elif event.action in DOWNTIME_ACTIONS:
                # Scheduled downtime changes status without events of its own
                for work_order in uow.work_orders.for_resource(event.resource_id):
                    if work_order.kind == WorkOrderKind.DOWNTIME:
                        pending[work_order.id] = None
            if event.work_order_id is not None:
                pending[event.work_order_id] = None

        for work_order_id in pending:
            self.sync(uow, work_order_id)

    def sync(self, uow: SqlModelUnitOfWork, work_order_id: str) -> bool:
        """Re-derive one entry; returns True if the view changed."""
        work_order = uow.work_orders.get(work_order_id)
        if work_order is None or work_order.resource_id is None:
            return uow.schedule_view.delete(work_order_id)

        resource = uow.resources.get(work_order.resource_id)
        if resource is None:
            logger.warning(
                "schedule_view_resource_missing",
                work_order_id=work_order_id,
                resource_id=work_order.resource_id,
            )
            return False

        written = uow.schedule_view.write_if_newer(
            ScheduleViewEntry.derive(work_order, resource)
        )
        if not written:
            logger.debug("schedule_view_write_skipped", work_order_id=work_order_id)
        return written

    @staticmethod
    def _drop_resource(uow: SqlModelUnitOfWork, resource_id: str | None) -> None:
        if resource_id is None:
            return
        for work_order_id in uow.schedule_view.work_order_ids_for_resource(resource_id):
            uow.schedule_view.delete(work_order_id)
        logger.info("schedule_view_resource_dropped", resource_id=resource_id)
