"""
Schedule query service.

Reads the schedule view and overlays downtime on the fly: the stored
entries never carry a shift, so every read computes effective bounds at the
current instant.
"""

from dataclasses import dataclass
from datetime import datetime

from linestart.domain.scheduling.read_models.schedule_view import ScheduleViewEntry
from linestart.domain.scheduling.services.downtime_push import (
    DowntimePushController,
    EffectiveSchedule,
)
from linestart.domain.scheduling.value_objects.downtime import DowntimeWindow
from linestart.domain.shared.base import as_naive_utc
from linestart.domain.shared.exceptions import ReferenceNotFound
from linestart.infrastructure.database.unit_of_work import SqlModelUnitOfWork

from .base_service import ApplicationServiceBase


@dataclass(frozen=True)
class ScheduleItem:
    entry: ScheduleViewEntry
    effective: EffectiveSchedule


class ScheduleQueryService(ApplicationServiceBase):
    """Read side of the schedule."""

    def __init__(
        self, *args, push_controller: DowntimePushController | None = None, **kwargs
    ):
        super().__init__(*args, **kwargs)
        self._push = push_controller or DowntimePushController()

    def query(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        resource_id: str | None = None,
        now: datetime | None = None,
    ) -> list[ScheduleItem]:
        """
        Entries whose effective span overlaps ``start``..``end``.

        Both bounds are optional. Results are sorted by effective start,
        then work order id.
        """
        start, end = as_naive_utc(start), as_naive_utc(end)
        now = as_naive_utc(now) or self.clock()
        with self._uow_factory() as uow:
            entries = uow.schedule_view.candidates(before=end, resource_id=resource_id)
            windows = self._windows(uow, resource_id)

        items = []
        for entry in entries:
            effective = self._push.effective_schedule(
                entry, windows.get(entry.resource_id, []), now
            )
            if _overlaps(effective, start, end):
                items.append(ScheduleItem(entry=entry, effective=effective))
        items.sort(key=lambda item: (item.effective.start, item.entry.work_order_id))
        return items

    def effective_schedule(
        self, work_order_id: str, now: datetime | None = None
    ) -> ScheduleItem:
        """
        Raises:
            ReferenceNotFound: If the work order has no schedule entry
        """
        now = as_naive_utc(now) or self.clock()
        with self._uow_factory() as uow:
            entry = uow.schedule_view.get(work_order_id)
            if entry is None:
                raise ReferenceNotFound("ScheduleViewEntry", work_order_id)
            windows = self._windows(uow, entry.resource_id)
        effective = self._push.effective_schedule(
            entry, windows.get(entry.resource_id, []), now
        )
        return ScheduleItem(entry=entry, effective=effective)

    @staticmethod
    def _windows(
        uow: SqlModelUnitOfWork, resource_id: str | None
    ) -> dict[str, list[DowntimeWindow]]:
        by_resource: dict[str, list[DowntimeWindow]] = {}
        for window in uow.downtime_windows.all(resource_id):
            by_resource.setdefault(window.resource_id, []).append(window)
        for resource in uow.resources.down_resources():
            if resource_id is not None and resource.id != resource_id:
                continue
            open_window = resource.downtime.open_window(resource.id)
            by_resource.setdefault(resource.id, []).append(open_window)
        return by_resource


def _overlaps(
    effective: EffectiveSchedule, start: datetime | None, end: datetime | None
) -> bool:
    # Zero-length entries count when they sit inside the range
    if start is not None and effective.end <= start and effective.start < start:
        return False
    if end is not None and effective.start >= end:
        return False
    return True
