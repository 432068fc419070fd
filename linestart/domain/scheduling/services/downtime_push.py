"""
Downtime Push Controller

Computes the effective timeline of schedule entries under unscheduled
downtime. Nothing is stored: while a window is open its push grows with
the clock, and once it closes the push freezes at the window length.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..read_models.schedule_view import ScheduleViewEntry
from ..value_objects.downtime import DowntimeWindow


@dataclass(frozen=True)
class EffectiveSchedule:
    """Planned and effective bounds of one entry at a given instant."""

    work_order_id: str
    planned_start: datetime
    planned_end: datetime
    start: datetime
    end: datetime
    is_live: bool = False

    @property
    def pushed(self) -> timedelta:
        return self.end - self.planned_end


class DowntimePushController:
    """
    Applies the affected-order rule.

    A window on a resource pushes an order on that resource when the order
    was assigned at or before the window began and had not completed by
    then. The start moves only if the order had not started before the
    window; the end always moves. The window's own downtime order keeps its
    start and grows its end.
    """

    def affects(self, entry: ScheduleViewEntry, window: DowntimeWindow) -> bool:
        if not window.provenance.pushes_timeline:
            return False
        if window.resource_id != entry.resource_id:
            return False
        if window.work_order_id == entry.work_order_id:
            return True

        assigned_at = entry.assigned_at or entry.planned_start
        if assigned_at > window.started_at:
            return False
        if entry.completed_at is not None and entry.completed_at <= window.started_at:
            return False
        return True

    def pushes_start(self, entry: ScheduleViewEntry, window: DowntimeWindow) -> bool:
        if window.work_order_id == entry.work_order_id:
            return False
        return entry.started_at is None or entry.started_at >= window.started_at

    def effective_schedule(
        self,
        entry: ScheduleViewEntry,
        windows: Iterable[DowntimeWindow],
        now: datetime,
    ) -> EffectiveSchedule:
        start_push = timedelta(0)
        end_push = timedelta(0)
        is_live = False

        for window in windows:
            if not self.affects(entry, window):
                continue
            elapsed = window.elapsed(now)
            end_push += elapsed
            if self.pushes_start(entry, window):
                start_push += elapsed
            is_live = is_live or window.is_open

        return EffectiveSchedule(
            work_order_id=entry.work_order_id,
            planned_start=entry.planned_start,
            planned_end=entry.planned_end,
            start=entry.planned_start + start_push,
            end=entry.planned_end + end_push,
            is_live=is_live,
        )
