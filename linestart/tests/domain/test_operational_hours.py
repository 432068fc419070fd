"""Unit tests for resource operating hours and logged time totals."""

from datetime import datetime, time

import pytest
from pydantic import ValidationError

from linestart.domain.scheduling.entities.work_order import (
    TimeEntry,
    WorkOrder,
    total_elapsed_minutes,
)
from linestart.domain.scheduling.read_models.schedule_view import ScheduleViewEntry
from linestart.domain.scheduling.value_objects.operational_hours import OperationalHours

from .factories import ACTOR, T0, make_resource, make_work_order, minutes

# Weekdays 08:00 to 17:00; T0 is Monday 2024-03-04 08:00
DAY_SHIFT = OperationalHours(start_time=time(8, 0), end_time=time(17, 0))


class TestOperationalHours:
    def test_window_is_inclusive(self):
        assert DAY_SHIFT.contains(datetime(2024, 3, 4, 8, 0))
        assert DAY_SHIFT.contains(datetime(2024, 3, 4, 17, 0))
        assert not DAY_SHIFT.contains(datetime(2024, 3, 4, 17, 1))
        # Saturday
        assert not DAY_SHIFT.contains(datetime(2024, 3, 9, 10, 0))

    def test_inside_window_unchanged(self):
        moment = datetime(2024, 3, 5, 11, 30)
        assert DAY_SHIFT.next_available_start(moment) == moment

    def test_before_opening_waits_for_same_day(self):
        assert DAY_SHIFT.next_available_start(datetime(2024, 3, 5, 6, 15)) == datetime(
            2024, 3, 5, 8, 0
        )

    def test_after_closing_moves_to_next_day(self):
        assert DAY_SHIFT.next_available_start(datetime(2024, 3, 5, 18, 0)) == datetime(
            2024, 3, 6, 8, 0
        )

    def test_weekend_moves_to_monday(self):
        friday_evening = datetime(2024, 3, 8, 21, 0)
        assert DAY_SHIFT.next_available_start(friday_evening) == datetime(
            2024, 3, 11, 8, 0
        )

    def test_single_operating_day_wraps_week(self):
        mondays = OperationalHours(
            start_time=time(6, 0), end_time=time(14, 0), days_of_week=(0,)
        )
        assert mondays.next_available_start(datetime(2024, 3, 4, 15, 0)) == datetime(
            2024, 3, 11, 6, 0
        )

    def test_days_are_normalized(self):
        hours = OperationalHours(
            start_time="06:00", end_time="14:00", days_of_week=[4, 0, 4]
        )
        assert hours.days_of_week == (0, 4)
        assert hours.start_time == time(6, 0)

    @pytest.mark.parametrize(
        "values",
        [
            {"start_time": "17:00", "end_time": "08:00"},
            {"start_time": "08:00", "end_time": "08:00"},
            {"start_time": "08:00", "end_time": "17:00", "days_of_week": [7]},
            {"start_time": "08:00", "end_time": "17:00", "days_of_week": []},
        ],
    )
    def test_invalid_window_rejected(self, values):
        with pytest.raises(ValidationError):
            OperationalHours(**values)


class TestPlannedStartWithinHours:
    def test_production_order_waits_for_opening(self):
        resource = make_resource(operational_hours=DAY_SHIFT)
        work_order = make_work_order(resource)
        work_order.scheduled_start = datetime(2024, 3, 8, 19, 0)

        entry = ScheduleViewEntry.derive(work_order, resource)

        assert entry.planned_start == datetime(2024, 3, 11, 8, 0)
        assert entry.planned_end == datetime(2024, 3, 11, 8, 0) + minutes(215)

    def test_order_inside_hours_keeps_its_start(self):
        resource = make_resource(operational_hours=DAY_SHIFT)
        entry = ScheduleViewEntry.derive(make_work_order(resource), resource)
        assert entry.planned_start == T0

    def test_downtime_keeps_its_window(self):
        resource = make_resource(operational_hours=DAY_SHIFT)
        night = datetime(2024, 3, 4, 22, 0)
        work_order = WorkOrder.schedule_downtime(
            job_id="MAINT-STANDARD",
            resource_id=resource.id,
            start=night,
            end=night + minutes(90),
            actor_id=ACTOR,
            now=T0,
        )

        entry = ScheduleViewEntry.derive(work_order, resource)
        assert entry.planned_start == night


class TestTotalElapsedMinutes:
    def test_sums_closed_entries(self):
        entries = [
            TimeEntry(
                work_order_id="wo-1",
                actor_id=ACTOR,
                started_at=T0,
                ended_at=T0 + minutes(45),
            ),
            TimeEntry(
                work_order_id="wo-1",
                actor_id=ACTOR,
                started_at=T0 + minutes(60),
                ended_at=T0 + minutes(90.5),
            ),
        ]
        assert total_elapsed_minutes(entries) == 76

    def test_running_entry_not_counted(self):
        entries = [
            TimeEntry(
                work_order_id="wo-1",
                actor_id=ACTOR,
                started_at=T0,
                ended_at=T0 + minutes(20),
            ),
            TimeEntry(work_order_id="wo-1", actor_id=ACTOR, started_at=T0 + minutes(30)),
        ]
        assert total_elapsed_minutes(entries) == 20

    def test_no_entries(self):
        assert total_elapsed_minutes([]) == 0
