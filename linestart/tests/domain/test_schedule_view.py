"""Unit tests for schedule view derivation."""

import pytest

from linestart.domain.scheduling.read_models.schedule_view import ScheduleViewEntry

from .factories import T0, make_entry, make_resource, make_work_order, minutes


class TestDerive:
    def test_planned_bounds_from_assignment(self):
        resource = make_resource()
        entry = ScheduleViewEntry.derive(make_work_order(resource), resource)

        assert entry.planned_start == T0
        assert entry.planned_end == T0 + minutes(215)
        assert entry.resource_name == "CNC Mill 3"
        assert entry.derivation_key == (1, 1)

    def test_scheduled_start_wins(self):
        resource = make_resource()
        work_order = make_work_order(resource)
        work_order.scheduled_start = T0 + minutes(60)

        entry = ScheduleViewEntry.derive(work_order, resource)
        assert entry.planned_start == T0 + minutes(60)
        assert entry.planned_end == T0 + minutes(275)

    def test_resource_mismatch_rejected(self):
        with pytest.raises(ValueError):
            ScheduleViewEntry.derive(make_work_order(), make_resource())


class TestSupersedes:
    def test_anything_supersedes_missing_entry(self):
        assert make_entry().supersedes(None)

    def test_older_write_discarded(self):
        stored = make_entry(source_version=3)
        assert not make_entry(source_version=2).supersedes(stored)

    def test_equal_write_discarded(self):
        assert not make_entry(source_version=3).supersedes(make_entry(source_version=3))

    def test_newer_source_wins(self):
        assert make_entry(source_version=4).supersedes(make_entry(source_version=3))

    def test_newer_resource_wins(self):
        stored = make_entry(source_version=3, resource_version=1)
        assert make_entry(source_version=3, resource_version=2).supersedes(stored)

    def test_newer_resource_does_not_carry_older_source(self):
        stored = make_entry(source_version=3, resource_version=1)
        assert not make_entry(source_version=2, resource_version=2).supersedes(stored)
