"""Unit tests for the duration calculator."""

from datetime import datetime

import pytest

from linestart.domain.scheduling.value_objects.duration import (
    end_time,
    estimated_duration,
    minutes_between,
)
from linestart.domain.shared.exceptions import InvalidQuantity, InvalidRate


class TestEstimatedDuration:
    def test_setup_plus_run_time(self):
        assert estimated_duration(15, 100, 30) == 215

    def test_rounds_half_up(self):
        # 1 unit at 120/hour is exactly half a minute
        assert estimated_duration(0, 1, 120) == 1
        assert estimated_duration(0, 1, 121) == 0

    def test_fractional_setup(self):
        assert estimated_duration(2.5, 10, 60) == 13

    def test_zero_rate_rejected(self):
        with pytest.raises(InvalidRate):
            estimated_duration(15, 100, 0)

    def test_negative_rate_rejected(self):
        with pytest.raises(InvalidRate):
            estimated_duration(15, 100, -5)

    def test_negative_setup_rejected(self):
        with pytest.raises(InvalidQuantity):
            estimated_duration(-1, 100, 30)


class TestMinutesBetween:
    def test_whole_minutes(self):
        start = datetime(2024, 3, 4, 8, 0)
        assert minutes_between(start, datetime(2024, 3, 4, 9, 30)) == 90

    def test_half_minute_rounds_up(self):
        start = datetime(2024, 3, 4, 8, 0, 0)
        assert minutes_between(start, datetime(2024, 3, 4, 8, 0, 30)) == 1

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidQuantity):
            minutes_between(datetime(2024, 3, 4, 9), datetime(2024, 3, 4, 8))

    def test_end_time(self):
        assert end_time(datetime(2024, 3, 4, 8), 215) == datetime(2024, 3, 4, 11, 35)
