"""Daily operating window of a resource."""

from datetime import datetime, time, timedelta

from pydantic import Field, field_validator, model_validator
from typing_extensions import Self

from ...shared.base import ValueObject

WEEKDAYS = (0, 1, 2, 3, 4)


class OperationalHours(ValueObject):
    """
    Window a resource runs in on each of its operating days.

    ``days_of_week`` follows ``datetime.weekday()``: Monday is 0, Sunday 6.
    Both ends of the window are inclusive.
    """

    start_time: time
    end_time: time
    days_of_week: tuple[int, ...] = Field(default=WEEKDAYS, min_length=1)

    @field_validator("days_of_week")
    @classmethod
    def _known_days(cls, days: tuple[int, ...]) -> tuple[int, ...]:
        if any(day < 0 or day > 6 for day in days):
            raise ValueError("Days of week must be between 0 (Monday) and 6 (Sunday)")
        return tuple(sorted(set(days)))

    @model_validator(mode="after")
    def _end_after_start(self) -> Self:
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self

    def contains(self, moment: datetime) -> bool:
        return (
            moment.weekday() in self.days_of_week
            and self.start_time <= moment.time() <= self.end_time
        )

    def next_available_start(self, moment: datetime) -> datetime:
        """
        Earliest moment at or after ``moment`` inside the window.

        Before opening on an operating day that is the same day's opening
        time; otherwise the opening time of the next operating day.
        """
        if self.contains(moment):
            return moment
        if moment.weekday() in self.days_of_week and moment.time() < self.start_time:
            return datetime.combine(moment.date(), self.start_time)

        offset = next(
            step
            for step in range(1, 8)
            if (moment.weekday() + step) % 7 in self.days_of_week
        )
        return datetime.combine(moment.date() + timedelta(days=offset), self.start_time)
