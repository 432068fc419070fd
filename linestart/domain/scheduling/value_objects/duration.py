"""
Duration Calculator

Estimated run time of a work order from its resource's setup time and
throughput. Decimal arithmetic with half-up rounding keeps results stable at
the .5 boundary.
"""

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from ...shared.exceptions import InvalidQuantity, InvalidRate

MINUTES_PER_HOUR = Decimal("60")


def estimated_duration(
    setup_minutes: float, quantity: int, units_per_hour: float
) -> int:
    """
    Estimated duration in whole minutes.

    ``round(setup_minutes + quantity * 60 / units_per_hour)``, e.g. a
    15 minute setup producing 100 units at 30 units/hour takes 215 minutes.

    Raises:
        InvalidRate: if ``units_per_hour`` is not positive
        InvalidQuantity: if quantity or setup time is negative
    """
    if units_per_hour <= 0:
        raise InvalidRate(units_per_hour)
    if quantity < 0:
        raise InvalidQuantity("quantity", quantity, "must not be negative")
    if setup_minutes < 0:
        raise InvalidQuantity("setup_minutes", setup_minutes, "must not be negative")

    minutes_per_unit = MINUTES_PER_HOUR / Decimal(str(units_per_hour))
    total = Decimal(str(setup_minutes)) + Decimal(quantity) * minutes_per_unit
    return int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, rounded half-up."""
    if end < start:
        raise InvalidQuantity("end", end.isoformat(), "must not be before start")
    return whole_minutes(end - start)


def whole_minutes(span: timedelta) -> int:
    seconds = Decimal(str(span.total_seconds()))
    return int((seconds / 60).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def end_time(start: datetime, duration_minutes: int) -> datetime:
    return start + timedelta(minutes=duration_minutes)
