"""
Scheduling value objects.
"""

from .custom_fields import CustomFieldDefinition, CustomFieldType, validate_custom_fields
from .downtime import DowntimeState, DowntimeWindow
from .duration import end_time, estimated_duration, minutes_between, whole_minutes
from .enums import (
    ChangeAction,
    DowntimeProvenance,
    JobStatus,
    WorkOrderKind,
    WorkOrderStatus,
)
from .operational_hours import OperationalHours

__all__ = [
    "ChangeAction",
    "CustomFieldDefinition",
    "CustomFieldType",
    "DowntimeProvenance",
    "DowntimeState",
    "DowntimeWindow",
    "JobStatus",
    "OperationalHours",
    "WorkOrderKind",
    "WorkOrderStatus",
    "end_time",
    "estimated_duration",
    "minutes_between",
    "whole_minutes",
    "validate_custom_fields",
]
