"""
Domain services for scheduling.
"""

from .completion_splitter import (
    CompletionResult,
    CompletionSplitter,
    remainder_id,
)
from .downtime_push import DowntimePushController, EffectiveSchedule

__all__ = [
    "CompletionResult",
    "CompletionSplitter",
    "DowntimePushController",
    "EffectiveSchedule",
    "remainder_id",
]
