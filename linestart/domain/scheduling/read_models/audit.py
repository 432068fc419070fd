"""Audit ledger records and reconciliation flags."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ...shared.base import utc_now
from ..value_objects.enums import ChangeAction


class AuditRecord(BaseModel):
    """Immutable fact in the append-only audit ledger."""

    model_config = ConfigDict(frozen=True)

    sequence: int | None = None
    event_id: str
    correlation_id: str
    causation_id: str | None = None
    actor_id: str
    action: ChangeAction
    job_id: str | None = None
    work_order_id: str | None = None
    resource_id: str | None = None
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    ts: datetime


class ReconciliationKind(str, Enum):
    AUDIT_GAP = "audit_gap"
    PARTIAL_SPLIT = "partial_split"


class ReconciliationFlag(BaseModel):
    """A detected inconsistency awaiting (or recording) its repair."""

    id: int | None = None
    kind: ReconciliationKind
    subject_id: str
    detail: str = ""
    created_at: datetime = Field(default_factory=utc_now)
    resolved_at: datetime | None = None
