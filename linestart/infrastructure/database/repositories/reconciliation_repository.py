"""Reconciliation flags raised by consumers and repaired by the reconciler."""

from datetime import datetime

from sqlmodel import Session, select

from linestart.domain.scheduling.read_models.audit import (
    ReconciliationFlag,
    ReconciliationKind,
)
from linestart.infrastructure.database.models import ReconciliationFlagRecord


class ReconciliationRepository:
    def __init__(self, session: Session):
        self.session = session

    def flag(
        self, kind: ReconciliationKind, subject_id: str, detail: str, now: datetime
    ) -> ReconciliationFlag:
        """Raise a flag, reopening an earlier one for the same subject."""
        record = self._find(kind, subject_id)
        if record is None:
            record = ReconciliationFlagRecord(
                kind=kind.value, subject_id=subject_id, detail=detail, created_at=now
            )
        else:
            record.detail = detail
            record.resolved_at = None
        self.session.add(record)
        self.session.flush()
        return self._to_flag(record)

    def resolve(self, kind: ReconciliationKind, subject_id: str, now: datetime) -> bool:
        record = self._find(kind, subject_id)
        if record is None or record.resolved_at is not None:
            return False
        record.resolved_at = now
        self.session.add(record)
        return True

    def open_flags(self, kind: ReconciliationKind | None = None) -> list[ReconciliationFlag]:
        statement = select(ReconciliationFlagRecord).where(
            ReconciliationFlagRecord.resolved_at.is_(None)  # type: ignore[union-attr]
        )
        if kind is not None:
            statement = statement.where(ReconciliationFlagRecord.kind == kind.value)
        statement = statement.order_by(ReconciliationFlagRecord.id)
        return [self._to_flag(record) for record in self.session.exec(statement)]

    def all_flags(self) -> list[ReconciliationFlag]:
        statement = select(ReconciliationFlagRecord).order_by(ReconciliationFlagRecord.id)
        return [self._to_flag(record) for record in self.session.exec(statement)]

    def _find(
        self, kind: ReconciliationKind, subject_id: str
    ) -> ReconciliationFlagRecord | None:
        statement = select(ReconciliationFlagRecord).where(
            ReconciliationFlagRecord.kind == kind.value,
            ReconciliationFlagRecord.subject_id == subject_id,
        )
        return self.session.exec(statement).first()

    @staticmethod
    def _to_flag(record: ReconciliationFlagRecord) -> ReconciliationFlag:
        return ReconciliationFlag(
            id=record.id,
            kind=ReconciliationKind(record.kind),
            subject_id=record.subject_id,
            detail=record.detail,
            created_at=record.created_at,
            resolved_at=record.resolved_at,
        )
