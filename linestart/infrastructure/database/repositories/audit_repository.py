"""
Audit ledger store.

Append-only: rows are inserted once per change event and never updated or
deleted. ``sequence`` is assigned by the database and strictly increases.
"""

from sqlmodel import Session, select

from linestart.domain.scheduling.events.domain_events import ChangeEvent
from linestart.domain.scheduling.read_models.audit import AuditRecord
from linestart.infrastructure.database.models import AuditRecordRow


class AuditRepository:
    def __init__(self, session: Session):
        self.session = session

    def append(self, event: ChangeEvent) -> bool:
        """Append the record for an event; False if it is already there."""
        if self.contains(event.event_id):
            return False
        self.session.add(
            AuditRecordRow(
                event_id=event.event_id,
                correlation_id=event.correlation_id,
                causation_id=event.causation_id,
                actor_id=event.actor_id,
                action=event.action,
                job_id=event.job_id,
                work_order_id=event.work_order_id,
                resource_id=event.resource_id,
                before=event.before,
                after=event.after,
                ts=event.occurred_at,
            )
        )
        self.session.flush()
        return True

    def contains(self, event_id: str) -> bool:
        statement = select(AuditRecordRow.sequence).where(
            AuditRecordRow.event_id == event_id
        )
        return self.session.exec(statement).first() is not None

    def for_job(self, job_id: str) -> list[AuditRecord]:
        statement = (
            select(AuditRecordRow)
            .where(AuditRecordRow.job_id == job_id)
            .order_by(AuditRecordRow.sequence)
        )
        return self._records(statement)

    def for_work_order(self, work_order_id: str) -> list[AuditRecord]:
        statement = (
            select(AuditRecordRow)
            .where(AuditRecordRow.work_order_id == work_order_id)
            .order_by(AuditRecordRow.sequence)
        )
        return self._records(statement)

    def correlated(self, correlation_id: str) -> list[AuditRecord]:
        statement = (
            select(AuditRecordRow)
            .where(AuditRecordRow.correlation_id == correlation_id)
            .order_by(AuditRecordRow.sequence)
        )
        return self._records(statement)

    def recent(self, limit: int = 50) -> list[AuditRecord]:
        statement = (
            select(AuditRecordRow).order_by(AuditRecordRow.sequence.desc()).limit(limit)  # type: ignore[union-attr]
        )
        return self._records(statement)

    def _records(self, statement) -> list[AuditRecord]:
        return [
            AuditRecord.model_validate(row, from_attributes=True)
            for row in self.session.exec(statement)
        ]
