"""
Audit Ledger

Appends one audit record per change event. Events sharing a correlation id
(a partial completion and its remainder) land in the same transaction.
Appends are idempotent by event id, so replays after a failed batch never
duplicate records.
"""

from linestart.core.observability import get_logger
from linestart.domain.scheduling.read_models.audit import (
    AuditRecord,
    ReconciliationKind,
)
from linestart.infrastructure.database.repositories import FeedItem
from linestart.infrastructure.database.unit_of_work import SqlModelUnitOfWork
from linestart.infrastructure.events.changefeed import ChangeFeedConsumer

logger = get_logger(__name__)


class AuditLedger(ChangeFeedConsumer):
    name = "audit_ledger"

    def handle(self, uow: SqlModelUnitOfWork, items: list[FeedItem]) -> None:
        appended = 0
        for item in items:
            if uow.audit.append(item.event):
                appended += 1

        # Pull in the rest of a correlated group cut off by the batch limit
        trailing = items[-1].event.correlation_id
        for item in uow.change_events.by_correlation(trailing):
            if item.sequence > items[-1].sequence and uow.audit.append(item.event):
                appended += 1

        uow.reconciliation.resolve(
            ReconciliationKind.AUDIT_GAP, items[0].event.event_id, self.clock()
        )
        logger.debug("audit_records_appended", count=appended)

    def on_failure(self, items: list[FeedItem], error: Exception) -> None:
        first = items[0]
        logger.error(
            "audit_append_failed",
            sequence=first.sequence,
            event_id=first.event.event_id,
            error=str(error),
        )
        with self._uow_factory() as uow:
            uow.reconciliation.flag(
                ReconciliationKind.AUDIT_GAP,
                first.event.event_id,
                f"sequence {first.sequence}: {error}",
                self.clock(),
            )

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------
    def for_job(self, job_id: str) -> list[AuditRecord]:
        with self._uow_factory() as uow:
            return uow.audit.for_job(job_id)

    def for_work_order(self, work_order_id: str) -> list[AuditRecord]:
        with self._uow_factory() as uow:
            return uow.audit.for_work_order(work_order_id)

    def correlated(self, correlation_id: str) -> list[AuditRecord]:
        with self._uow_factory() as uow:
            return uow.audit.correlated(correlation_id)

    def recent(self, limit: int = 50) -> list[AuditRecord]:
        with self._uow_factory() as uow:
            return uow.audit.recent(limit)
