"""
Change feed store: the transactional outbox and per-consumer checkpoints.

Events are appended in the same transaction as the source-record writes
that produced them, so the feed never shows a change that was rolled back
and never misses one that committed.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, update
from sqlmodel import Session, select

from linestart.domain.scheduling.events.domain_events import ChangeEvent
from linestart.domain.shared.exceptions import ConcurrentModification
from linestart.infrastructure.database.models import (
    ChangeEventRecord,
    ConsumerCheckpointRecord,
)


@dataclass(frozen=True)
class FeedItem:
    """A committed change event and its position on the feed."""

    sequence: int
    event: ChangeEvent


class ChangeEventRepository:
    def __init__(self, session: Session):
        self.session = session

    def append(self, event: ChangeEvent) -> None:
        self.session.add(
            ChangeEventRecord(
                event_id=event.event_id,
                correlation_id=event.correlation_id,
                causation_id=event.causation_id,
                action=event.action,
                actor_id=event.actor_id,
                job_id=event.job_id,
                work_order_id=event.work_order_id,
                resource_id=event.resource_id,
                before=event.before,
                after=event.after,
                source_version=event.source_version,
                occurred_at=event.occurred_at,
            )
        )

    def after(self, sequence: int, limit: int) -> list[FeedItem]:
        statement = (
            select(ChangeEventRecord)
            .where(ChangeEventRecord.sequence > sequence)
            .order_by(ChangeEventRecord.sequence)
            .limit(limit)
        )
        return [self._to_item(record) for record in self.session.exec(statement)]

    def by_correlation(self, correlation_id: str) -> list[FeedItem]:
        statement = (
            select(ChangeEventRecord)
            .where(ChangeEventRecord.correlation_id == correlation_id)
            .order_by(ChangeEventRecord.sequence)
        )
        return [self._to_item(record) for record in self.session.exec(statement)]

    def last_sequence(self) -> int:
        statement = select(func.max(ChangeEventRecord.sequence))
        return self.session.exec(statement).one() or 0

    @staticmethod
    def _to_item(record: ChangeEventRecord) -> FeedItem:
        return FeedItem(
            sequence=record.sequence,
            event=ChangeEvent(
                action=record.action,
                actor_id=record.actor_id,
                job_id=record.job_id,
                work_order_id=record.work_order_id,
                resource_id=record.resource_id,
                before=record.before,
                after=record.after,
                source_version=record.source_version,
                correlation_id=record.correlation_id,
                causation_id=record.causation_id,
                event_id=record.event_id,
                occurred_at=record.occurred_at,
            ),
        )


class CheckpointRepository:
    """Last processed feed sequence per consumer."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, consumer: str) -> int:
        statement = select(ConsumerCheckpointRecord.last_sequence).where(
            ConsumerCheckpointRecord.consumer == consumer
        )
        return self.session.exec(statement).first() or 0

    def advance(
        self, consumer: str, from_sequence: int, to_sequence: int, now: datetime
    ) -> None:
        """
        Move the checkpoint forward, compare-and-set on its previous value.

        Raises:
            ConcurrentModification: if another worker advanced it first
        """
        if to_sequence <= from_sequence:
            return
        statement = (
            update(ConsumerCheckpointRecord)
            .where(
                ConsumerCheckpointRecord.consumer == consumer,
                ConsumerCheckpointRecord.last_sequence == from_sequence,
            )
            .values(last_sequence=to_sequence, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = self.session.connection().execute(statement)
        if result.rowcount == 1:
            return
        if from_sequence == 0 and self._missing(consumer):
            self.session.add(
                ConsumerCheckpointRecord(
                    consumer=consumer, last_sequence=to_sequence, updated_at=now
                )
            )
            self.session.flush()
            return
        raise ConcurrentModification(
            "ConsumerCheckpoint", consumer, from_sequence, self.get(consumer)
        )

    def _missing(self, consumer: str) -> bool:
        statement = select(ConsumerCheckpointRecord.consumer).where(
            ConsumerCheckpointRecord.consumer == consumer
        )
        return self.session.exec(statement).first() is None
