"""
Schedule view store.

Only the schedule view synchronizer writes here. Writes are conditional on
the stored entry not already reflecting an equal-or-newer derivation, so
late or replayed events can never regress an entry.
"""

from datetime import datetime

from sqlalchemy import delete, update
from sqlmodel import Session, select

from linestart.domain.scheduling.read_models.schedule_view import ScheduleViewEntry
from linestart.domain.shared.exceptions import ConcurrentModification
from linestart.infrastructure.database.models import ScheduleViewRecord


class ScheduleViewRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, work_order_id: str) -> ScheduleViewEntry | None:
        statement = (
            select(ScheduleViewRecord)
            .where(ScheduleViewRecord.work_order_id == work_order_id)
            .execution_options(populate_existing=True)
        )
        record = self.session.exec(statement).first()
        return None if record is None else self._to_entry(record)

    def write_if_newer(self, entry: ScheduleViewEntry) -> bool:
        """
        Store the entry unless it is stale; returns whether it was written.

        The update is conditional on the derivation key that was read, so a
        concurrent writer is detected rather than overwritten.

        Raises:
            ConcurrentModification: If the stored entry changed since it was read
        """
        stored = self.get(entry.work_order_id)
        if not entry.supersedes(stored):
            return False
        if stored is None:
            self.session.add(ScheduleViewRecord(**entry.model_dump()))
            self.session.flush()
            return True

        statement = (
            update(ScheduleViewRecord)
            .where(
                ScheduleViewRecord.work_order_id == entry.work_order_id,
                ScheduleViewRecord.source_version == stored.source_version,
                ScheduleViewRecord.resource_version == stored.resource_version,
            )
            .values(**entry.model_dump(exclude={"work_order_id"}))
            .execution_options(synchronize_session=False)
        )
        result = self.session.connection().execute(statement)
        if result.rowcount != 1:
            raise ConcurrentModification(
                "ScheduleViewEntry", entry.work_order_id, stored.source_version
            )
        return True

    def delete(self, work_order_id: str) -> bool:
        result = self.session.connection().execute(
            delete(ScheduleViewRecord).where(
                ScheduleViewRecord.work_order_id == work_order_id
            )
        )
        return result.rowcount > 0

    def work_order_ids_for_resource(self, resource_id: str) -> list[str]:
        statement = select(ScheduleViewRecord.work_order_id).where(
            ScheduleViewRecord.resource_id == resource_id
        )
        return list(self.session.exec(statement))

    def candidates(
        self, before: datetime | None = None, resource_id: str | None = None
    ) -> list[ScheduleViewEntry]:
        """
        Entries that may overlap a range ending at ``before``.

        Downtime only ever pushes entries later, so anything planned to
        start at or after ``before`` cannot overlap.
        """
        statement = select(ScheduleViewRecord).execution_options(
            populate_existing=True
        )
        if before is not None:
            statement = statement.where(ScheduleViewRecord.planned_start < before)
        if resource_id is not None:
            statement = statement.where(ScheduleViewRecord.resource_id == resource_id)
        return [self._to_entry(record) for record in self.session.exec(statement)]

    @staticmethod
    def _to_entry(record: ScheduleViewRecord) -> ScheduleViewEntry:
        return ScheduleViewEntry.model_validate(record, from_attributes=True)
