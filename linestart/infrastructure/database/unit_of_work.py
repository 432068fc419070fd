"""
Unit of Work implementation for managing transactions across repositories.

Change events raised by aggregates written through the repositories are
appended to the change feed in the same transaction. Outbound notices are
published on the event bus only after the commit succeeds.
"""

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from linestart.core.db import SessionFactory
from linestart.domain.shared.base import AggregateRoot
from linestart.infrastructure.events.event_bus import EventBusInterface

from .repositories import (
    AuditRepository,
    ChangeEventRepository,
    CheckpointRepository,
    DatabaseError,
    DowntimeWindowRepository,
    JobRepository,
    QueueRepository,
    ReconciliationRepository,
    ResourceRepository,
    ScheduleViewRepository,
    TimeEntryRepository,
    WorkOrderRepository,
)

logger = logging.getLogger(__name__)


class SqlModelUnitOfWork:
    """
    SQLModel-based Unit of Work.

    Usage:
        with SqlModelUnitOfWork(session_factory, event_bus) as uow:
            work_order = uow.work_orders.get_required(work_order_id)
            work_order.pause(actor_id, now)
            uow.work_orders.save(work_order)

    Leaving the block without an exception commits; otherwise everything,
    change events included, is rolled back.
    """

    jobs: JobRepository
    resources: ResourceRepository
    work_orders: WorkOrderRepository
    time_entries: TimeEntryRepository
    queue: QueueRepository
    downtime_windows: DowntimeWindowRepository
    schedule_view: ScheduleViewRepository
    change_events: ChangeEventRepository
    checkpoints: CheckpointRepository
    audit: AuditRepository
    reconciliation: ReconciliationRepository

    def __init__(
        self,
        session_factory: SessionFactory,
        event_bus: EventBusInterface | None = None,
    ):
        self._session_factory = session_factory
        self._event_bus = event_bus
        self._session: Session | None = None
        self._written: list[AggregateRoot] = []
        self._notices: list[Any] = []

    @property
    def session(self) -> Session:
        if self._session is None:
            raise DatabaseError("No active session")
        return self._session

    def __enter__(self) -> "SqlModelUnitOfWork":
        self._session = self._session_factory()
        self._written = []
        self._notices = []
        self._init_repositories(self._session)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            if exc_type is not None:
                self.rollback()
            else:
                self.commit()
        finally:
            if self._session is not None:
                self._session.close()
                self._session = None

    def _init_repositories(self, session: Session) -> None:
        self.jobs = JobRepository(session, self._written)
        self.resources = ResourceRepository(session, self._written)
        self.work_orders = WorkOrderRepository(session, self._written)
        self.time_entries = TimeEntryRepository(session)
        self.queue = QueueRepository(session)
        self.downtime_windows = DowntimeWindowRepository(session)
        self.schedule_view = ScheduleViewRepository(session)
        self.change_events = ChangeEventRepository(session)
        self.checkpoints = CheckpointRepository(session)
        self.audit = AuditRepository(session)
        self.reconciliation = ReconciliationRepository(session)

    def notify(self, notice: Any) -> None:
        """Queue an outbound notice for publication after commit."""
        self._notices.append(notice)

    def commit(self) -> None:
        """
        Write pending change events to the feed and commit.

        Raises:
            DatabaseError: If the commit fails
        """
        session = self.session
        try:
            for aggregate in self._written:
                for event in aggregate.get_domain_events():
                    self.change_events.append(event)
            session.commit()
        except SQLAlchemyError as e:
            self.rollback()
            raise DatabaseError(f"Failed to commit transaction: {str(e)}") from e

        for aggregate in self._written:
            aggregate.clear_domain_events()
        self._written.clear()
        self._publish_notices()

    def rollback(self) -> None:
        if self._session is None:
            return
        try:
            self._session.rollback()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to rollback transaction: {str(e)}") from e
        finally:
            self._written.clear()
            self._notices.clear()

    def _publish_notices(self) -> None:
        notices, self._notices = self._notices, []
        if not notices or self._event_bus is None:
            return
        for notice in notices:
            try:
                self._event_bus.publish(notice)
            except Exception as e:
                # The change is committed; delivery problems must not surface
                logger.error(f"Failed to publish {type(notice).__name__}: {str(e)}")


class UnitOfWorkManager:
    """Creates units of work bound to one session factory and event bus."""

    def __init__(
        self,
        session_factory: SessionFactory,
        event_bus: EventBusInterface | None = None,
    ):
        self._session_factory = session_factory
        self._event_bus = event_bus

    @property
    def event_bus(self) -> EventBusInterface | None:
        return self._event_bus

    def __call__(self) -> SqlModelUnitOfWork:
        return SqlModelUnitOfWork(self._session_factory, self._event_bus)
