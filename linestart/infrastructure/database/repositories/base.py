"""
Base repository implementation for versioned aggregates.

Aggregates are written with compare-and-set on their ``version`` column:
an update only lands if the row still carries the version the aggregate
was loaded at, and the row count tells whether the write won.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from linestart.domain.shared.base import AggregateRoot
from linestart.domain.shared.exceptions import (
    ConcurrentModification,
    DomainError,
    ErrorType,
    ReferenceNotFound,
)

DomainType = TypeVar("DomainType", bound=AggregateRoot)
RecordType = TypeVar("RecordType", bound=SQLModel)


class DatabaseError(DomainError):
    """Raised when a database operation fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorType.PERSISTENCE)


class VersionedRepository(Generic[DomainType, RecordType], ABC):
    """
    Base repository for aggregates persisted with optimistic concurrency.

    Concrete repositories provide the record class and the mapping between
    the aggregate and its row.
    """

    entity_name: str = "Entity"

    def __init__(self, session: Session, written: list[AggregateRoot] | None = None):
        self.session = session
        # Aggregates written through this repository, for event collection
        self._written = written if written is not None else []

    @property
    @abstractmethod
    def record_class(self) -> type[RecordType]:
        """Return the SQLModel table class managed by this repository."""

    @abstractmethod
    def to_domain(self, record: RecordType) -> DomainType:
        """Build the aggregate from its row."""

    @abstractmethod
    def to_columns(self, aggregate: DomainType) -> dict[str, Any]:
        """Column values of the aggregate, excluding id and version."""

    def get(self, entity_id: str) -> DomainType | None:
        """
        Load an aggregate by id.

        Always reads the row from the database so concurrent writes made
        through other sessions are seen.
        """
        try:
            statement = (
                select(self.record_class)
                .where(self.record_class.id == entity_id)
                .execution_options(populate_existing=True)
            )
            record = self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Error loading {self.entity_name} {entity_id}: {str(e)}"
            ) from e
        return None if record is None else self.to_domain(record)

    def get_required(self, entity_id: str) -> DomainType:
        aggregate = self.get(entity_id)
        if aggregate is None:
            raise ReferenceNotFound(self.entity_name, entity_id)
        return aggregate

    def add(self, aggregate: DomainType) -> None:
        """
        Insert a new aggregate at its current version.

        Raises:
            ConcurrentModification: if a row with the same id already exists
        """
        record = self.record_class(
            id=aggregate.id, version=aggregate.version, **self.to_columns(aggregate)
        )
        self.session.add(record)
        try:
            self.session.flush()
        except IntegrityError as e:
            raise ConcurrentModification(
                self.entity_name, aggregate.id, expected_version=0
            ) from e
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Error inserting {self.entity_name} {aggregate.id}: {str(e)}"
            ) from e
        self._track(aggregate)

    def save(self, aggregate: DomainType) -> None:
        """
        Compare-and-set update; bumps ``aggregate.version`` on success.

        Raises:
            ConcurrentModification: if the row moved past the loaded version
            ReferenceNotFound: if the row is gone
        """
        model = self.record_class
        statement = (
            update(model)
            .where(model.id == aggregate.id, model.version == aggregate.version)
            .values(version=aggregate.version + 1, **self.to_columns(aggregate))
            .execution_options(synchronize_session=False)
        )
        self._expect_one(self._execute(statement), aggregate)
        aggregate.version += 1
        self._track(aggregate)

    def touch(self, aggregate: DomainType) -> None:
        """
        Compare-and-set version bump with no column changes and no events.

        Claims the row for the current transaction: a writer still holding
        the older version fails with ConcurrentModification.
        """
        model = self.record_class
        statement = (
            update(model)
            .where(model.id == aggregate.id, model.version == aggregate.version)
            .values(version=aggregate.version + 1)
            .execution_options(synchronize_session=False)
        )
        self._expect_one(self._execute(statement), aggregate)
        aggregate.version += 1

    def remove(self, aggregate: DomainType) -> None:
        """Compare-and-set delete."""
        model = self.record_class
        statement = (
            delete(model)
            .where(model.id == aggregate.id, model.version == aggregate.version)
            .execution_options(synchronize_session=False)
        )
        self._expect_one(self._execute(statement), aggregate)
        self._track(aggregate)

    def current_version(self, entity_id: str) -> int | None:
        statement = select(self.record_class.version).where(
            self.record_class.id == entity_id
        )
        return self.session.exec(statement).first()

    def _track(self, aggregate: DomainType) -> None:
        if not any(seen is aggregate for seen in self._written):
            self._written.append(aggregate)

    def _execute(self, statement: Any) -> Any:
        try:
            return self.session.connection().execute(statement)
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Error writing {self.entity_name}: {str(e)}"
            ) from e

    def _expect_one(self, result: Any, aggregate: DomainType) -> None:
        if result.rowcount == 1:
            return
        actual = self.current_version(aggregate.id)
        if actual is None:
            raise ReferenceNotFound(self.entity_name, aggregate.id)
        raise ConcurrentModification(
            self.entity_name, aggregate.id, aggregate.version, actual
        )
