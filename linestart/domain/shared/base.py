"""Base classes for domain entities and value objects."""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, the form the store keeps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid4())


class ValueObject(BaseModel):
    """Base class for value objects (immutable, defined by their values)."""

    model_config = ConfigDict(frozen=True)


class Entity(BaseModel):
    """Base class for entities (have identity, can change over time)."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_id)

    def __eq__(self, other: Any) -> bool:
        """Entities are equal if they have the same ID and type."""
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class AggregateRoot(Entity):
    """
    Base class for aggregate roots (entities that control consistency boundaries).

    ``version`` is the persisted version the aggregate was loaded at; the
    repository writes with compare-and-set against it and bumps it on success.
    Change events raised by the aggregate are collected by the unit of work
    and written to the change feed in the same transaction.
    """

    version: int = Field(default=1, ge=1)

    _domain_events: list[Any] = PrivateAttr(default_factory=list)

    @property
    def next_version(self) -> int:
        """Version the aggregate will carry once its pending write lands."""
        return self.version + 1

    def add_domain_event(self, event: Any) -> None:
        self._domain_events.append(event)

    def clear_domain_events(self) -> None:
        self._domain_events.clear()

    def get_domain_events(self) -> list[Any]:
        return self._domain_events.copy()
