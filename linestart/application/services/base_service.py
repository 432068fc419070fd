"""
Base application service providing common functionality.

Services load aggregates inside a unit of work, apply domain transitions
and let the unit of work write them (and their change events) atomically.
"""

from abc import ABC
from collections.abc import Callable
from datetime import datetime

from linestart.core.config import Settings, get_settings
from linestart.domain.scheduling.entities.job import Job
from linestart.domain.shared.base import AggregateRoot, utc_now
from linestart.domain.shared.exceptions import ConcurrentModification
from linestart.infrastructure.database.unit_of_work import (
    SqlModelUnitOfWork,
    UnitOfWorkManager,
)

SYSTEM_ACTOR = "system"


class ApplicationServiceBase(ABC):
    """Base class for application services."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkManager,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._uow_factory = unit_of_work_factory
        self.settings = settings or get_settings()
        self.clock = clock

    @staticmethod
    def check_version(
        entity_type: str, aggregate: AggregateRoot, expected_version: int | None
    ) -> None:
        """
        Fail before any write when the caller acted on a stale read.

        Raises:
            ConcurrentModification: If the stored version differs
        """
        if expected_version is not None and aggregate.version != expected_version:
            raise ConcurrentModification(
                entity_type, aggregate.id, expected_version, aggregate.version
            )

    def ensure_maintenance_job(self, uow: SqlModelUnitOfWork, job_id: str) -> None:
        """Create the job that owns downtime work orders on first use."""
        if uow.jobs.get(job_id) is None:
            uow.jobs.add(
                Job.create(
                    job_id=job_id, quantity=1, actor_id=SYSTEM_ACTOR, now=self.clock()
                )
            )
