"""Job repository."""

from typing import Any

from sqlmodel import select

from linestart.domain.scheduling.entities.job import Job
from linestart.infrastructure.database.models import JobRecord

from .base import VersionedRepository


class JobRepository(VersionedRepository[Job, JobRecord]):
    entity_name = "Job"

    @property
    def record_class(self) -> type[JobRecord]:
        return JobRecord

    def to_domain(self, record: JobRecord) -> Job:
        return Job.model_validate(record, from_attributes=True)

    def to_columns(self, aggregate: Job) -> dict[str, Any]:
        return aggregate.model_dump(exclude={"id", "version"})

    def list_all(self, project_id: str | None = None) -> list[Job]:
        statement = select(JobRecord).execution_options(populate_existing=True)
        if project_id is not None:
            statement = statement.where(JobRecord.project_id == project_id)
        statement = statement.order_by(JobRecord.created_at, JobRecord.id)
        return [self.to_domain(record) for record in self.session.exec(statement)]
