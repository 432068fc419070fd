"""
Job application service.

Creates jobs (validating their configurable fields) and answers status
queries by deriving the status live from the job's work orders.
"""

from typing import Any

from linestart.core.observability import get_logger
from linestart.domain.scheduling.entities.job import Job, derive_job_status
from linestart.domain.scheduling.entities.work_order import WorkOrder
from linestart.domain.scheduling.value_objects.custom_fields import (
    CustomFieldDefinition,
    validate_custom_fields,
)
from linestart.domain.scheduling.value_objects.enums import JobStatus
from linestart.domain.shared.exceptions import InvalidQuantity

from .base_service import ApplicationServiceBase

logger = get_logger(__name__)


class JobService(ApplicationServiceBase):
    """Use cases for jobs."""

    @property
    def custom_field_definitions(self) -> list[CustomFieldDefinition]:
        return [
            CustomFieldDefinition(**field.model_dump())
            for field in self.settings.JOB_CUSTOM_FIELDS
        ]

    def create_job(
        self,
        quantity: int,
        actor_id: str,
        project_id: str | None = None,
        custom_field_values: dict[str, Any] | None = None,
        job_id: str | None = None,
    ) -> Job:
        """
        Create a job in status ``unassigned``.

        Raises:
            InvalidQuantity: If quantity is below 1
            InvalidCustomField: If custom fields do not match the schema
        """
        if quantity < 1:
            raise InvalidQuantity("quantity", quantity, "must be at least 1")
        values = validate_custom_fields(
            custom_field_values or {}, self.custom_field_definitions
        )

        with self._uow_factory() as uow:
            job = Job.create(
                quantity=quantity,
                actor_id=actor_id,
                now=self.clock(),
                project_id=project_id,
                custom_field_values=values,
                job_id=job_id,
            )
            uow.jobs.add(job)

        logger.info("job_created", job_id=job.id, quantity=quantity)
        return job

    def get_job(self, job_id: str) -> Job:
        with self._uow_factory() as uow:
            return uow.jobs.get_required(job_id)

    def list_jobs(self, project_id: str | None = None) -> list[Job]:
        with self._uow_factory() as uow:
            return uow.jobs.list_all(project_id)

    def work_orders(self, job_id: str) -> list[WorkOrder]:
        with self._uow_factory() as uow:
            uow.jobs.get_required(job_id)
            return uow.work_orders.for_job(job_id)

    def get_status(self, job_id: str) -> JobStatus:
        """Status derived from the current work orders, bypassing the cache."""
        with self._uow_factory() as uow:
            uow.jobs.get_required(job_id)
            return derive_job_status(uow.work_orders.for_job(job_id))
