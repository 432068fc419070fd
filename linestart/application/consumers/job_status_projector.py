"""
Job Status Projector

Recomputes a job's cached status from the full set of its work orders on
every change event for the job. The derivation is order-independent, so
replays and reordering are harmless.
"""

from linestart.application.services.base_service import SYSTEM_ACTOR
from linestart.core.observability import get_logger
from linestart.domain.scheduling.entities.job import derive_job_status
from linestart.domain.scheduling.value_objects.enums import ChangeAction
from linestart.infrastructure.database.repositories import FeedItem
from linestart.infrastructure.database.unit_of_work import SqlModelUnitOfWork
from linestart.infrastructure.events.changefeed import ChangeFeedConsumer

logger = get_logger(__name__)


class JobStatusProjector(ChangeFeedConsumer):
    name = "job_status"

    def handle(self, uow: SqlModelUnitOfWork, items: list[FeedItem]) -> None:
        # job id -> id of the latest triggering event
        triggers: dict[str, str] = {}
        for item in items:
            event = item.event
            if event.job_id is None or event.action == ChangeAction.JOB_STATUS_CHANGED:
                continue
            triggers[event.job_id] = event.event_id

        for job_id, causation_id in triggers.items():
            self.project(uow, job_id, causation_id)

    def project(
        self, uow: SqlModelUnitOfWork, job_id: str, causation_id: str | None = None
    ) -> bool:
        job = uow.jobs.get(job_id)
        if job is None:
            logger.warning("job_status_job_missing", job_id=job_id)
            return False

        status = derive_job_status(uow.work_orders.for_job(job_id))
        before = job.status
        if not job.apply_status(status, SYSTEM_ACTOR, self.clock(), causation_id):
            return False
        uow.jobs.save(job)
        logger.info(
            "job_status_changed",
            job_id=job_id,
            before=before.value,
            after=status.value,
        )
        return True
