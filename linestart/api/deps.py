"""
API dependencies.

Services are built once per application around a shared unit-of-work
factory and handed to route handlers through ``Depends``.
"""

from dataclasses import dataclass, field
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy import Engine

from linestart.application.consumers import (
    AuditLedger,
    JobStatusProjector,
    ScheduleViewSynchronizer,
    SplitReconciler,
)
from linestart.application.services import (
    DowntimeService,
    JobService,
    ResourceService,
    ScheduleQueryService,
    WorkOrderService,
)
from linestart.core.config import Settings
from linestart.core.db import session_factory
from linestart.infrastructure.database.unit_of_work import UnitOfWorkManager
from linestart.infrastructure.events import InMemoryEventBus
from linestart.infrastructure.events.changefeed import ChangeFeedConsumer


@dataclass
class ServiceContainer:
    """Everything a request or a background worker needs, wired to one engine."""

    settings: Settings
    uow_factory: UnitOfWorkManager
    jobs: JobService
    work_orders: WorkOrderService
    resources: ResourceService
    downtime: DowntimeService
    schedule: ScheduleQueryService
    schedule_view: ScheduleViewSynchronizer
    audit: AuditLedger
    job_status: JobStatusProjector
    reconciler: SplitReconciler
    consumers: list[ChangeFeedConsumer] = field(default_factory=list)

    @classmethod
    def build(cls, engine: Engine, settings: Settings) -> "ServiceContainer":
        uow_factory = UnitOfWorkManager(session_factory(engine), InMemoryEventBus())
        batch_size = settings.CHANGEFEED_BATCH_SIZE
        schedule_view = ScheduleViewSynchronizer(uow_factory, batch_size)
        audit = AuditLedger(uow_factory, batch_size)
        job_status = JobStatusProjector(uow_factory, batch_size)
        return cls(
            settings=settings,
            uow_factory=uow_factory,
            jobs=JobService(uow_factory, settings),
            work_orders=WorkOrderService(uow_factory, settings),
            resources=ResourceService(uow_factory, settings),
            downtime=DowntimeService(uow_factory, settings),
            schedule=ScheduleQueryService(uow_factory, settings),
            schedule_view=schedule_view,
            audit=audit,
            job_status=job_status,
            reconciler=SplitReconciler(uow_factory),
            consumers=[schedule_view, audit, job_status],
        )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


ContainerDep = Annotated[ServiceContainer, Depends(get_container)]


def get_job_service(container: ContainerDep) -> JobService:
    return container.jobs


def get_work_order_service(container: ContainerDep) -> WorkOrderService:
    return container.work_orders


def get_resource_service(container: ContainerDep) -> ResourceService:
    return container.resources


def get_downtime_service(container: ContainerDep) -> DowntimeService:
    return container.downtime


def get_schedule_service(container: ContainerDep) -> ScheduleQueryService:
    return container.schedule


def get_audit_ledger(container: ContainerDep) -> AuditLedger:
    return container.audit


JobServiceDep = Annotated[JobService, Depends(get_job_service)]
WorkOrderServiceDep = Annotated[WorkOrderService, Depends(get_work_order_service)]
ResourceServiceDep = Annotated[ResourceService, Depends(get_resource_service)]
DowntimeServiceDep = Annotated[DowntimeService, Depends(get_downtime_service)]
ScheduleServiceDep = Annotated[ScheduleQueryService, Depends(get_schedule_service)]
AuditLedgerDep = Annotated[AuditLedger, Depends(get_audit_ledger)]

# Caller identity; authentication happens upstream of this service
ActorId = Annotated[str, Header(alias="X-Actor-Id", min_length=1, max_length=100)]
