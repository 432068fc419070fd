"""
Resource application service.

Resource records are configuration: setup time and throughput are read when
work orders are created and changing them never touches existing orders.
"""

from typing import Any

from linestart.core.observability import get_logger
from linestart.domain.scheduling.entities.resource import Resource
from linestart.domain.scheduling.value_objects.operational_hours import OperationalHours
from linestart.domain.shared.exceptions import ResourceInUse

from .base_service import ApplicationServiceBase

logger = get_logger(__name__)


class ResourceService(ApplicationServiceBase):
    """CRUD use cases for resources."""

    def create_resource(
        self,
        name: str,
        units_per_hour: float,
        actor_id: str,
        setup_minutes: float = 0,
        uid: str | None = None,
        operational_hours: OperationalHours | None = None,
    ) -> Resource:
        """
        Raises:
            InvalidRate: If units_per_hour is not positive
            InvalidQuantity: If setup_minutes is negative
        """
        with self._uow_factory() as uow:
            resource = Resource.register(
                name=name,
                units_per_hour=units_per_hour,
                setup_minutes=setup_minutes,
                uid=uid,
                operational_hours=operational_hours,
                actor_id=actor_id,
                now=self.clock(),
            )
            uow.resources.add(resource)

        logger.info("resource_created", resource_id=resource.id, name=name)
        return resource

    def update_resource(
        self,
        resource_id: str,
        actor_id: str,
        name: str | None = None,
        setup_minutes: float | None = None,
        units_per_hour: float | None = None,
        operational_hours: Any = ...,
        expected_version: int | None = None,
    ) -> Resource:
        with self._uow_factory() as uow:
            resource = uow.resources.get_required(resource_id)
            self.check_version("Resource", resource, expected_version)
            resource.reconfigure(
                actor_id=actor_id,
                now=self.clock(),
                name=name,
                setup_minutes=setup_minutes,
                units_per_hour=units_per_hour,
                operational_hours=operational_hours,
            )
            uow.resources.save(resource)

        logger.info("resource_updated", resource_id=resource_id)
        return resource

    def delete_resource(
        self, resource_id: str, actor_id: str, expected_version: int | None = None
    ) -> None:
        """
        Raises:
            ResourceInUse: If queued, active or paused work orders remain on it
        """
        with self._uow_factory() as uow:
            resource = uow.resources.get_required(resource_id)
            self.check_version("Resource", resource, expected_version)
            open_orders = [
                order
                for order in uow.work_orders.for_resource(resource_id)
                if order.status.is_open
            ]
            if open_orders:
                raise ResourceInUse(resource_id, len(open_orders))
            resource.mark_deleted(actor_id)
            uow.resources.remove(resource)
            uow.queue.remove_for_resource(resource_id)

        logger.info("resource_deleted", resource_id=resource_id)

    def get_resource(self, resource_id: str) -> Resource:
        with self._uow_factory() as uow:
            return uow.resources.get_required(resource_id)

    def list_resources(self) -> list[Resource]:
        with self._uow_factory() as uow:
            return uow.resources.list_all()
