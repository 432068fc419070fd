"""
Completion Splitter

Completes a work order with the delivered quantity and, when it falls
short of the target, builds the remainder order carrying the rest. The
remainder id is derived from the origin and the version the partial write
produces, so a retried or reconciled split can never create two remainders.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime

from ...shared.base import new_id
from ...shared.exceptions import InvalidTransition
from ..entities.work_order import WorkOrder
from ..value_objects.enums import WorkOrderStatus

REMAINDER_NAMESPACE = uuid.UUID("6f1c2d0e-8a4b-5c3d-9e7f-0a1b2c3d4e5f")


def remainder_id(origin_id: str, origin_version: int) -> str:
    return str(uuid.uuid5(REMAINDER_NAMESPACE, f"{origin_id}:{origin_version}"))


@dataclass(frozen=True)
class CompletionResult:
    work_order: WorkOrder
    remainder: WorkOrder | None
    correlation_id: str

    @property
    def is_partial(self) -> bool:
        return self.remainder is not None


class CompletionSplitter:
    """Applies a completion and produces the remainder of a partial."""

    def complete(
        self, work_order: WorkOrder, delivered: int, actor_id: str, now: datetime
    ) -> CompletionResult:
        correlation_id = new_id()
        status = work_order.complete(
            delivered, actor_id, now, correlation_id=correlation_id
        )

        remainder = None
        if status == WorkOrderStatus.PARTIAL:
            remainder = self.build_remainder(
                work_order,
                actor_id=actor_id,
                now=now,
                origin_version=work_order.next_version,
                correlation_id=correlation_id,
            )
        return CompletionResult(work_order, remainder, correlation_id)

    def build_remainder(
        self,
        origin: WorkOrder,
        *,
        actor_id: str,
        now: datetime,
        origin_version: int,
        correlation_id: str | None = None,
    ) -> WorkOrder:
        """
        Remainder for a partial origin.

        ``origin_version`` is the version the origin carries once its partial
        transition is stored.
        """
        if origin.status != WorkOrderStatus.PARTIAL:
            raise InvalidTransition(origin.id, origin.status.value, "split")
        return WorkOrder.remainder_for(
            origin,
            remainder_id=remainder_id(origin.id, origin_version),
            actor_id=actor_id,
            now=now,
            correlation_id=correlation_id,
        )
