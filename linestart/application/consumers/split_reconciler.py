"""
Split Reconciler

Compensating step for the partial split: finds partial work orders without
a remainder and creates it. The remainder id depends only on the origin and
its stored version, so the repair cannot run twice.
"""

from collections.abc import Callable
from datetime import datetime

from linestart.application.services.base_service import SYSTEM_ACTOR
from linestart.core.observability import get_logger
from linestart.domain.scheduling.read_models.audit import ReconciliationKind
from linestart.domain.scheduling.services.completion_splitter import (
    CompletionSplitter,
)
from linestart.domain.shared.base import utc_now
from linestart.domain.shared.exceptions import ConcurrentModification
from linestart.infrastructure.database.unit_of_work import UnitOfWorkManager

logger = get_logger(__name__)


class SplitReconciler:
    def __init__(
        self,
        uow_factory: UnitOfWorkManager,
        splitter: CompletionSplitter | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._uow_factory = uow_factory
        self._splitter = splitter or CompletionSplitter()
        self.clock = clock

    def run_once(self) -> list[str]:
        """
        Repair every partial order missing its remainder.

        Returns:
            Ids of the remainders created
        """
        with self._uow_factory() as uow:
            orphans = uow.work_orders.partials_without_remainder()

        created = []
        for origin in orphans:
            try:
                created.append(self._repair(origin.id))
            except ConcurrentModification:
                # Another process stored the same remainder first
                logger.info("split_already_repaired", work_order_id=origin.id)
        return created

    def _repair(self, work_order_id: str) -> str:
        now = self.clock()
        with self._uow_factory() as uow:
            origin = uow.work_orders.get_required(work_order_id)
            uow.reconciliation.flag(
                ReconciliationKind.PARTIAL_SPLIT,
                origin.id,
                f"partial at version {origin.version} has no remainder",
                now,
            )
            remainder = self._splitter.build_remainder(
                origin,
                actor_id=SYSTEM_ACTOR,
                now=now,
                origin_version=origin.version,
            )
            uow.work_orders.add(remainder)
            uow.reconciliation.resolve(ReconciliationKind.PARTIAL_SPLIT, origin.id, now)

        logger.warning(
            "split_repaired", work_order_id=work_order_id, remainder_id=remainder.id
        )
        return remainder.id
