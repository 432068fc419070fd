"""The asyncio change feed worker."""

import asyncio

import pytest

from linestart.application.consumers import ScheduleViewSynchronizer
from linestart.core.retry import RetryConfig
from linestart.infrastructure.events.changefeed import ChangeFeedWorker
from linestart.tests.utils import OPERATOR


class FlakySynchronizer(ScheduleViewSynchronizer):
    def __init__(self, *args, failures: int, **kwargs):
        super().__init__(*args, **kwargs)
        self.failures = failures

    def handle(self, uow, items):
        if self.failures:
            self.failures -= 1
            raise RuntimeError("transient")
        super().handle(uow, items)


async def wait_for(predicate, timeout: float = 5.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not await asyncio.to_thread(predicate):
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


def view_has(container, work_order_id: str) -> bool:
    with container.uow_factory() as uow:
        return uow.schedule_view.get(work_order_id) is not None


@pytest.mark.asyncio
async def test_worker_syncs_view(container, job, resource):
    work_order = container.work_orders.assign(job.id, resource.id, OPERATOR)
    worker = ChangeFeedWorker(container.schedule_view, poll_interval_seconds=0.01)
    task = asyncio.create_task(worker.run())

    await wait_for(lambda: view_has(container, work_order.id))
    worker.stop()
    await asyncio.wait_for(task, timeout=5)


@pytest.mark.asyncio
async def test_worker_backs_off_and_recovers(container, job, resource):
    work_order = container.work_orders.assign(job.id, resource.id, OPERATOR)
    consumer = FlakySynchronizer(container.uow_factory, failures=2)
    retry = RetryConfig(base_delay_seconds=0.01, max_delay_seconds=0.05, jitter=False)
    worker = ChangeFeedWorker(consumer, poll_interval_seconds=0.01, retry=retry)
    task = asyncio.create_task(worker.run())

    await wait_for(lambda: view_has(container, work_order.id))
    worker.stop()
    await asyncio.wait_for(task, timeout=5)

    assert consumer.failures == 0
    assert worker.consecutive_failures == 0
