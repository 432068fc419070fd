"""
Change feed consumers and the asyncio worker that drives them.

Each consumer reads the events committed after its checkpoint, applies its
own writes and advances the checkpoint in the same transaction. A failed
batch leaves the checkpoint where it was, so delivery is at-least-once and
every consumer must tolerate replays.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime

from linestart.core.retry import RetryConfig
from linestart.domain.shared.base import utc_now
from linestart.infrastructure.database.repositories import FeedItem
from linestart.infrastructure.database.unit_of_work import (
    SqlModelUnitOfWork,
    UnitOfWorkManager,
)

logger = logging.getLogger(__name__)


class ChangeFeedConsumer(ABC):
    """Base class for named, checkpointed change-feed consumers."""

    name: str = "consumer"

    def __init__(
        self,
        uow_factory: UnitOfWorkManager,
        batch_size: int = 100,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._uow_factory = uow_factory
        self.batch_size = batch_size
        self.clock = clock

    @abstractmethod
    def handle(self, uow: SqlModelUnitOfWork, items: list[FeedItem]) -> None:
        """Apply a batch of events inside the checkpoint transaction."""

    def on_failure(self, items: list[FeedItem], error: Exception) -> None:
        """Hook run after a batch was rolled back."""

    def poll_once(self) -> int:
        """
        Process the next batch.

        Returns:
            Number of events processed (0 when caught up)
        """
        items: list[FeedItem] = []
        try:
            with self._uow_factory() as uow:
                checkpoint = uow.checkpoints.get(self.name)
                items = uow.change_events.after(checkpoint, self.batch_size)
                if not items:
                    return 0
                self.handle(uow, items)
                uow.checkpoints.advance(
                    self.name, checkpoint, items[-1].sequence, self.clock()
                )
        except Exception as error:
            logger.warning(
                f"Consumer {self.name} failed on batch of {len(items)}: {str(error)}"
            )
            if items:
                self.on_failure(items, error)
            raise

        logger.debug(
            f"Consumer {self.name} processed {len(items)} events up to {items[-1].sequence}"
        )
        return len(items)

    def drain(self, max_batches: int = 1000) -> int:
        """Poll until caught up; returns the number of events processed."""
        total = 0
        for _ in range(max_batches):
            processed = self.poll_once()
            if processed == 0:
                break
            total += processed
        return total


class ChangeFeedWorker:
    """
    Runs a consumer in an asyncio loop.

    Store work runs in a thread; after a failed batch the worker backs off
    according to its retry policy and tries the same batch again.
    """

    def __init__(
        self,
        consumer: ChangeFeedConsumer,
        poll_interval_seconds: float = 1.0,
        retry: RetryConfig | None = None,
    ):
        self.consumer = consumer
        self.poll_interval_seconds = poll_interval_seconds
        self.retry = retry or RetryConfig()
        self.consecutive_failures = 0
        self._stop = asyncio.Event()

    def stop(self) -> None:
        self._stop.set()

    async def run(self) -> None:
        logger.info(f"Change feed worker for {self.consumer.name} started")
        while not self._stop.is_set():
            try:
                processed = await asyncio.to_thread(self.consumer.poll_once)
            except Exception:
                self.consecutive_failures += 1
                delay = self.retry.delay_for(self.consecutive_failures)
                logger.warning(
                    f"Consumer {self.consumer.name} backing off {delay:.2f}s "
                    f"after {self.consecutive_failures} failures"
                )
                await self._sleep(delay)
                continue

            self.consecutive_failures = 0
            if processed < self.consumer.batch_size:
                await self._sleep(self.poll_interval_seconds)
        logger.info(f"Change feed worker for {self.consumer.name} stopped")

    async def _sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
