"""
Event bus for outbound notices.

Notices are published after the transaction that produced them commits.
Delivery channels (push, email) subscribe per notice type; a failing
handler is logged and never affects the others or the committed change.
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class EventBusInterface(ABC):
    """Contract for publishing notices and subscribing to notice types."""

    @abstractmethod
    def publish(self, notice: Any) -> None:
        """Publish a notice to all handlers registered for its type."""

    @abstractmethod
    def subscribe(self, notice_type: type, handler: Handler) -> None:
        """Subscribe a handler to a notice type."""


class InMemoryEventBus(EventBusInterface):
    """
    In-memory event bus.

    Handlers run synchronously in subscription order. A bounded history of
    published notices is kept for inspection.
    """

    def __init__(self, max_history_size: int = 1000):
        self._handlers: dict[type, list[Handler]] = defaultdict(list)
        self._history: list[Any] = []
        self._max_history_size = max_history_size

    def publish(self, notice: Any) -> None:
        self._add_to_history(notice)

        notice_type = type(notice)
        handlers = self._handlers.get(notice_type, [])
        if not handlers:
            logger.debug(f"No handlers registered for {notice_type.__name__}")
            return

        for handler in list(handlers):
            try:
                handler(notice)
            except Exception as e:
                logger.error(
                    f"Error handling {notice_type.__name__} with {handler}: {str(e)}"
                )
                # Continue with other handlers even if one fails

    def subscribe(self, notice_type: type, handler: Handler) -> None:
        if handler in self._handlers[notice_type]:
            logger.warning(
                f"Handler {handler} already subscribed to {notice_type.__name__}"
            )
            return
        self._handlers[notice_type].append(handler)
        logger.info(f"Subscribed handler {handler} to {notice_type.__name__}")

    def get_history(self, notice_type: type | None = None) -> list[Any]:
        if notice_type is None:
            return self._history.copy()
        return [notice for notice in self._history if type(notice) is notice_type]

    def _add_to_history(self, notice: Any) -> None:
        self._history.append(notice)
        if len(self._history) > self._max_history_size:
            self._history.pop(0)
