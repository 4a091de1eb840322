"""In-process event publisher.

Implements EventPublisherProtocol: subscribers register a callback per
channel and receive ``(event, payload)`` for every publish on it. A failing
subscriber is logged and skipped; the publisher never raises.
"""

import threading
from collections import defaultdict
from typing import Any, Final

from qa_review.config.logging_config import get_logger
from qa_review.domain.protocols import EventHandler

QA_REVIEW_COMPLETED: Final[str] = "qa_review_completed"
QA_STATS_UPDATED: Final[str] = "qa_stats_updated"
QA_REVIEW_FAILED: Final[str] = "qa_review_failed"

logger = get_logger(__name__)


def task_channel(task_id: str) -> str:
    """Channel name for a task's observers.

    Example:
        >>> task_channel("42")
        'task_42'
    """
    return f"task_{task_id}"


class InMemoryEventPublisher:
    """Synchronous fan-out to registered handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, channel: str, handler: EventHandler) -> None:
        with self._lock:
            self._handlers[channel].append(handler)

    def unsubscribe(self, channel: str, handler: EventHandler) -> bool:
        """Remove a handler. Returns False if it was not subscribed."""
        with self._lock:
            handlers = self._handlers.get(channel, [])
            if handler not in handlers:
                return False
            handlers.remove(handler)
            return True

    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        with self._lock:
            handlers = list(self._handlers.get(channel, []))

        logger.debug(
            "event_published",
            channel=channel,
            event_name=event,
            subscribers=len(handlers),
        )
        for handler in handlers:
            try:
                handler(event, payload)
            except Exception as e:
                logger.exception(
                    "event_handler_failed",
                    channel=channel,
                    event_name=event,
                    error=str(e),
                )
