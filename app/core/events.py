# app/core/events.py
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable

from fastapi import Request

from app.core.database import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TicketsChanged:
    """Published after a ticket mutation has been committed."""

    ticket_id: str
    action: str  # "created" | "status_updated"
    at: object = field(default_factory=utcnow)


Handler = Callable[[object], None]


class EventBus:
    """Synchronous in-process publish/subscribe.

    Handlers run in the publisher's thread, in subscription order. A
    failing handler is logged and does not stop delivery to the others.
    """

    def __init__(self):
        self._handlers: dict[type, list[Handler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: type, handler: Handler) -> Callable[[], None]:
        with self._lock:
            self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers[event_type]:
                    self._handlers[event_type].remove(handler)

        return unsubscribe

    def publish(self, event: object) -> None:
        with self._lock:
            handlers = list(self._handlers[type(event)])
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Handler %r failed for %r", handler, event)

    def subscriber_count(self, event_type: type) -> int:
        with self._lock:
            return len(self._handlers[event_type])


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.events
