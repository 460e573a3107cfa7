"""
Event bus for billing events.

Synchronous in-process pub/sub. Handlers run immediately in the publisher's
thread. Handler errors are logged and never propagate: the store write that
produced the event has already been committed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from rentledger.events import BillingEvent

logger = logging.getLogger(__name__)


class EventBus:
    """Subscribe by event class name, publish by event instance."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Callable[[BillingEvent], None]]] = {}

    def subscribe(self, event_type: str, callback: Callable[[BillingEvent], None]) -> None:
        self._subscribers.setdefault(event_type, []).append(callback)

    def unsubscribe(self, event_type: str, callback: Callable[[BillingEvent], None]) -> None:
        callbacks = self._subscribers.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def publish(self, event: BillingEvent) -> None:
        """Call every subscriber of the event's class, in subscription order."""
        event_type = event.__class__.__name__
        callbacks = self._subscribers.get(event_type)
        if not callbacks:
            return

        for callback in list(callbacks):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s (event_id=%s)",
                    getattr(callback, "__name__", repr(callback)),
                    event_type,
                    event.event_id,
                )
