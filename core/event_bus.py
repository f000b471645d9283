"""
Event bus for settlement domain events.

Synchronous in-process pub/sub. Handlers run in the publisher's thread after
the settlement transaction has committed. Handler errors are logged and
never propagate: a failed notification must not undo a committed refund.
"""

import logging
from typing import Callable, Dict, Iterable, List

from core.events import SettlementEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    In-process event bus for settlement domain events.

    Subscribe by event class name (string), publish by event instance.
    Handlers are called synchronously in subscription order.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, callback: Callable):
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Name of event class to subscribe to (e.g. 'BookingCancelled')
            callback: Function to call when event is published
        """
        self._subscribers.setdefault(event_type, []).append(callback)

    def subscriber_count(self, event_type: str) -> int:
        return len(self._subscribers.get(event_type, []))

    def publish(self, event: SettlementEvent):
        """
        Publish an event to all subscribers of that type.

        Args:
            event: SettlementEvent instance to publish
        """
        event_type = event.__class__.__name__

        for callback in self._subscribers.get(event_type, []):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s (event_id=%s)",
                    getattr(callback, "__name__", repr(callback)),
                    event_type,
                    event.event_id,
                )

    def publish_all(self, events: Iterable[SettlementEvent]):
        """Publish events in order. Used once a transaction has committed."""
        for event in events:
            self.publish(event)
