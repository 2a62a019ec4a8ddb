"""In-process change feed: table-level INSERT/UPDATE/DELETE callbacks.

Subscribers are invoked synchronously after the writing session commits.
A failing callback is logged and skipped; it never reaches the writer.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)

EVENT_TYPES = ("INSERT", "UPDATE", "DELETE")

ChangeCallback = Callable[[str, str, Any], None]


@dataclass(eq=False)
class Subscription:
    table: str
    event_types: frozenset[str]
    callback: ChangeCallback
    _feed: "ChangeFeed | None" = field(default=None, repr=False)

    def unsubscribe(self):
        if self._feed is not None:
            self._feed.remove(self)
            self._feed = None


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(self, table: str, event_types: Iterable[str] | str, callback: ChangeCallback) -> Subscription:
        if isinstance(event_types, str):
            event_types = EVENT_TYPES if event_types == "*" else (event_types,)
        events = frozenset(e.upper() for e in event_types)
        unknown = events - set(EVENT_TYPES)
        if unknown:
            raise ValueError(f"Unknown change event types: {sorted(unknown)}")

        sub = Subscription(table=table, event_types=events, callback=callback, _feed=self)
        with self._lock:
            self._subscriptions.append(sub)
        logger.debug("Subscribed to %s on %s", sorted(events), table)
        return sub

    def remove(self, sub: Subscription):
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    def publish(self, table: str, event_type: str, payload: Any = None):
        with self._lock:
            targets = [
                s for s in self._subscriptions
                if s.table == table and event_type in s.event_types
            ]
        for sub in targets:
            try:
                sub.callback(table, event_type, payload)
            except Exception as e:
                logger.error("Change feed callback for %s/%s failed: %s", table, event_type, e)

    def clear(self):
        with self._lock:
            self._subscriptions.clear()
