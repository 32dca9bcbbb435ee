# src/bulk_outreach/notifications/queue.py

"""
Transient notification queue.

Each pushed notification lives for a fixed time-to-live and is then evicted by
a one-shot event-loop timer keyed by its id. Dismissing early cancels that
timer; an eviction for an id that is already gone is a no-op, so concurrent
push/dismiss never removes the wrong entry.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from collections.abc import Callable

from .models import Notification, Severity

logger = logging.getLogger(__name__)

NotificationListener = Callable[[str, Notification], None]
# Listener receives ("added" | "removed", notification).


class NotificationQueue:
    def __init__(
        self,
        *,
        ttl_seconds: float = 5.0,
        clock: Callable[[], float] = time.time,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.ttl_seconds = max(0.0, float(ttl_seconds))
        self._clock = clock
        self._loop = loop
        self._ids = itertools.count(1)
        self._items: dict[int, Notification] = {}  # insertion-ordered
        self._timers: dict[int, asyncio.TimerHandle] = {}
        self._listeners: list[NotificationListener] = []

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, notification_id: object) -> bool:
        return notification_id in self._items

    def items(self) -> list[Notification]:
        return list(self._items.values())

    def get(self, notification_id: int) -> Notification | None:
        return self._items.get(notification_id)

    def push(self, severity: Severity | str, title: str, message: str) -> Notification:
        """Append a notification and schedule its eviction. Must run on the event loop."""
        loop = self._loop or asyncio.get_running_loop()

        notification = Notification(
            id=next(self._ids),
            severity=Severity(severity),
            title=title,
            message=message,
            created_at=self._clock(),
        )
        self._items[notification.id] = notification
        self._timers[notification.id] = loop.call_later(self.ttl_seconds, self._expire, notification.id)

        logger.debug("Notification %s pushed (%s): %s", notification.id, notification.severity.value, title)
        self._publish("added", notification)
        return notification

    def success(self, title: str, message: str) -> Notification:
        return self.push(Severity.SUCCESS, title, message)

    def error(self, title: str, message: str) -> Notification:
        return self.push(Severity.ERROR, title, message)

    def info(self, title: str, message: str) -> Notification:
        return self.push(Severity.INFO, title, message)

    def dismiss(self, notification_id: int) -> bool:
        """Remove a notification now. Returns False if it was already gone."""
        timer = self._timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()
        return self._remove(notification_id)

    def close(self) -> None:
        """Cancel all pending eviction timers (the queued items stay readable)."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def _expire(self, notification_id: int) -> None:
        self._timers.pop(notification_id, None)
        if self._remove(notification_id):
            logger.debug("Notification %s expired", notification_id)

    def _remove(self, notification_id: int) -> bool:
        notification = self._items.pop(notification_id, None)
        if notification is None:
            return False
        self._publish("removed", notification)
        return True

    def _publish(self, event: str, notification: Notification) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, notification)
            except Exception:
                logger.exception("Notification listener failed id=%s", notification.id)
