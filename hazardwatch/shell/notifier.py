"""Notification Center - Imperative Shell.

Holds the notifications currently shown to the user. Each notification
gets an id, expires after its TTL unless it has none, and can be
dismissed early. Posting a notification replaces any active one with the
same kind and title, so repeated failures show once.

Warnings and errors are optionally forwarded to Slack. The webhook call
blocks, so inside an event loop it runs in a worker thread; flush()
waits for forwards still in flight.
"""

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass
from typing import Callable

from hazardwatch.core.notifications import Notification, NotificationKind
from hazardwatch.shell.slack_client import SlackClient


logger = logging.getLogger(__name__)


FORWARDED_KINDS = frozenset({NotificationKind.WARNING, NotificationKind.DESTRUCTIVE})

MAX_ACTIVE = 50


@dataclass(frozen=True)
class ActiveNotification:
    """A notification that has been posted.

    Attributes:
        id: Identifier used to dismiss it
        notification: The notification itself
        posted_at: Monotonic time it was posted
    """
    id: int
    notification: Notification
    posted_at: float

    def expired(self, now: float) -> bool:
        ttl = self.notification.ttl_seconds
        return ttl is not None and now - self.posted_at >= ttl


class NotificationCenter:
    """Posts, expires and dismisses notifications."""

    def __init__(
        self,
        slack_client: SlackClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.slack_client = slack_client
        self._clock = clock
        self._ids = itertools.count(1)
        self._active: dict[int, ActiveNotification] = {}
        self._forwards: set[asyncio.Task] = set()

    @property
    def pending_forwards(self) -> int:
        """Number of Slack forwards still in flight."""
        return len(self._forwards)

    def post(self, notification: Notification) -> int:
        """Show a notification and return its id."""
        self.expire()

        for nid, active in list(self._active.items()):
            shown = active.notification
            if shown.kind is notification.kind and shown.title == notification.title:
                del self._active[nid]

        while len(self._active) >= MAX_ACTIVE:
            oldest = next(iter(self._active))
            del self._active[oldest]

        notification_id = next(self._ids)
        self._active[notification_id] = ActiveNotification(
            id=notification_id,
            notification=notification,
            posted_at=self._clock(),
        )

        log = logger.error if notification.kind is NotificationKind.DESTRUCTIVE else logger.info
        log("Notification %d [%s] %s: %s", notification_id, notification.kind.value,
            notification.title, notification.message)

        if self.slack_client is not None and notification.kind in FORWARDED_KINDS:
            self._forward(notification)

        return notification_id

    def _forward(self, notification: Notification) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Called outside an event loop
            self._send(notification)
            return

        task = loop.create_task(asyncio.to_thread(self._send, notification))
        self._forwards.add(task)
        task.add_done_callback(self._forward_done)

    def _send(self, notification: Notification) -> None:
        response = self.slack_client.send_notification(notification)
        if not response.success:
            logger.warning("Failed to forward notification to Slack: %s", response.error)

    def _forward_done(self, task: asyncio.Task) -> None:
        self._forwards.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Slack forward raised: %s", error)

    async def flush(self) -> None:
        """Wait for Slack forwards still in flight."""
        if self._forwards:
            await asyncio.gather(*list(self._forwards), return_exceptions=True)

    def dismiss(self, notification_id: int) -> bool:
        """Dismiss a notification. Returns False if it was not showing."""
        return self._active.pop(notification_id, None) is not None

    def expire(self) -> int:
        """Drop notifications whose TTL has elapsed. Returns how many."""
        now = self._clock()
        expired = [nid for nid, active in self._active.items() if active.expired(now)]
        for nid in expired:
            del self._active[nid]
        return len(expired)

    def active(self) -> list[ActiveNotification]:
        """Notifications still showing, oldest first."""
        self.expire()
        return list(self._active.values())

    def clear(self) -> None:
        self._active.clear()
