"""Single-slot notification (toast) bus with timed auto-clear."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from study_navigator.domain.models import Notification, Severity

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationBus:
    """Holds at most one notification; the newest always wins.

    Expiry is enforced two ways: an event-loop timer clears the slot when a
    loop is running, and ``current()`` drops a notification older than the
    TTL according to the injected clock.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._current: Notification | None = None
        self._timer: asyncio.TimerHandle | None = None

    def publish(
        self, message: str, severity: Severity = Severity.SUCCESS
    ) -> Notification:
        notification = Notification(
            message=message, type=severity, created_at=self._clock()
        )
        self._current = notification
        self._restart_timer(notification)

        level = logging.WARNING if severity == Severity.ERROR else logging.INFO
        logger.log(level, "notification [%s] %s", severity, message)
        return notification

    def current(self) -> Notification | None:
        notification = self._current
        if notification is not None and self._clock() - notification.created_at >= self.ttl:
            self.clear()
        return self._current

    def clear(self) -> None:
        self._cancel_timer()
        self._current = None

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and not self._timer.cancelled()

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _restart_timer(self, notification: Notification) -> None:
        self._cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timer = loop.call_later(
            self.ttl.total_seconds(), self._expire, notification
        )

    def _expire(self, notification: Notification) -> None:
        # A superseded notification must not clear its successor.
        if self._current is notification:
            self._current = None
            self._timer = None
