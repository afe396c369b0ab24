"""Service for firing plan reminders on a periodic check."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from study_navigator.domain.models import Plan, Severity
from study_navigator.services.notifications import NotificationBus

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0
DEFAULT_TOLERANCE = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def reminder_time(plan: Plan) -> datetime | None:
    """Return the instant the plan's reminder becomes due, if it has one."""
    if plan.reminder_minutes_before is None:
        return None
    try:
        return plan.start_time - timedelta(minutes=plan.reminder_minutes_before)
    except OverflowError:
        # Lead time reaches past datetime.min; such a reminder can never be due.
        return None


def due_reminders(
    plans: Iterable[Plan],
    now: datetime,
    already_reminded: set[str],
    tolerance: timedelta = DEFAULT_TOLERANCE,
) -> list[Plan]:
    """Return plans whose reminder should fire at *now*.

    Due when ``now - tolerance < reminder_time <= now`` and the plan has
    not started yet. The tolerance is wider than the check interval so a
    reminder instant falling between two checks is still caught.
    """
    due: list[Plan] = []
    for plan in plans:
        when = reminder_time(plan)
        if when is None or plan.id in already_reminded:
            continue
        if now - tolerance < when <= now and now < plan.start_time:
            due.append(plan)
    return due


def reminder_message(plan: Plan) -> str:
    return (
        f'Reminder: Your "{plan.subject}" session on "{plan.topic or "N/A"}" '
        f"starts in {plan.reminder_minutes_before} minutes!"
    )


class ReminderScheduler:
    """Checks the live plan list on a fixed interval and publishes reminders.

    Each plan is reminded at most once per scheduler; a scheduler lives for
    one signed-in session, so the ``reminded`` set is the per-session marker.
    """

    def __init__(
        self,
        plans_source: Callable[[], list[Plan]],
        notifications: NotificationBus,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        tolerance: timedelta = DEFAULT_TOLERANCE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.plans_source = plans_source
        self.notifications = notifications
        self.interval_seconds = interval_seconds
        self.tolerance = tolerance
        self._clock = clock
        self.reminded: set[str] = set()
        self._task: asyncio.Task | None = None

    def tick(self, now: datetime | None = None) -> list[Plan]:
        """Run one check and return the plans reminded by it."""
        current_time = now or self._clock()
        # Copy: a snapshot may replace the list while we iterate.
        plans = list(self.plans_source())
        fired = due_reminders(plans, current_time, self.reminded, self.tolerance)
        for plan in fired:
            self.notifications.publish(reminder_message(plan), Severity.INFO)
            self.reminded.add(plan.id)
            logger.info("Reminder fired for plan %s at %s", plan.id, current_time)
        return fired

    # ------------------------------------------------------------------
    # Periodic task
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Start the periodic check on the running loop. Returns False without one."""
        if self.running:
            return True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; reminder checks run via tick() only")
            return False
        self._task = loop.create_task(self._run())
        return True

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.tick()
            except Exception:
                logger.exception("Reminder check failed; retrying next interval")
