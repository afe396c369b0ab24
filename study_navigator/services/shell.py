"""Top-level composition: session gating, navigation, theme and account menu."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from study_navigator.domain import state as transitions
from study_navigator.domain.bus import Subscription
from study_navigator.domain.errors import NotAuthenticated
from study_navigator.domain.models import (
    AppState,
    AuthUser,
    DashboardStats,
    Page,
    Plan,
    Severity,
    Theme,
)
from study_navigator.repos.base import DocumentStore, IdentityProvider
from study_navigator.services.auth import AuthFlowController
from study_navigator.services.dashboard import compute_stats
from study_navigator.services.editor import PlanEditor
from study_navigator.services.feed import PlanFeed
from study_navigator.services.notifications import NotificationBus
from study_navigator.services.reminders import (
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_TOLERANCE,
    ReminderScheduler,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Shell:
    """Owns ``AppState`` and the per-session controllers.

    The live plan feed is opened on sign-in and closed on sign-out. The
    reminder scheduler runs only while the planner page is showing; it is
    created once per signed-in session so its reminded set lasts exactly
    that long.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        store: DocumentStore,
        notifications: NotificationBus,
        app_id: str,
        default_theme: Theme = Theme.DARK,
        reminder_interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        reminder_tolerance: timedelta = DEFAULT_TOLERANCE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.identity = identity
        self.notifications = notifications
        self.reminder_interval_seconds = reminder_interval_seconds
        self.reminder_tolerance = reminder_tolerance
        self._clock = clock

        self.state = AppState(theme=default_theme)
        self.feed = PlanFeed(store, notifications, app_id)
        self.editor = PlanEditor(store, self.feed, notifications, clock=clock)
        self.auth = AuthFlowController(
            identity, store, notifications, app_id, clock=clock
        )
        self.scheduler: ReminderScheduler | None = None
        self._auth_subscription: Subscription | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._auth_subscription is None:
            self._auth_subscription = self.identity.on_auth_state_changed(
                self._on_auth_state_changed
            )

    def shutdown(self) -> None:
        if self._auth_subscription is not None:
            self._auth_subscription.close()
            self._auth_subscription = None
        self._end_session()

    def _on_auth_state_changed(self, user: AuthUser | None) -> None:
        previous_user_id = self.state.session.user_id
        self.state = transitions.session_changed(self.state, user)
        if user is None:
            self._end_session()
            return
        if user.uid != previous_user_id:
            self._end_session()
            self.feed.open(user.uid)
            logger.info("Session started for %s", user.uid)
        if self.state.page == Page.PLANNER:
            self._mount_planner()

    def _end_session(self) -> None:
        self._unmount_planner()
        self.scheduler = None
        self.feed.close()
        self.editor.reset()

    def _mount_planner(self) -> None:
        if self.scheduler is None:
            self.scheduler = ReminderScheduler(
                lambda: self.feed.plans,
                self.notifications,
                interval_seconds=self.reminder_interval_seconds,
                tolerance=self.reminder_tolerance,
                clock=self._clock,
            )
        self.scheduler.start()

    def _unmount_planner(self) -> None:
        if self.scheduler is not None:
            self.scheduler.stop()

    @property
    def planner_mounted(self) -> bool:
        return self.state.session.authenticated and self.state.page == Page.PLANNER

    def require_session(self) -> str:
        user_id = self.state.session.user_id
        if user_id is None:
            raise NotAuthenticated()
        return user_id

    # ------------------------------------------------------------------
    # Navigation and account menu
    # ------------------------------------------------------------------

    def navigate(self, page: Page) -> AppState:
        self.require_session()
        self.state = transitions.navigate(self.state, page)
        if page == Page.PLANNER:
            self._mount_planner()
        else:
            self._unmount_planner()
        return self.state

    def toggle_theme(self) -> AppState:
        self.state = transitions.toggle_theme(self.state)
        return self.state

    def toggle_account_menu(self) -> AppState:
        self.state = transitions.toggle_account_menu(self.state)
        return self.state

    def open_settings(self) -> AppState:
        self.state = transitions.close_account_menu(self.state)
        self.notifications.publish("Settings not implemented yet.", Severity.INFO)
        return self.state

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> AppState:
        await self.auth.sign_in(email, password)
        self.state = transitions.dismiss_auth_overlay(self.state)
        return self.state

    async def sign_up(
        self, email: str, password: str, confirm_password: str, username: str
    ) -> AppState:
        await self.auth.sign_up(email, password, confirm_password, username)
        self.state = transitions.dismiss_auth_overlay(self.state)
        return self.state

    async def send_password_reset(self, email: str) -> AppState:
        await self.auth.send_password_reset(email)
        return self.state

    async def sign_out(self) -> AppState:
        await self.auth.sign_out()
        self.state = transitions.signed_out(self.state)
        self._end_session()
        return self.state

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def dashboard(self, now: datetime | None = None) -> DashboardStats:
        user_id = self.require_session()
        return compute_stats(
            self.feed.plans,
            _as_utc(now or self._clock()),
            user_id=user_id,
            loading=self.feed.loading,
        )

    def plans(self) -> list[Plan]:
        self.require_session()
        return list(self.feed.plans)

    def tick(self, now: datetime | None = None) -> list[Plan]:
        """Run one reminder check; nothing fires unless the planner is showing."""
        if not self.planner_mounted or self.scheduler is None:
            return []
        return self.scheduler.tick(_as_utc(now) if now else None)
