"""Live plan list shared by the dashboard, the editor and the reminder scheduler."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from study_navigator.domain.bus import Subscription
from study_navigator.domain.models import Plan, Severity
from study_navigator.repos.base import DocumentStore
from study_navigator.repos.paths import plans_collection
from study_navigator.services.notifications import NotificationBus

logger = logging.getLogger(__name__)


class PlanFeed:
    """Consumes the store's live subscription for one user's plans.

    Every snapshot replaces ``plans`` wholesale. A terminal subscription
    error empties the list instead of leaving stale records behind.
    """

    def __init__(
        self,
        store: DocumentStore,
        notifications: NotificationBus,
        app_id: str,
    ) -> None:
        self.store = store
        self.notifications = notifications
        self.app_id = app_id
        self.user_id: str | None = None
        self.plans: list[Plan] = []
        self.loading = False
        self._subscription: Subscription | None = None

    @property
    def collection(self) -> str | None:
        if self.user_id is None:
            return None
        return plans_collection(self.app_id, self.user_id)

    @property
    def is_open(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    def open(self, user_id: str) -> None:
        if self.is_open and self.user_id == user_id:
            return
        self.close()
        self.user_id = user_id
        self.loading = True
        handle_ref: list[Subscription] = []
        handle = self.store.subscribe(
            self.collection,
            on_snapshot=lambda docs: self._on_snapshot(handle_ref, docs),
            on_error=lambda reason: self._on_error(handle_ref, reason),
            where=("user_id", user_id),
        )
        handle_ref.append(handle)
        self._subscription = handle

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
        self._subscription = None
        self.user_id = None
        self.plans = []
        self.loading = False

    def get(self, plan_id: str) -> Plan | None:
        for plan in self.plans:
            if plan.id == plan_id:
                return plan
        return None

    # ------------------------------------------------------------------
    # Subscription callbacks
    # ------------------------------------------------------------------

    def _is_stale(self, handle_ref: list[Subscription]) -> bool:
        # The first snapshot arrives before ``open`` stores the handle.
        if not handle_ref:
            return False
        return handle_ref[0] is not self._subscription

    def _on_snapshot(self, handle_ref: list[Subscription], docs: list[dict[str, Any]]) -> None:
        if self._is_stale(handle_ref):
            return
        plans = []
        for doc in docs:
            try:
                plans.append(Plan.model_validate(doc))
            except ValidationError as exc:
                logger.warning("Skipping malformed plan %s: %s", doc.get("id"), exc)
        self.plans = plans
        self.loading = False
        logger.debug("Plan snapshot for %s: %d plans", self.user_id, len(plans))

    def _on_error(self, handle_ref: list[Subscription], reason: str) -> None:
        if self._is_stale(handle_ref):
            return
        logger.error("Plan subscription for %s failed: %s", self.user_id, reason)
        self.notifications.publish(f"Error loading plans: {reason}", Severity.ERROR)
        self.plans = []
        self.loading = False
        self._subscription = None
