"""Create/update form controller over the plan collection."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from study_navigator.domain.errors import (
    ConfirmationRequired,
    FormValidationError,
    NotAuthenticated,
    PlanNotFound,
    StoreError,
    SubmissionInProgress,
)
from study_navigator.domain.models import EditorView, Plan, PlanForm, Severity
from study_navigator.repos.base import DocumentStore
from study_navigator.services.feed import PlanFeed
from study_navigator.services.notifications import NotificationBus
from study_navigator.services.timeparse import format_form_time, parse_form_time

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = (
    "Please fill in all required fields (Subject, Start Time, End Time)."
)
REMINDER_MESSAGE = "Reminder must be a whole number of minutes (0 or more)."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_reminder(value: str | int | None) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        minutes = int(value.strip() if isinstance(value, str) else value)
    except ValueError:
        raise FormValidationError(REMINDER_MESSAGE) from None
    if minutes < 0:
        raise FormValidationError(REMINDER_MESSAGE)
    return minutes


def form_from_plan(plan: Plan) -> PlanForm:
    reminder = plan.reminder_minutes_before
    return PlanForm(
        subject=plan.subject,
        topic=plan.topic or "",
        description=plan.description or "",
        start_time=format_form_time(plan.start_time),
        end_time=format_form_time(plan.end_time),
        reminder_minutes_before="" if reminder is None else str(reminder),
    )


class PlanEditor:
    """One form, at most one edit target, one outstanding store call."""

    def __init__(
        self,
        store: DocumentStore,
        feed: PlanFeed,
        notifications: NotificationBus,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.feed = feed
        self.notifications = notifications
        self._clock = clock
        self.form = PlanForm()
        self.editing: Plan | None = None
        self.busy = False

    def view(self) -> EditorView:
        return EditorView(
            heading="Edit Study Plan" if self.editing else "Create New Study Plan",
            form=self.form,
            editing_plan_id=self.editing.id if self.editing else None,
            busy=self.busy,
        )

    def update_form(self, form: PlanForm) -> EditorView:
        self.form = form
        return self.view()

    def reset(self) -> None:
        self.form = PlanForm()
        self.editing = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _collection(self) -> str:
        collection = self.feed.collection
        if collection is None:
            raise NotAuthenticated()
        return collection

    def _check_idle(self) -> None:
        if self.busy:
            raise SubmissionInProgress()

    def _invalid(self, message: str) -> FormValidationError:
        self.notifications.publish(message, Severity.ERROR)
        return FormValidationError(message)

    def _build_record(self, now: datetime) -> dict[str, Any]:
        form = self.form
        if not form.subject.strip() or not form.start_time.strip() or not form.end_time.strip():
            raise self._invalid(REQUIRED_FIELDS_MESSAGE)

        start_time = parse_form_time(form.start_time, now)
        if start_time is None:
            raise self._invalid(f"Could not understand start time: {form.start_time}")
        end_time = parse_form_time(form.end_time, now)
        if end_time is None:
            raise self._invalid(f"Could not understand end time: {form.end_time}")
        try:
            reminder = _parse_reminder(form.reminder_minutes_before)
        except FormValidationError as exc:
            raise self._invalid(exc.message) from None

        return {
            "user_id": self.feed.user_id,
            "subject": form.subject.strip(),
            "topic": form.topic.strip() or None,
            "description": form.description.strip() or None,
            "start_time": start_time.isoformat(),
            "end_time": end_time.isoformat(),
            "reminder_minutes_before": reminder,
        }

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def submit(self) -> Plan:
        """Create a plan, or replace the edit target's fields in edit mode."""
        self._check_idle()
        collection = self._collection()
        now = self._clock()
        record = self._build_record(now)
        target = self.editing

        self.busy = True
        try:
            if target is not None:
                record["created_at"] = target.created_at.isoformat()
                await self.store.update(collection, target.id, record)
                plan_id = target.id
                message = "Study plan updated successfully!"
            else:
                record["created_at"] = now.isoformat()
                plan_id = await self.store.add(collection, record)
                message = "Study plan created successfully!"
        except StoreError as exc:
            logger.error("Error saving plan: %s", exc.message)
            self.notifications.publish(f"Error saving plan: {exc.message}", Severity.ERROR)
            raise
        finally:
            self.busy = False

        logger.info("Saved plan %s (%s)", plan_id, "update" if target else "create")
        self.notifications.publish(message, Severity.SUCCESS)
        self.reset()
        return Plan.model_validate({"id": plan_id, **record})

    def begin_edit(self, plan_id: str) -> EditorView:
        plan = self.feed.get(plan_id)
        if plan is None:
            raise PlanNotFound()
        self.editing = plan
        self.form = form_from_plan(plan)
        self.notifications.publish(f"Editing plan: {plan.subject}", Severity.INFO)
        return self.view()

    def cancel_edit(self) -> EditorView:
        was_editing = self.editing is not None
        self.reset()
        if was_editing:
            self.notifications.publish("Edit cancelled.", Severity.INFO)
        return self.view()

    async def delete(self, plan_id: str, confirmed: bool = False) -> Plan:
        """Delete a plan; refuses without an explicit confirmation."""
        collection = self._collection()
        plan = self.feed.get(plan_id)
        if plan is None:
            raise PlanNotFound()
        if not confirmed:
            raise ConfirmationRequired(
                f'Are you sure you want to delete the plan for "{plan.subject}"?'
            )
        self._check_idle()

        self.busy = True
        try:
            await self.store.delete(collection, plan.id)
        except StoreError as exc:
            logger.error("Error deleting plan %s: %s", plan.id, exc.message)
            self.notifications.publish(f"Error deleting plan: {exc.message}", Severity.ERROR)
            raise
        finally:
            self.busy = False

        logger.info("Deleted plan %s", plan.id)
        self.notifications.publish(
            f'Plan "{plan.subject}" deleted successfully!', Severity.SUCCESS
        )
        return plan
