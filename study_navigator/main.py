"""FastAPI application: entry point for the study planner."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from study_navigator.config import settings
from study_navigator.domain.errors import StudyNavigatorError
from study_navigator.domain.models import (
    DashboardStats,
    EditorView,
    NavigateRequest,
    Notification,
    PasswordResetRequest,
    Plan,
    PlanForm,
    SignInRequest,
    SignUpRequest,
    StateResponse,
    Theme,
)
from study_navigator.logging_config import setup_logging
from study_navigator.repos.memory import InMemoryDocumentStore, InMemoryIdentityProvider
from study_navigator.services.notifications import NotificationBus
from study_navigator.services.shell import Shell

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level)
    shell.start()
    yield
    shell.shutdown()
    notifications.clear()


app = FastAPI(title="Study Navigator", lifespan=lifespan)

# ── Singletons (created at import time for simplicity) ────────────────
document_store = InMemoryDocumentStore()
identity_provider = InMemoryIdentityProvider()
notifications = NotificationBus(ttl_seconds=settings.notification_ttl_seconds)
shell = Shell(
    identity=identity_provider,
    store=document_store,
    notifications=notifications,
    app_id=settings.app_id,
    default_theme=Theme(settings.default_theme),
    reminder_interval_seconds=settings.reminder_interval_seconds,
    reminder_tolerance=timedelta(minutes=settings.reminder_tolerance_minutes),
)
shell.start()


@app.exception_handler(StudyNavigatorError)
async def study_navigator_error_handler(
    request: Request, exc: StudyNavigatorError
) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def _state_response() -> StateResponse:
    return StateResponse(state=shell.state, notification=notifications.current())


# ── Shell ─────────────────────────────────────────────────────────────


@app.get("/state", response_model=StateResponse)
async def get_state() -> StateResponse:
    """Return the application state and the live notification, if any."""
    return _state_response()


@app.get("/notification", response_model=Notification | None)
async def get_notification() -> Notification | None:
    return notifications.current()


@app.post("/navigate", response_model=StateResponse)
async def navigate(body: NavigateRequest) -> StateResponse:
    """Switch between the dashboard and the planner."""
    shell.navigate(body.page)
    return _state_response()


@app.post("/theme/toggle", response_model=StateResponse)
async def toggle_theme() -> StateResponse:
    shell.toggle_theme()
    return _state_response()


@app.post("/account-menu/toggle", response_model=StateResponse)
async def toggle_account_menu() -> StateResponse:
    shell.toggle_account_menu()
    return _state_response()


@app.post("/settings", response_model=StateResponse)
async def open_settings() -> StateResponse:
    shell.open_settings()
    return _state_response()


# ── Authentication ────────────────────────────────────────────────────


@app.post("/auth/sign-in", response_model=StateResponse)
async def sign_in(body: SignInRequest) -> StateResponse:
    await shell.sign_in(body.email, body.password)
    return _state_response()


@app.post("/auth/sign-up", response_model=StateResponse)
async def sign_up(body: SignUpRequest) -> StateResponse:
    """Create an account, set its display name and store its profile."""
    await shell.sign_up(body.email, body.password, body.confirm_password, body.username)
    return _state_response()


@app.post("/auth/password-reset", response_model=StateResponse)
async def password_reset(body: PasswordResetRequest) -> StateResponse:
    await shell.send_password_reset(body.email)
    return _state_response()


@app.post("/auth/sign-out", response_model=StateResponse)
async def sign_out() -> StateResponse:
    await shell.sign_out()
    return _state_response()


# ── Dashboard and plans ───────────────────────────────────────────────


@app.get("/dashboard", response_model=DashboardStats)
async def dashboard(now: datetime | None = None) -> DashboardStats:
    """Return total and upcoming plan counts, evaluated at *now*."""
    return shell.dashboard(now)


@app.get("/plans", response_model=list[Plan])
async def list_plans() -> list[Plan]:
    return shell.plans()


@app.post("/plans/{plan_id}/edit", response_model=EditorView)
async def edit_plan(plan_id: str) -> EditorView:
    """Load a plan into the editor and make it the edit target."""
    shell.require_session()
    return shell.editor.begin_edit(plan_id)


@app.delete("/plans/{plan_id}")
async def delete_plan(plan_id: str, confirm: bool = False) -> dict:
    """Delete a plan. Without ``confirm=true`` nothing is deleted (428)."""
    shell.require_session()
    plan = await shell.editor.delete(plan_id, confirmed=confirm)
    return {"status": "deleted", "plan_id": plan.id}


# ── Editor ────────────────────────────────────────────────────────────


@app.get("/editor", response_model=EditorView)
async def get_editor() -> EditorView:
    shell.require_session()
    return shell.editor.view()


@app.put("/editor/form", response_model=EditorView)
async def update_editor_form(form: PlanForm) -> EditorView:
    shell.require_session()
    return shell.editor.update_form(form)


@app.post("/editor/submit", response_model=Plan)
async def submit_editor() -> Plan:
    """Create a plan, or update the edit target when in edit mode."""
    shell.require_session()
    return await shell.editor.submit()


@app.post("/editor/cancel", response_model=EditorView)
async def cancel_edit() -> EditorView:
    shell.require_session()
    return shell.editor.cancel_edit()


# ── Reminders ─────────────────────────────────────────────────────────


@app.post("/tick")
async def tick(now: datetime | None = None) -> dict:
    """Run one reminder check at a simulated instant.

    Pass *now* as a query param to control the simulated clock.
    Defaults to ``datetime.now(timezone.utc)`` when omitted.
    """
    current_time = now or datetime.now(timezone.utc)
    fired = shell.tick(current_time)
    return {
        "time": current_time.isoformat(),
        "planner_mounted": shell.planner_mounted,
        "reminders_fired": [plan.id for plan in fired],
    }
