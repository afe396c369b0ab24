"""Domain models for the study planner."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

try:
    from enum import StrEnum
except ImportError:  # pragma: no cover - fallback for older Python runtimes

    class StrEnum(str, Enum):
        pass


GUEST_NAME = "Guest"


class Severity(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Page(StrEnum):
    DASHBOARD = "dashboard"
    PLANNER = "planner"


class Theme(StrEnum):
    DARK = "dark"
    LIGHT = "light"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Plan(BaseModel):
    """A scheduled study session owned by a single user.

    ``end_time`` is deliberately not validated against ``start_time``.
    """

    id: str
    user_id: str
    subject: str = Field(min_length=1)
    topic: str | None = None
    description: str | None = None
    start_time: datetime
    end_time: datetime
    reminder_minutes_before: int | None = Field(default=None, ge=0)
    created_at: datetime

    def record(self) -> dict:
        """Return the stored field set (everything except the store key)."""
        return self.model_dump(exclude={"id"})


class Profile(BaseModel):
    username: str
    email: str
    created_at: datetime = Field(default_factory=_utcnow)


class AuthUser(BaseModel):
    """A user as reported by the identity provider."""

    uid: str
    email: str
    display_name: str | None = None


class Session(BaseModel):
    user_id: str | None = None
    email: str | None = None
    display_name: str = GUEST_NAME

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def from_user(cls, user: AuthUser | None) -> Session:
        if user is None:
            return cls()
        return cls(
            user_id=user.uid,
            email=user.email,
            display_name=user.display_name or user.email or GUEST_NAME,
        )


class Notification(BaseModel):
    message: str
    type: Severity = Severity.SUCCESS
    created_at: datetime = Field(default_factory=_utcnow)


class AppState(BaseModel):
    """Top-level UI state; changed only through ``domain.state`` transitions."""

    page: Page = Page.DASHBOARD
    theme: Theme = Theme.DARK
    account_menu_open: bool = False
    auth_overlay_open: bool = False
    auth_ready: bool = False
    session: Session = Field(default_factory=Session)


class DashboardStats(BaseModel):
    total_plans: int
    upcoming_plans: int
    loading: bool = False
    user_id: str | None = None


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class PlanForm(BaseModel):
    """Raw editor field values. Empty strings mean "not filled in"."""

    subject: str = ""
    topic: str = ""
    description: str = ""
    start_time: str = ""
    end_time: str = ""
    reminder_minutes_before: str | int | None = ""


class EditorView(BaseModel):
    heading: str
    form: PlanForm
    editing_plan_id: str | None = None
    busy: bool = False


class SignInRequest(BaseModel):
    email: str
    password: str


class SignUpRequest(BaseModel):
    email: str
    password: str
    confirm_password: str
    username: str


class PasswordResetRequest(BaseModel):
    email: str


class NavigateRequest(BaseModel):
    page: Page


class StateResponse(BaseModel):
    state: AppState
    notification: Notification | None = None
