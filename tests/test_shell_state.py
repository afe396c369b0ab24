"""Tests for AppState transitions and shell session gating."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from study_navigator.domain import state as transitions
from study_navigator.domain.errors import NotAuthenticated
from study_navigator.domain.models import AppState, AuthUser, GUEST_NAME, Page, Theme
from study_navigator.repos.memory import InMemoryDocumentStore, InMemoryIdentityProvider
from study_navigator.services.notifications import NotificationBus
from study_navigator.services.shell import Shell

_NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def test_transitions_return_new_state():
    state = AppState()
    moved = transitions.navigate(state, Page.PLANNER)

    assert state.page == Page.DASHBOARD
    assert moved.page == Page.PLANNER


def test_toggle_theme_flips_between_dark_and_light():
    state = transitions.toggle_theme(AppState())
    assert state.theme == Theme.LIGHT
    assert transitions.toggle_theme(state).theme == Theme.DARK


def test_session_changed_display_name_fallbacks():
    named = AuthUser(uid="u1", email="ada@example.com", display_name="Ada")
    unnamed = AuthUser(uid="u1", email="ada@example.com")

    assert transitions.session_changed(AppState(), named).session.display_name == "Ada"
    assert (
        transitions.session_changed(AppState(), unnamed).session.display_name
        == "ada@example.com"
    )
    assert transitions.session_changed(AppState(), None).session.display_name == GUEST_NAME


def test_session_changed_gates_overlay():
    user = AuthUser(uid="u1", email="ada@example.com")
    signed_in = transitions.session_changed(AppState(), user)
    assert signed_in.auth_ready is True
    assert signed_in.auth_overlay_open is False

    signed_out = transitions.session_changed(signed_in, None)
    assert signed_out.auth_overlay_open is True
    assert signed_out.session.authenticated is False


def test_signed_out_closes_account_menu():
    state = transitions.toggle_account_menu(AppState())
    assert state.account_menu_open is True

    state = transitions.signed_out(state)
    assert state.account_menu_open is False
    assert state.auth_overlay_open is True


# ---------------------------------------------------------------------------
# Shell
# ---------------------------------------------------------------------------


@pytest.fixture()
def shell():
    identity = InMemoryIdentityProvider()
    notifications = NotificationBus(clock=lambda: _NOW)
    shell = Shell(
        identity=identity,
        store=InMemoryDocumentStore(),
        notifications=notifications,
        app_id="test-app",
        clock=lambda: _NOW,
    )
    shell.start()
    yield shell
    shell.shutdown()


def _sign_up(shell: Shell) -> None:
    asyncio.run(shell.sign_up("ada@example.com", "secret1", "secret1", "Ada"))


def test_start_marks_auth_ready_and_opens_overlay(shell):
    assert shell.state.auth_ready is True
    assert shell.state.auth_overlay_open is True
    assert shell.state.session.display_name == GUEST_NAME


def test_sign_up_opens_feed_and_sets_display_name(shell):
    _sign_up(shell)

    assert shell.state.session.display_name == "Ada"
    assert shell.state.auth_overlay_open is False
    assert shell.feed.is_open
    assert shell.feed.user_id == shell.state.session.user_id


def test_views_require_session(shell):
    with pytest.raises(NotAuthenticated):
        shell.navigate(Page.PLANNER)
    with pytest.raises(NotAuthenticated):
        shell.dashboard()


def test_tick_is_inert_unless_planner_showing(shell):
    _sign_up(shell)
    shell.editor.update_form(
        shell.editor.form.model_copy(
            update={
                "subject": "Biology",
                "start_time": (_NOW + timedelta(minutes=10)).isoformat(),
                "end_time": (_NOW + timedelta(hours=1)).isoformat(),
                "reminder_minutes_before": "10",
            }
        )
    )
    plan = asyncio.run(shell.editor.submit())

    assert shell.tick(_NOW) == []

    shell.navigate(Page.PLANNER)
    assert [p.id for p in shell.tick(_NOW)] == [plan.id]


def test_reminded_set_survives_navigation_but_not_sign_out(shell):
    _sign_up(shell)
    shell.navigate(Page.PLANNER)
    scheduler = shell.scheduler

    shell.navigate(Page.DASHBOARD)
    shell.navigate(Page.PLANNER)
    assert shell.scheduler is scheduler

    asyncio.run(shell.sign_out())
    assert shell.scheduler is None
    assert shell.feed.plans == []
    assert shell.state.account_menu_open is False
    assert shell.state.auth_overlay_open is True


def test_settings_closes_menu_with_info(shell):
    shell.toggle_account_menu()
    shell.open_settings()

    assert shell.state.account_menu_open is False
    assert shell.notifications.current().message == "Settings not implemented yet."
