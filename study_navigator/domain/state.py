"""Transition functions over ``AppState``.

Each function returns a new state and leaves its argument untouched.
"""

from __future__ import annotations

from study_navigator.domain.models import AppState, AuthUser, Page, Session, Theme


def navigate(state: AppState, page: Page) -> AppState:
    return state.model_copy(update={"page": page})


def toggle_theme(state: AppState) -> AppState:
    theme = Theme.LIGHT if state.theme == Theme.DARK else Theme.DARK
    return state.model_copy(update={"theme": theme})


def toggle_account_menu(state: AppState) -> AppState:
    return state.model_copy(update={"account_menu_open": not state.account_menu_open})


def close_account_menu(state: AppState) -> AppState:
    return state.model_copy(update={"account_menu_open": False})


def dismiss_auth_overlay(state: AppState) -> AppState:
    return state.model_copy(update={"auth_overlay_open": False})


def session_changed(state: AppState, user: AuthUser | None) -> AppState:
    """Apply an identity-provider transition (sign-in, profile update, sign-out)."""
    return state.model_copy(
        update={
            "session": Session.from_user(user),
            "auth_overlay_open": user is None,
            "auth_ready": True,
        }
    )


def signed_out(state: AppState) -> AppState:
    """Local sign-out: clear identity, close the menu, re-open the overlay."""
    return state.model_copy(
        update={
            "session": Session(),
            "account_menu_open": False,
            "auth_overlay_open": True,
        }
    )
