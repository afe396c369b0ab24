"""Document-store paths, namespaced per deployment and per user."""

from __future__ import annotations


def user_root(app_id: str, user_id: str) -> str:
    return f"artifacts/{app_id}/users/{user_id}"


def plans_collection(app_id: str, user_id: str) -> str:
    return f"{user_root(app_id, user_id)}/study_plans"


def profile_document(app_id: str, user_id: str) -> str:
    return f"{user_root(app_id, user_id)}/user_data/profile"
