"""Tests for the live plan feed over the in-memory document store."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from study_navigator.domain.events import CollectionChanged
from study_navigator.domain.models import Severity
from study_navigator.repos.memory import InMemoryDocumentStore
from study_navigator.repos.paths import plans_collection
from study_navigator.services.feed import PlanFeed
from study_navigator.services.notifications import NotificationBus

_NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
_APP_ID = "test-app"
_USER = "user-1"
_COLLECTION = plans_collection(_APP_ID, _USER)


def _record(subject: str, user_id: str = _USER) -> dict:
    return {
        "user_id": user_id,
        "subject": subject,
        "topic": None,
        "description": None,
        "start_time": (_NOW + timedelta(days=1)).isoformat(),
        "end_time": (_NOW + timedelta(days=1, hours=1)).isoformat(),
        "reminder_minutes_before": None,
        "created_at": _NOW.isoformat(),
    }


@pytest.fixture()
def env():
    store = InMemoryDocumentStore()
    notifications = NotificationBus(clock=lambda: _NOW)
    feed = PlanFeed(store, notifications, _APP_ID)

    class Env:
        pass

    e = Env()
    e.store = store
    e.notifications = notifications
    e.feed = feed
    return e


def _add(store: InMemoryDocumentStore, record: dict) -> str:
    return asyncio.run(store.add(_COLLECTION, record))


def test_open_delivers_initial_snapshot(env):
    _add(env.store, _record("Mathematics"))

    env.feed.open(_USER)

    assert env.feed.loading is False
    assert env.feed.is_open
    assert [p.subject for p in env.feed.plans] == ["Mathematics"]


def test_snapshot_replaces_previous_list(env):
    """Initial [A, B] then a snapshot of [A] leaves exactly [A]."""
    a = _add(env.store, _record("A"))
    b = _add(env.store, _record("B"))
    env.feed.open(_USER)
    assert {p.id for p in env.feed.plans} == {a, b}

    asyncio.run(env.store.delete(_COLLECTION, b))

    assert [p.id for p in env.feed.plans] == [a]


def test_only_owner_records_are_visible(env):
    _add(env.store, _record("Mine"))
    _add(env.store, _record("Someone else's", user_id="user-2"))

    env.feed.open(_USER)

    assert [p.subject for p in env.feed.plans] == ["Mine"]


def test_subscription_error_falls_back_to_empty_list(env):
    _add(env.store, _record("Mathematics"))
    env.feed.open(_USER)

    env.store.fail_subscriptions(_COLLECTION, "Missing or insufficient permissions.")

    assert env.feed.plans == []
    assert env.feed.is_open is False
    current = env.notifications.current()
    assert current.type == Severity.ERROR
    assert current.message == "Error loading plans: Missing or insufficient permissions."

    # The terminated listener receives nothing further.
    _add(env.store, _record("Physics"))
    assert env.feed.plans == []


def test_close_stops_updates_and_clears_list(env):
    _add(env.store, _record("Mathematics"))
    env.feed.open(_USER)

    env.feed.close()
    _add(env.store, _record("Physics"))

    assert env.feed.plans == []
    assert env.feed.user_id is None
    assert env.store.bus.subscriber_count(CollectionChanged) == 0


def test_reopening_for_another_user_switches_collections(env):
    _add(env.store, _record("Mine"))
    other = plans_collection(_APP_ID, "user-2")
    asyncio.run(env.store.add(other, _record("Theirs", user_id="user-2")))

    env.feed.open(_USER)
    env.feed.open("user-2")

    assert [p.subject for p in env.feed.plans] == ["Theirs"]


def test_malformed_records_are_skipped(env):
    _add(env.store, _record("Good"))
    bad = _record("")
    _add(env.store, bad)

    env.feed.open(_USER)

    assert [p.subject for p in env.feed.plans] == ["Good"]


def test_get_returns_none_for_unknown_id(env):
    env.feed.open(_USER)
    assert env.feed.get("missing") is None
