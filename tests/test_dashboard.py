"""Tests for dashboard counts."""

from datetime import datetime, timedelta, timezone

from study_navigator.domain.models import Plan
from study_navigator.services.dashboard import compute_stats

_NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def _make_plan(plan_id: str, start: datetime) -> Plan:
    return Plan(
        id=plan_id,
        user_id="user-1",
        subject="Chemistry",
        start_time=start,
        end_time=start + timedelta(hours=1),
        created_at=_NOW - timedelta(days=2),
    )


def test_two_future_one_past():
    plans = [
        _make_plan("a", _NOW + timedelta(hours=1)),
        _make_plan("b", _NOW + timedelta(days=3)),
        _make_plan("c", _NOW - timedelta(hours=1)),
    ]
    stats = compute_stats(plans, _NOW)
    assert stats.total_plans == 3
    assert stats.upcoming_plans == 2


def test_plan_starting_now_is_not_upcoming():
    stats = compute_stats([_make_plan("a", _NOW)], _NOW)
    assert stats.total_plans == 1
    assert stats.upcoming_plans == 0


def test_empty_list():
    stats = compute_stats([], _NOW, user_id="user-1", loading=True)
    assert stats.total_plans == 0
    assert stats.upcoming_plans == 0
    assert stats.loading is True
    assert stats.user_id == "user-1"
