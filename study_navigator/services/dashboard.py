"""Aggregate counts over the live plan list."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from study_navigator.domain.models import DashboardStats, Plan


def compute_stats(
    plans: Iterable[Plan],
    now: datetime,
    user_id: str | None = None,
    loading: bool = False,
) -> DashboardStats:
    """Total plans, and plans starting strictly after *now*."""
    plans = list(plans)
    return DashboardStats(
        total_plans=len(plans),
        upcoming_plans=sum(1 for plan in plans if plan.start_time > now),
        loading=loading,
        user_id=user_id,
    )
