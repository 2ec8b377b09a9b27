"""Attach the currently effective goal to each metric."""

from __future__ import annotations

from datetime import date
from typing import Iterable

from .models import AttachedGoal, Goal, ScopeType


def effective_goal(goals: Iterable[Goal], metric_key: str, today: date) -> AttachedGoal | None:
    """Goal for ``metric_key`` with the latest effective date not after ``today``."""

    best: Goal | None = None
    for goal in goals:
        if goal.metric_key != metric_key or goal.effective_date > today:
            continue
        if best is None or (goal.effective_date, goal.target_value) > (best.effective_date, best.target_value):
            best = goal
    if best is None:
        return None
    return AttachedGoal(target=best.target_value, period_type=best.period_type, effective_date=best.effective_date)


def attach_goals(
    goals: Iterable[Goal],
    scope_type: ScopeType,
    scope_id: str,
    today: date,
) -> dict[str, AttachedGoal]:
    """Effective goal per metric key for one scope; metrics without one are absent."""

    scoped = [goal for goal in goals if goal.scope_type == scope_type and goal.scope_id == scope_id]
    attached: dict[str, AttachedGoal] = {}
    for metric_key in sorted({goal.metric_key for goal in scoped}):
        found = effective_goal(scoped, metric_key, today)
        if found is not None:
            attached[metric_key] = found
    return attached


__all__ = ["attach_goals", "effective_goal"]
