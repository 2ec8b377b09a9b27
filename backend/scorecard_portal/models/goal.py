"""Scorecard goals."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from scorecard_portal.db.base import Base


class GoalRecord(Base):
    __tablename__ = "goal"
    __table_args__ = (Index("ix_goal_scope_metric", "goal_type", "scope_id", "metric_name"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    goal_type: Mapped[str] = mapped_column(String(16))
    scope_id: Mapped[str] = mapped_column(String(64))
    metric_name: Mapped[str] = mapped_column(String(128))
    target_value: Mapped[Decimal] = mapped_column(Numeric(18, 4))
    period_type: Mapped[str] = mapped_column(String(16), default="monthly")
    effective_date: Mapped[date] = mapped_column(Date)


__all__ = ["GoalRecord"]
