"""Uploaded month-to-date performance snapshots."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from scorecard_portal.db.base import Base


class PerformanceSnapshotRecord(Base):
    """One upload row. Append-only; the row id doubles as the insertion marker."""

    __tablename__ = "performance_snapshot"
    __table_args__ = (
        Index("ix_performance_snapshot_scope_period", "scope_type", "scope_id", "period_year", "period_month"),
        Index("ix_performance_snapshot_store", "store_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scope_type: Mapped[str] = mapped_column(String(16))
    scope_id: Mapped[str] = mapped_column(String(64))
    store_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    market_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    period_year: Mapped[int] = mapped_column(Integer)
    period_month: Mapped[int] = mapped_column(Integer)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    source_file: Mapped[str | None] = mapped_column(String(255), nullable=True)


__all__ = ["PerformanceSnapshotRecord"]
