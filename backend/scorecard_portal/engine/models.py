"""Domain types consumed and produced by the scorecard engine."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

_PERIOD_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


class ScopeType(str, Enum):
    ADVISOR = "advisor"
    STORE = "store"
    MARKET = "market"


@dataclass(frozen=True, order=True)
class Period:
    """A reporting month."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Invalid month {self.month}; expected 1-12")
        if self.year < 1900:
            raise ValueError(f"Invalid year {self.year}")

    @classmethod
    def parse(cls, value: str) -> "Period":
        """Parse a ``YYYY-MM`` string."""

        match = _PERIOD_PATTERN.match(value.strip())
        if match is None:
            raise ValueError(f"Invalid period {value!r}; expected YYYY-MM")
        return cls(year=int(match.group(1)), month=int(match.group(2)))

    @classmethod
    def containing(cls, day: date) -> "Period":
        return cls(year=day.year, month=day.month)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class PerformanceSnapshot:
    """Cumulative month-to-date totals for one scope as of ``uploaded_at``.

    Uploads repeat through the month, so several snapshots can share a scope,
    store and period. ``sequence`` is the insertion marker used to break ties
    between uploads carrying the same timestamp.
    """

    snapshot_id: str
    scope_type: ScopeType
    scope_id: str
    period_year: int
    period_month: int
    uploaded_at: datetime
    raw_fields: Mapping[str, Any]
    store_id: str | None = None
    market_id: str | None = None
    sequence: int = 0

    @property
    def period(self) -> Period:
        return Period(self.period_year, self.period_month)


@dataclass(frozen=True)
class TemplateField:
    canonical_key: str
    label: str | None = None
    format: str | None = None
    display_order: int = 0
    enabled: bool = True
    show_goal: bool = False


@dataclass(frozen=True)
class TemplateCategory:
    name: str
    fields: tuple[TemplateField, ...] = ()
    display_order: int = 0
    enabled: bool = True
    icon: str | None = None
    color: str | None = None


@dataclass(frozen=True)
class Template:
    template_id: str
    name: str
    categories: tuple[TemplateCategory, ...] = ()
    market_id: str | None = None
    is_default: bool = False


@dataclass(frozen=True)
class VendorMapping:
    """A vendor's branded product name for one service field."""

    mapping_id: int
    vendor_id: str
    service_field: str
    branded_name: str
    market_id: str | None = None
    vendor_name: str | None = None


@dataclass(frozen=True)
class Goal:
    scope_type: ScopeType
    scope_id: str
    metric_key: str
    target_value: Decimal
    effective_date: date
    period_type: str = "monthly"


@dataclass(frozen=True)
class ScopeInfo:
    """Directory entry for a scope that has history."""

    scope_type: ScopeType
    scope_id: str
    market_id: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class AttachedGoal:
    target: Decimal
    period_type: str
    effective_date: date


@dataclass(frozen=True)
class CoreMetrics:
    invoices: Decimal = Decimal("0")
    sales: Decimal = Decimal("0")
    gp_sales: Decimal = Decimal("0")
    gp_percent: Decimal = Decimal("0")


@dataclass(frozen=True)
class ResolvedField:
    key: str
    label: str
    value: Decimal
    format: str
    show_goal: bool = False
    goal: AttachedGoal | None = None


@dataclass(frozen=True)
class ResolvedCategory:
    name: str
    fields: tuple[ResolvedField, ...]
    icon: str | None = None
    color: str | None = None


@dataclass(frozen=True)
class AggregatedScorecard:
    """Derived scorecard for one scope and period. Never stored."""

    scope_type: ScopeType
    scope_id: str
    period: Period
    metrics: CoreMetrics
    services: dict[str, Decimal]
    goals: dict[str, AttachedGoal]
    categories: tuple[ResolvedCategory, ...] = ()
    store_id: str | None = None
    last_updated: datetime | None = None
    store_breakdown: tuple["AggregatedScorecard", ...] | None = None


@dataclass(frozen=True)
class StoreRollup:
    rollup: AggregatedScorecard
    by_store: tuple[AggregatedScorecard, ...] = field(default_factory=tuple)


__all__ = [
    "AggregatedScorecard",
    "AttachedGoal",
    "CoreMetrics",
    "Goal",
    "Period",
    "PerformanceSnapshot",
    "ResolvedCategory",
    "ResolvedField",
    "ScopeInfo",
    "ScopeType",
    "StoreRollup",
    "Template",
    "TemplateCategory",
    "TemplateField",
    "VendorMapping",
]
