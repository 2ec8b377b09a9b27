"""Pure scorecard assembly.

A scorecard is a function of the snapshot set, the effective template, the
market's vendor mappings, the scope's goals and the current date. Nothing
here performs I/O or keeps state between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Sequence

from .aggregator import AggregateResult
from .branding import BrandOverlay
from .errors import MalformedField
from .fields import FieldResolver
from .goals import attach_goals
from .models import (
    AggregatedScorecard,
    AttachedGoal,
    Goal,
    Period,
    PerformanceSnapshot,
    ResolvedCategory,
    ScopeType,
    StoreRollup,
    Template,
    VendorMapping,
)
from .registry import CORE_METRIC_KEYS, DEFAULT_REGISTRY, FieldRegistry, compact_key
from .rollup import roll_up
from .selector import select_snapshots

_CORE_COMPACT = frozenset(compact_key(key) for key in CORE_METRIC_KEYS)


@dataclass(frozen=True)
class Assembly:
    """Scorecard output plus the per-store views and diagnostics behind it."""

    scorecard: AggregatedScorecard
    by_store: tuple[AggregatedScorecard, ...]
    diagnostics: tuple[MalformedField, ...]

    def as_rollup(self) -> StoreRollup:
        return StoreRollup(rollup=self.scorecard, by_store=self.by_store)


def services_map(categories: Iterable[ResolvedCategory]) -> dict[str, Decimal]:
    """Display name → value for every non-core resolved field, in template order.

    When two fields resolve to the same display name the first one wins.
    """

    services: dict[str, Decimal] = {}
    for category in categories:
        for item in category.fields:
            if compact_key(item.key) in _CORE_COMPACT:
                continue
            services.setdefault(item.label, item.value)
    return services


def _latest(snapshots: Sequence[PerformanceSnapshot]) -> datetime | None:
    return max((item.uploaded_at for item in snapshots), default=None)


def _build(
    scope_type: ScopeType,
    scope_id: str,
    period: Period,
    result: AggregateResult,
    resolver: FieldResolver,
    goals: dict[str, AttachedGoal],
    *,
    store_id: str | None,
    last_updated: datetime | None,
    breakdown: tuple[AggregatedScorecard, ...] | None = None,
) -> AggregatedScorecard:
    categories = resolver.resolve(result, goals)
    return AggregatedScorecard(
        scope_type=scope_type,
        scope_id=scope_id,
        period=period,
        metrics=result.core,
        services=services_map(categories),
        goals=dict(goals),
        categories=categories,
        store_id=store_id,
        last_updated=last_updated,
        store_breakdown=breakdown,
    )


def assemble(
    scope_type: ScopeType,
    scope_id: str,
    period: Period,
    snapshots: Iterable[PerformanceSnapshot],
    template: Template,
    vendor_mappings: Iterable[VendorMapping],
    goals: Iterable[Goal],
    today: date,
    *,
    registry: FieldRegistry = DEFAULT_REGISTRY,
    include_breakdown: bool = False,
) -> Assembly:
    """Select, aggregate, label and attach goals for one scope and period.

    With no snapshot for the period every metric is zero and every enabled
    template field is present at zero. Per-store scorecards are always
    computed; ``include_breakdown`` additionally nests them in the combined
    scorecard when the scope spans more than one store.
    """

    selected = select_snapshots(snapshots, scope_type, scope_id, period)
    resolver = FieldResolver(template, registry, BrandOverlay(vendor_mappings))
    attached = attach_goals(goals, scope_type, scope_id, today)
    result = roll_up(selected, registry)

    by_store = tuple(
        _build(
            scope_type,
            scope_id,
            period,
            partition.aggregate,
            resolver,
            attached,
            store_id=partition.store_id,
            last_updated=partition.last_updated,
        )
        for partition in result.by_store
    )

    if scope_type is ScopeType.STORE:
        store_id: str | None = scope_id
    elif len(result.by_store) == 1:
        store_id = result.by_store[0].store_id
    else:
        store_id = None

    breakdown = by_store if include_breakdown and len(by_store) > 1 else None
    scorecard = _build(
        scope_type,
        scope_id,
        period,
        result.rollup,
        resolver,
        attached,
        store_id=store_id,
        last_updated=_latest(selected),
        breakdown=breakdown,
    )
    return Assembly(scorecard=scorecard, by_store=by_store, diagnostics=result.rollup.diagnostics)


__all__ = ["Assembly", "assemble", "services_map"]
