"""Per-store and combined aggregation for multi-location scopes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from .aggregator import AggregateResult, aggregate
from .models import PerformanceSnapshot
from .registry import DEFAULT_REGISTRY, FieldRegistry
from .selector import partition_by_store


@dataclass(frozen=True)
class PartitionAggregate:
    store_id: str | None
    snapshots: tuple[PerformanceSnapshot, ...]
    aggregate: AggregateResult

    @property
    def last_updated(self) -> datetime | None:
        return max((item.uploaded_at for item in self.snapshots), default=None)


@dataclass(frozen=True)
class RollupResult:
    rollup: AggregateResult
    by_store: tuple[PartitionAggregate, ...]


def roll_up(selected: Sequence[PerformanceSnapshot], registry: FieldRegistry = DEFAULT_REGISTRY) -> RollupResult:
    """Aggregate each store on its own and all stores together.

    Each store's percentages come from that store's totals only. The rollup
    runs the same aggregation over the union, so additive rollup values equal
    the sum of the per-store values while rollup percentages are recomputed
    from union totals instead of averaging store percentages.
    """

    by_store = tuple(
        PartitionAggregate(store_id=store_id, snapshots=tuple(members), aggregate=aggregate(members, registry))
        for store_id, members in partition_by_store(selected).items()
    )
    return RollupResult(rollup=aggregate(selected, registry), by_store=by_store)


__all__ = ["PartitionAggregate", "RollupResult", "roll_up"]
