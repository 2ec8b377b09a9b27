"""Pick the authoritative snapshot per store partition."""

from __future__ import annotations

from typing import Iterable

from .models import Period, PerformanceSnapshot, ScopeType


def _precedence(snapshot: PerformanceSnapshot) -> tuple:
    return (snapshot.uploaded_at, snapshot.sequence, snapshot.snapshot_id)


def _partition_order(key: str | None) -> tuple[int, str]:
    return (0, "") if key is None else (1, key)


def select_snapshots(
    snapshots: Iterable[PerformanceSnapshot],
    scope_type: ScopeType,
    scope_id: str,
    period: Period,
) -> list[PerformanceSnapshot]:
    """Return the latest snapshot of every partition for scope and period.

    Snapshots are cumulative month-to-date totals, so only the most recent
    upload in each partition counts; older ones are superseded, never summed.
    The partition key is the store id, or ``None`` for a market-level direct
    snapshot. The result is sorted by partition and does not depend on input
    order. An empty result means the period has no data yet.
    """

    latest: dict[str | None, PerformanceSnapshot] = {}
    for snapshot in snapshots:
        if snapshot.scope_type != scope_type or snapshot.scope_id != scope_id:
            continue
        if (snapshot.period_year, snapshot.period_month) != (period.year, period.month):
            continue
        key = snapshot.store_id
        current = latest.get(key)
        if current is None or _precedence(snapshot) > _precedence(current):
            latest[key] = snapshot
    return [latest[key] for key in sorted(latest, key=_partition_order)]


def partition_by_store(snapshots: Iterable[PerformanceSnapshot]) -> dict[str | None, list[PerformanceSnapshot]]:
    """Group already-selected snapshots by store, keeping partition order."""

    grouped: dict[str | None, list[PerformanceSnapshot]] = {}
    for snapshot in sorted(snapshots, key=lambda item: _partition_order(item.store_id)):
        grouped.setdefault(snapshot.store_id, []).append(snapshot)
    return grouped


__all__ = ["partition_by_store", "select_snapshots"]
