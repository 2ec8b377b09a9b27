"""Data sources the scorecard service reads from.

The engine only depends on the :class:`ScorecardSource` protocol. The
in-memory implementation backs tests and local experiments; the database and
HTTP implementations live in :mod:`scorecard_portal.services.sql_source` and
:mod:`scorecard_portal.services.http_source`.
"""

from __future__ import annotations

from typing import Iterable, Protocol

from scorecard_portal.engine.models import (
    Goal,
    Period,
    PerformanceSnapshot,
    ScopeInfo,
    ScopeType,
    Template,
    VendorMapping,
)


class ScorecardSource(Protocol):
    """Collaborator interface consumed by the scorecard service.

    Implementations raise :class:`~scorecard_portal.engine.errors.CollaboratorUnavailable`
    when the underlying store cannot be reached.
    """

    async def query_snapshots(
        self, scope_type: ScopeType, scope_id: str, period: Period
    ) -> list[PerformanceSnapshot]:
        ...

    async def get_effective_template(self, market_id: str | None) -> Template | None:
        ...

    async def get_vendor_mappings(self, market_id: str | None) -> list[VendorMapping]:
        ...

    async def get_effective_goals(self, scope_type: ScopeType, scope_id: str) -> list[Goal]:
        ...

    async def describe_scope(self, scope_type: ScopeType, scope_id: str) -> ScopeInfo | None:
        ...


class InMemoryScorecardSource:
    """Simple source for tests and examples."""

    def __init__(
        self,
        *,
        snapshots: Iterable[PerformanceSnapshot] = (),
        templates: Iterable[Template] = (),
        vendor_mappings: Iterable[VendorMapping] = (),
        market_vendors: dict[str, Iterable[str]] | None = None,
        goals: Iterable[Goal] = (),
        scopes: Iterable[ScopeInfo] = (),
    ):
        self.snapshots = list(snapshots)
        self.templates = list(templates)
        self.vendor_mappings = list(vendor_mappings)
        self.market_vendors = {market: set(vendors) for market, vendors in (market_vendors or {}).items()}
        self.goals = list(goals)
        self.scopes = {(scope.scope_type, scope.scope_id): scope for scope in scopes}
        self.calls: list[tuple[str, tuple]] = []

    async def query_snapshots(
        self, scope_type: ScopeType, scope_id: str, period: Period
    ) -> list[PerformanceSnapshot]:
        self.calls.append(("query_snapshots", (scope_type, scope_id, period)))
        return [
            snapshot
            for snapshot in self.snapshots
            if snapshot.scope_type == scope_type
            and snapshot.scope_id == scope_id
            and snapshot.period == period
        ]

    async def get_effective_template(self, market_id: str | None) -> Template | None:
        self.calls.append(("get_effective_template", (market_id,)))
        if market_id is not None:
            for template in self.templates:
                if template.market_id == market_id:
                    return template
        for template in self.templates:
            if template.is_default and template.market_id is None:
                return template
        return None

    async def get_vendor_mappings(self, market_id: str | None) -> list[VendorMapping]:
        """Mappings reachable through the market's vendor tags."""

        self.calls.append(("get_vendor_mappings", (market_id,)))
        if market_id is None:
            return []
        vendors = self.market_vendors.get(market_id, set())
        return [
            mapping
            for mapping in self.vendor_mappings
            if mapping.vendor_id in vendors and mapping.market_id in (None, market_id)
        ]

    async def get_effective_goals(self, scope_type: ScopeType, scope_id: str) -> list[Goal]:
        self.calls.append(("get_effective_goals", (scope_type, scope_id)))
        return [goal for goal in self.goals if goal.scope_type == scope_type and goal.scope_id == scope_id]

    async def describe_scope(self, scope_type: ScopeType, scope_id: str) -> ScopeInfo | None:
        self.calls.append(("describe_scope", (scope_type, scope_id)))
        found = self.scopes.get((scope_type, scope_id))
        if found is not None:
            return found
        for snapshot in self.snapshots:
            if snapshot.scope_type == scope_type and snapshot.scope_id == scope_id:
                return ScopeInfo(scope_type=scope_type, scope_id=scope_id, market_id=snapshot.market_id)
        return None


__all__ = ["InMemoryScorecardSource", "ScorecardSource"]
