"""Scorecard service: collaborator I/O around the pure assembly engine."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Awaitable, Callable
from zoneinfo import ZoneInfo

from opentelemetry import trace

from scorecard_portal.engine.errors import ScopeNotFound
from scorecard_portal.engine.models import (
    AggregatedScorecard,
    Period,
    ScopeType,
    StoreRollup,
)
from scorecard_portal.engine.registry import DEFAULT_REGISTRY, FieldRegistry, default_template
from scorecard_portal.engine.scorecard import Assembly, assemble
from scorecard_portal.services.sources import ScorecardSource

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

Clock = Callable[[], date]


async def gather_or_cancel(*calls: Awaitable[Any]) -> list[Any]:
    """Await ``calls`` concurrently; on the first failure cancel and drain the rest."""

    tasks = [asyncio.ensure_future(call) for call in calls]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def local_today(timezone: str) -> Clock:
    """Clock returning today's date in ``timezone``."""

    zone = ZoneInfo(timezone)

    def _today() -> date:
        return datetime.now(zone).date()

    return _today


class ScorecardService:
    """Compute advisor, store and market scorecards.

    Every request fetches its collaborator data once (template, vendor
    mappings and goals are shared by all store partitions of the request) and
    hands it to :func:`~scorecard_portal.engine.scorecard.assemble`.
    Collaborator failures propagate unchanged; nothing is retried.
    """

    def __init__(
        self,
        source: ScorecardSource,
        *,
        registry: FieldRegistry = DEFAULT_REGISTRY,
        clock: Clock | None = None,
        log: logging.Logger | None = None,
    ):
        self.source = source
        self.registry = registry
        self.clock = clock or date.today
        self.log = log or logger

    async def compute_advisor_scorecard(self, advisor_id: str, period: Period) -> AggregatedScorecard:
        assembly = await self._compute(ScopeType.ADVISOR, advisor_id, period, include_breakdown=True)
        return assembly.scorecard

    async def compute_advisor_scorecard_by_store(self, advisor_id: str, period: Period) -> StoreRollup:
        assembly = await self._compute(ScopeType.ADVISOR, advisor_id, period)
        return assembly.as_rollup()

    async def compute_store_scorecard(self, store_id: str, period: Period) -> AggregatedScorecard:
        assembly = await self._compute(ScopeType.STORE, store_id, period)
        return assembly.scorecard

    async def compute_market_scorecard(self, market_id: str, period: Period) -> AggregatedScorecard:
        assembly = await self._compute(ScopeType.MARKET, market_id, period)
        return assembly.scorecard

    async def _compute(
        self,
        scope_type: ScopeType,
        scope_id: str,
        period: Period,
        *,
        include_breakdown: bool = False,
    ) -> Assembly:
        with tracer.start_as_current_span(f"scorecard.{scope_type.value}") as span:
            span.set_attribute("scorecard.scope_type", scope_type.value)
            span.set_attribute("scorecard.scope_id", scope_id)
            span.set_attribute("scorecard.period", str(period))

            scope = await self.source.describe_scope(scope_type, scope_id)
            if scope is None:
                raise ScopeNotFound(scope_type.value, scope_id)
            market_id = scope.market_id
            if market_id is None and scope_type is ScopeType.MARKET:
                market_id = scope_id

            snapshots, template, mappings, goals = await gather_or_cancel(
                self.source.query_snapshots(scope_type, scope_id, period),
                self.source.get_effective_template(market_id),
                self.source.get_vendor_mappings(market_id),
                self.source.get_effective_goals(scope_type, scope_id),
            )
            if template is None:
                self.log.info("No scorecard template for market %s; using the global default", market_id)
                template = default_template(self.registry)

            assembly = assemble(
                scope_type,
                scope_id,
                period,
                snapshots,
                template,
                mappings,
                goals,
                self.clock(),
                registry=self.registry,
                include_breakdown=include_breakdown,
            )
            span.set_attribute("scorecard.partitions", len(assembly.by_store))

        for diagnostic in assembly.diagnostics:
            self.log.warning("Malformed field counted as zero: %s", diagnostic.describe())
        if assembly.scorecard.last_updated is None:
            self.log.info("No snapshots for %s %s in %s; returning an all-zero scorecard", scope_type.value, scope_id, period)
        else:
            self.log.debug(
                "Computed %s scorecard %s for %s from %d partition(s)",
                scope_type.value,
                scope_id,
                period,
                len(assembly.by_store),
            )
        return assembly


__all__ = ["Clock", "ScorecardService", "gather_or_cancel", "local_today"]
