"""Scorecard source backed by the portal database."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from scorecard_portal.engine.errors import CollaboratorUnavailable
from scorecard_portal.engine.models import (
    Goal,
    Period,
    PerformanceSnapshot,
    ScopeInfo,
    ScopeType,
    Template,
    TemplateCategory,
    TemplateField,
    VendorMapping,
)
from scorecard_portal.models import (
    Advisor,
    GoalRecord,
    Market,
    MarketVendorTag,
    PerformanceSnapshotRecord,
    ScorecardTemplateCategoryRecord,
    ScorecardTemplateRecord,
    Store,
    VendorProductMapping,
    VendorTag,
)

logger = logging.getLogger(__name__)


def _snapshot_from_row(row: PerformanceSnapshotRecord) -> PerformanceSnapshot:
    return PerformanceSnapshot(
        snapshot_id=str(row.id),
        scope_type=ScopeType(row.scope_type),
        scope_id=row.scope_id,
        period_year=row.period_year,
        period_month=row.period_month,
        uploaded_at=row.uploaded_at,
        raw_fields=dict(row.data or {}),
        store_id=row.store_id,
        market_id=row.market_id,
        sequence=row.id,
    )


def _template_from_row(row: ScorecardTemplateRecord) -> Template:
    categories = []
    for category in row.categories:
        fields = tuple(
            TemplateField(
                canonical_key=field.field_key,
                label=field.field_label,
                format=field.field_format,
                display_order=field.display_order,
                enabled=field.is_enabled,
                show_goal=field.show_goal,
            )
            for field in category.fields
        )
        categories.append(
            TemplateCategory(
                name=category.category_name,
                fields=fields,
                display_order=category.display_order,
                enabled=category.is_enabled,
                icon=category.category_icon,
                color=category.category_color,
            )
        )
    return Template(
        template_id=str(row.id),
        name=row.template_name,
        categories=tuple(categories),
        market_id=row.market_id,
        is_default=row.is_default,
    )


class SqlScorecardSource:
    """Read snapshots, templates, vendor mappings and goals with SQLAlchemy.

    Every database failure surfaces as :class:`CollaboratorUnavailable` so the
    API layer can answer 503 without knowing about SQLAlchemy.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("Database query %s failed", operation)
            raise CollaboratorUnavailable(operation, str(exc)) from exc

    async def query_snapshots(
        self, scope_type: ScopeType, scope_id: str, period: Period
    ) -> list[PerformanceSnapshot]:
        stmt = (
            select(PerformanceSnapshotRecord)
            .where(
                PerformanceSnapshotRecord.scope_type == scope_type.value,
                PerformanceSnapshotRecord.scope_id == scope_id,
                PerformanceSnapshotRecord.period_year == period.year,
                PerformanceSnapshotRecord.period_month == period.month,
            )
            .order_by(PerformanceSnapshotRecord.id)
        )
        async with self._session("query_snapshots") as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [_snapshot_from_row(row) for row in rows]

    async def get_effective_template(self, market_id: str | None) -> Template | None:
        """The market's own template, else the global default."""

        base = select(ScorecardTemplateRecord).options(
            selectinload(ScorecardTemplateRecord.categories).selectinload(ScorecardTemplateCategoryRecord.fields)
        )
        async with self._session("get_effective_template") as session:
            row = None
            if market_id is not None:
                stmt = (
                    base.where(ScorecardTemplateRecord.market_id == market_id)
                    .order_by(ScorecardTemplateRecord.is_default.desc(), ScorecardTemplateRecord.id)
                    .limit(1)
                )
                row = (await session.execute(stmt)).scalars().first()
            if row is None:
                stmt = (
                    base.where(
                        ScorecardTemplateRecord.is_default.is_(True),
                        ScorecardTemplateRecord.market_id.is_(None),
                    )
                    .order_by(ScorecardTemplateRecord.id)
                    .limit(1)
                )
                row = (await session.execute(stmt)).scalars().first()
            if row is None:
                return None
            return _template_from_row(row)

    async def get_vendor_mappings(self, market_id: str | None) -> list[VendorMapping]:
        if market_id is None:
            return []
        stmt = (
            select(VendorProductMapping, VendorTag.name)
            .join(VendorTag, VendorTag.id == VendorProductMapping.vendor_id)
            .join(MarketVendorTag, MarketVendorTag.tag_id == VendorTag.id)
            .where(
                MarketVendorTag.market_id == market_id,
                or_(VendorProductMapping.market_id.is_(None), VendorProductMapping.market_id == market_id),
            )
            .order_by(VendorProductMapping.id)
        )
        async with self._session("get_vendor_mappings") as session:
            rows = (await session.execute(stmt)).all()
        return [
            VendorMapping(
                mapping_id=mapping.id,
                vendor_id=mapping.vendor_id,
                service_field=mapping.service_field,
                branded_name=mapping.product_name,
                market_id=mapping.market_id,
                vendor_name=vendor_name,
            )
            for mapping, vendor_name in rows
        ]

    async def get_effective_goals(self, scope_type: ScopeType, scope_id: str) -> list[Goal]:
        stmt = (
            select(GoalRecord)
            .where(GoalRecord.goal_type == scope_type.value, GoalRecord.scope_id == scope_id)
            .order_by(GoalRecord.effective_date, GoalRecord.id)
        )
        async with self._session("get_effective_goals") as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [
            Goal(
                scope_type=scope_type,
                scope_id=row.scope_id,
                metric_key=row.metric_name,
                target_value=row.target_value,
                effective_date=row.effective_date,
                period_type=row.period_type,
            )
            for row in rows
        ]

    async def describe_scope(self, scope_type: ScopeType, scope_id: str) -> ScopeInfo | None:
        """Look the scope up in its directory table, then in upload history."""

        async with self._session("describe_scope") as session:
            if scope_type is ScopeType.ADVISOR:
                advisor = await session.get(Advisor, scope_id)
                if advisor is not None:
                    return ScopeInfo(scope_type, scope_id, advisor.market_id, advisor.display_name)
            elif scope_type is ScopeType.STORE:
                store = await session.get(Store, scope_id)
                if store is not None:
                    return ScopeInfo(scope_type, scope_id, store.market_id, store.name)
            else:
                market = await session.get(Market, scope_id)
                if market is not None:
                    return ScopeInfo(scope_type, scope_id, market.id, market.name)

            stmt = (
                select(PerformanceSnapshotRecord.market_id)
                .where(
                    PerformanceSnapshotRecord.scope_type == scope_type.value,
                    PerformanceSnapshotRecord.scope_id == scope_id,
                )
                .order_by(PerformanceSnapshotRecord.id.desc())
                .limit(1)
            )
            history = (await session.execute(stmt)).first()
        if history is None:
            return None
        return ScopeInfo(scope_type, scope_id, history.market_id)


__all__ = ["SqlScorecardSource"]
