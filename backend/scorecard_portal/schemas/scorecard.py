"""Pydantic schemas for scorecard responses.

The engine works in :class:`~decimal.Decimal`; numbers become floats here and
field names become camelCase on the wire.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from scorecard_portal.engine.models import (
    AggregatedScorecard,
    AttachedGoal,
    CoreMetrics,
    ResolvedCategory,
    ResolvedField,
    ScopeType,
    StoreRollup,
)
from scorecard_portal.engine.registry import CanonicalField


def _number(value: Decimal) -> float:
    return float(value)


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class GoalSchema(CamelModel):
    target: float
    period_type: str = Field(..., examples=["monthly"])
    effective_date: date

    @classmethod
    def from_goal(cls, goal: AttachedGoal) -> "GoalSchema":
        return cls(target=_number(goal.target), period_type=goal.period_type, effective_date=goal.effective_date)


class CoreMetricsSchema(CamelModel):
    invoices: float
    sales: float
    gp_sales: float
    gp_percent: float

    @classmethod
    def from_metrics(cls, metrics: CoreMetrics) -> "CoreMetricsSchema":
        return cls(
            invoices=_number(metrics.invoices),
            sales=_number(metrics.sales),
            gp_sales=_number(metrics.gp_sales),
            gp_percent=_number(metrics.gp_percent),
        )


class ScorecardFieldSchema(CamelModel):
    key: str
    label: str
    value: float
    format: str = Field(..., examples=["number", "currency", "percentage"])
    show_goal: bool = False
    goal: GoalSchema | None = None

    @classmethod
    def from_field(cls, field: ResolvedField) -> "ScorecardFieldSchema":
        return cls(
            key=field.key,
            label=field.label,
            value=_number(field.value),
            format=field.format,
            show_goal=field.show_goal,
            goal=GoalSchema.from_goal(field.goal) if field.goal else None,
        )


class ScorecardCategorySchema(CamelModel):
    name: str
    icon: str | None = None
    color: str | None = None
    fields: list[ScorecardFieldSchema]

    @classmethod
    def from_category(cls, category: ResolvedCategory) -> "ScorecardCategorySchema":
        return cls(
            name=category.name,
            icon=category.icon,
            color=category.color,
            fields=[ScorecardFieldSchema.from_field(item) for item in category.fields],
        )


class ScorecardSchema(CamelModel):
    """One scope's scorecard for a month."""

    scope_type: ScopeType
    scope_id: str
    store_id: str | None = None
    period: str = Field(..., examples=["2024-08"])
    last_updated: datetime | None = None
    metrics: CoreMetricsSchema
    services: dict[str, float]
    goals: dict[str, GoalSchema]
    categories: list[ScorecardCategorySchema]
    store_breakdown: list["ScorecardSchema"] | None = None

    @classmethod
    def from_scorecard(cls, scorecard: AggregatedScorecard) -> "ScorecardSchema":
        breakdown = None
        if scorecard.store_breakdown is not None:
            breakdown = [cls.from_scorecard(entry) for entry in scorecard.store_breakdown]
        return cls(
            scope_type=scorecard.scope_type,
            scope_id=scorecard.scope_id,
            store_id=scorecard.store_id,
            period=str(scorecard.period),
            last_updated=scorecard.last_updated,
            metrics=CoreMetricsSchema.from_metrics(scorecard.metrics),
            services={name: _number(value) for name, value in scorecard.services.items()},
            goals={key: GoalSchema.from_goal(goal) for key, goal in scorecard.goals.items()},
            categories=[ScorecardCategorySchema.from_category(item) for item in scorecard.categories],
            store_breakdown=breakdown,
        )


class StoreRollupSchema(CamelModel):
    rollup: ScorecardSchema
    by_store: list[ScorecardSchema]

    @classmethod
    def from_rollup(cls, result: StoreRollup) -> "StoreRollupSchema":
        return cls(
            rollup=ScorecardSchema.from_scorecard(result.rollup),
            by_store=[ScorecardSchema.from_scorecard(entry) for entry in result.by_store],
        )


class CanonicalFieldSchema(CamelModel):
    """Registry entry offered to template editors."""

    key: str
    label: str
    category: str
    value_kind: str
    derivation: str
    format: str
    aliases: list[str] = Field(default_factory=list)
    numerator_key: str | None = None
    denominator_key: str | None = None
    description: str | None = None

    @classmethod
    def from_field(cls, field: CanonicalField) -> "CanonicalFieldSchema":
        return cls(
            key=field.key,
            label=field.label,
            category=field.category,
            value_kind=field.value_kind.value,
            derivation=field.derivation.value,
            format=field.format,
            aliases=list(field.aliases),
            numerator_key=field.numerator_key,
            denominator_key=field.denominator_key,
            description=field.description,
        )


ScorecardSchema.model_rebuild()

__all__ = [
    "CanonicalFieldSchema",
    "CoreMetricsSchema",
    "GoalSchema",
    "ScorecardCategorySchema",
    "ScorecardFieldSchema",
    "ScorecardSchema",
    "StoreRollupSchema",
]
