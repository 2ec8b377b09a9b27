"""Scorecard aggregation engine."""

from .aggregator import AggregateResult, aggregate, ceil_percent, coerce_number
from .branding import BrandOverlay
from .errors import CollaboratorUnavailable, MalformedField, ScopeNotFound, ScorecardError
from .fields import FieldResolver, humanize_key
from .goals import attach_goals, effective_goal
from .models import (
    AggregatedScorecard,
    AttachedGoal,
    CoreMetrics,
    Goal,
    Period,
    PerformanceSnapshot,
    ResolvedCategory,
    ResolvedField,
    ScopeInfo,
    ScopeType,
    StoreRollup,
    Template,
    TemplateCategory,
    TemplateField,
    VendorMapping,
)
from .registry import DEFAULT_REGISTRY, CanonicalField, FieldRegistry, default_template
from .rollup import roll_up
from .scorecard import Assembly, assemble
from .selector import select_snapshots

__all__ = [
    "AggregateResult",
    "AggregatedScorecard",
    "Assembly",
    "AttachedGoal",
    "BrandOverlay",
    "CanonicalField",
    "CollaboratorUnavailable",
    "CoreMetrics",
    "DEFAULT_REGISTRY",
    "FieldRegistry",
    "FieldResolver",
    "Goal",
    "MalformedField",
    "Period",
    "PerformanceSnapshot",
    "ResolvedCategory",
    "ResolvedField",
    "ScopeInfo",
    "ScopeNotFound",
    "ScopeType",
    "ScorecardError",
    "StoreRollup",
    "Template",
    "TemplateCategory",
    "TemplateField",
    "VendorMapping",
    "aggregate",
    "assemble",
    "attach_goals",
    "ceil_percent",
    "coerce_number",
    "default_template",
    "effective_goal",
    "humanize_key",
    "roll_up",
    "select_snapshots",
]
