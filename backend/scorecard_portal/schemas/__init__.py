"""Pydantic schema exports."""

from .scorecard import (
    CanonicalFieldSchema,
    CoreMetricsSchema,
    GoalSchema,
    ScorecardCategorySchema,
    ScorecardFieldSchema,
    ScorecardSchema,
    StoreRollupSchema,
)

__all__ = [
    "CanonicalFieldSchema",
    "CoreMetricsSchema",
    "GoalSchema",
    "ScorecardCategorySchema",
    "ScorecardFieldSchema",
    "ScorecardSchema",
    "StoreRollupSchema",
]
