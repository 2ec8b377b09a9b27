"""Database model exports."""

from .goal import GoalRecord
from .organization import Advisor, Market, Store
from .performance import PerformanceSnapshotRecord
from .scorecard_template import (
    ScorecardTemplateCategoryRecord,
    ScorecardTemplateFieldRecord,
    ScorecardTemplateRecord,
)
from .vendor import MarketVendorTag, VendorProductMapping, VendorTag

__all__ = [
    "Advisor",
    "GoalRecord",
    "Market",
    "MarketVendorTag",
    "PerformanceSnapshotRecord",
    "ScorecardTemplateCategoryRecord",
    "ScorecardTemplateFieldRecord",
    "ScorecardTemplateRecord",
    "Store",
    "VendorProductMapping",
    "VendorTag",
]
