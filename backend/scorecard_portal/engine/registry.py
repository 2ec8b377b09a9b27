"""Canonical-field registry shared by every scorecard scope.

The registry is static configuration: one entry per metric the portal knows
about, independent of spreadsheet header text and of display labels. Each
entry says how the metric is derived from raw snapshot fields and how it
aggregates (additive vs. percentage vs. calculated).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator

from .models import Template, TemplateCategory, TemplateField


class ValueKind(str, Enum):
    COUNT = "count"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"


class Derivation(str, Enum):
    DIRECT = "direct"
    NESTED_ALIAS = "nested-alias"
    CALCULATED = "calculated"


@dataclass(frozen=True)
class Formula:
    """Arithmetic over other resolved values.

    ``ratio`` divides the first operand by the second; ``sum`` and
    ``difference`` fold the operands left to right.
    """

    op: str
    operands: tuple[str, ...]
    places: int = 2


@dataclass(frozen=True)
class CanonicalField:
    key: str
    label: str
    value_kind: ValueKind
    derivation: Derivation = Derivation.DIRECT
    category: str = "Services"
    aliases: tuple[str, ...] = ()
    alias_groups: tuple[str, ...] = ()
    numerator_key: str | None = None
    denominator_key: str | None = None
    formula: Formula | None = None
    description: str | None = None

    @property
    def is_percentage(self) -> bool:
        return self.value_kind is ValueKind.PERCENTAGE

    @property
    def is_additive(self) -> bool:
        return not self.is_percentage and self.derivation is not Derivation.CALCULATED

    @property
    def format(self) -> str:
        if self.value_kind is ValueKind.COUNT:
            return "number"
        return self.value_kind.value

    def source_names(self) -> tuple[str, ...]:
        """Raw field names this metric may be stored under, in priority order."""

        names = [self.key, *self.aliases, self.label]
        seen: list[str] = []
        for name in names:
            if name not in seen:
                seen.append(name)
        return tuple(seen)


def compact_key(value: str) -> str:
    """Lowercase ``value`` and drop everything but letters and digits."""

    return re.sub(r"[^0-9a-z]", "", value.lower())


CORE_METRIC_KEYS = ("invoices", "sales", "gpSales", "gpPercent")
NESTED_GROUPS = ("otherServices",)


class FieldRegistry:
    """Ordered, immutable collection of canonical fields."""

    def __init__(self, fields: Iterable[CanonicalField]):
        self._fields: dict[str, CanonicalField] = {}
        self._compact: dict[str, str] = {}
        for item in fields:
            if item.key in self._fields:
                raise ValueError(f"Duplicate canonical field {item.key!r}")
            self._fields[item.key] = item
            self._compact.setdefault(compact_key(item.key), item.key)
        for item in self._fields.values():
            if item.is_percentage:
                for ref in (item.numerator_key, item.denominator_key):
                    target = self._fields.get(ref) if ref else None
                    if target is None or not target.is_additive:
                        raise ValueError(f"Percentage {item.key!r} needs an additive field, got {ref!r}")
            if item.formula is not None:
                missing = [ref for ref in item.formula.operands if ref not in self._fields]
                if missing:
                    raise ValueError(f"Formula for {item.key!r} references unknown fields {missing}")

    def __iter__(self) -> Iterator[CanonicalField]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def get(self, key: str) -> CanonicalField | None:
        """Look a field up by exact key, falling back to its compact form.

        Template editors store keys as ``premiumoilchange``; the registry
        stores ``premiumOilChange``. Both resolve to the same field.
        """

        found = self._fields.get(key)
        if found is not None:
            return found
        canonical = self._compact.get(compact_key(key))
        return self._fields.get(canonical) if canonical else None

    def additive(self) -> list[CanonicalField]:
        return [item for item in self if item.is_additive]

    def percentages(self) -> list[CanonicalField]:
        return [item for item in self if item.is_percentage]

    def calculated(self) -> list[CanonicalField]:
        return [item for item in self if item.derivation is Derivation.CALCULATED and not item.is_percentage]

    def known_source_names(self) -> set[str]:
        names: set[str] = set()
        for item in self:
            names.update(compact_key(name) for name in item.source_names())
        return names

    def categories(self) -> list[str]:
        ordered: list[str] = []
        for item in self:
            if item.category not in ordered:
                ordered.append(item.category)
        return ordered


def _count(key: str, label: str, category: str, *aliases: str, nested: bool = False) -> CanonicalField:
    return CanonicalField(
        key=key,
        label=label,
        value_kind=ValueKind.COUNT,
        derivation=Derivation.NESTED_ALIAS if nested else Derivation.DIRECT,
        category=category,
        aliases=aliases,
        alias_groups=NESTED_GROUPS,
    )


def _percent(key: str, label: str, category: str, numerator: str, denominator: str) -> CanonicalField:
    return CanonicalField(
        key=key,
        label=label,
        value_kind=ValueKind.PERCENTAGE,
        derivation=Derivation.CALCULATED,
        category=category,
        numerator_key=numerator,
        denominator_key=denominator,
    )


_CORE = "Core Metrics"
_TIRES = "Tires & Alignment"
_FLUIDS = "Oil & Fluid Services"
_BRAKES = "Brake & Suspension"
_ENGINE = "Engine & Performance"
_CLIMATE = "Climate & Electrical"
_MAINTENANCE = "Maintenance & Inspection"

DEFAULT_FIELDS: tuple[CanonicalField, ...] = (
    CanonicalField("invoices", "Invoices", ValueKind.COUNT, category=_CORE, aliases=("Invoices",)),
    CanonicalField("sales", "Sales", ValueKind.CURRENCY, category=_CORE, aliases=("Sales",)),
    CanonicalField(
        "gpSales",
        "GP Sales",
        ValueKind.CURRENCY,
        category=_CORE,
        aliases=("gpDollars", "GP $"),
    ),
    _percent("gpPercent", "GP Percent", _CORE, "gpSales", "sales"),
    CanonicalField(
        "avgSpend",
        "Avg. Spend",
        ValueKind.CURRENCY,
        derivation=Derivation.CALCULATED,
        category=_CORE,
        formula=Formula("ratio", ("sales", "invoices")),
    ),
    CanonicalField(
        "gpPerInvoice",
        "GP per Invoice",
        ValueKind.CURRENCY,
        derivation=Derivation.CALCULATED,
        category=_CORE,
        formula=Formula("ratio", ("gpSales", "invoices")),
    ),
    _count("allTires", "All Tires", _TIRES),
    _count("retailTires", "Retail Tires", _TIRES),
    _count("tireProtection", "Tire Protection", _TIRES),
    _percent("tireProtectionPercent", "Tire Protection %", _TIRES, "tireProtection", "retailTires"),
    _count("potentialAlignments", "Potential Alignments", _TIRES),
    _count("potentialAlignmentsSold", "Potential Alignments Sold", _TIRES),
    _percent(
        "potentialAlignmentsPercent",
        "Potential Alignments %",
        _TIRES,
        "potentialAlignmentsSold",
        "potentialAlignments",
    ),
    _count("alignments", "Alignments", _TIRES, "alignmentService"),
    _count("alignmentCheck", "Alignment Check", _TIRES),
    _count("premiumAlignments", "Premium Alignments", _TIRES, nested=True),
    _count("tireBalance", "Tire Balance", _TIRES, nested=True),
    _count("tireRotation", "Tire Rotation", _TIRES, nested=True),
    _count("tpms", "TPMS", _TIRES, nested=True),
    _count("nitrogen", "Nitrogen", _TIRES, nested=True),
    _count("oilChange", "Oil Change", _FLUIDS),
    _count("premiumOilChange", "Premium Oil Change", _FLUIDS),
    _count("syntheticBlendOilChange", "Synthetic Blend Oil Change", _FLUIDS, nested=True),
    _count("syntheticOilChange", "Synthetic Oil Change", _FLUIDS, nested=True),
    _count("engineFlush", "Engine Flush", _FLUIDS),
    _count("coolantFlush", "Coolant Flush", _FLUIDS),
    _count("brakeFlush", "Brake Flush", _FLUIDS),
    _percent("brakeFlushToServicePercent", "Brake Flush to Service %", _FLUIDS, "brakeFlush", "brakeService"),
    _count("differentialService", "Differential Service", _FLUIDS),
    _count("fuelSystemService", "Fuel System Service", _FLUIDS),
    _count("powerSteeringFlush", "Power Steering Flush", _FLUIDS),
    _count("transmissionFluidService", "Transmission Fluid Service", _FLUIDS),
    _count("transferCaseService", "Transfer Case Service", _FLUIDS, nested=True),
    _count("brakeService", "Brake Service", _BRAKES),
    _count("shocksStruts", "Shocks & Struts", _BRAKES),
    _count("engineAirFilter", "Engine Air Filter", _ENGINE),
    _count("filters", "Filters", _ENGINE),
    _count("fuelAdditive", "Fuel Additive", _ENGINE),
    _count("fuelFilter", "Fuel Filter", _ENGINE, nested=True),
    _count("sparkPlugReplacement", "Spark Plug Replacement", _ENGINE, nested=True),
    _count("timingBelt", "Timing Belt", _ENGINE, nested=True),
    _count("enginePerformanceService", "Engine Performance Service", _ENGINE, nested=True),
    _count("beltsReplacement", "Belts Replacement", _ENGINE, nested=True),
    _count("hoseReplacement", "Hose Replacement", _ENGINE, nested=True),
    _count("acService", "AC Service", _CLIMATE),
    _count("climateControlService", "Climate Control Service", _CLIMATE, nested=True),
    _count("battery", "Battery", _CLIMATE),
    _count("batteryService", "Battery Service", _CLIMATE, nested=True),
    _count("cabinAirFilter", "Cabin Air Filter", _CLIMATE),
    _count("completeVehicleInspection", "Complete Vehicle Inspection", _MAINTENANCE, nested=True),
    _count("wiperBlades", "Wiper Blades", _MAINTENANCE),
    _count("headlightRestorationService", "Headlight Restoration Service", _MAINTENANCE, nested=True),
)

DEFAULT_REGISTRY = FieldRegistry(DEFAULT_FIELDS)

DEFAULT_TEMPLATE_ID = "builtin-default"


def default_template(registry: FieldRegistry = DEFAULT_REGISTRY) -> Template:
    """Global default template: every registered field, grouped by category."""

    categories = []
    for position, name in enumerate(registry.categories()):
        members = [item for item in registry if item.category == name]
        categories.append(
            TemplateCategory(
                name=name,
                display_order=position,
                fields=tuple(
                    TemplateField(
                        canonical_key=item.key,
                        format=item.format,
                        display_order=index,
                        show_goal=name == _CORE,
                    )
                    for index, item in enumerate(members)
                ),
            )
        )
    return Template(
        template_id=DEFAULT_TEMPLATE_ID,
        name="Default Scorecard",
        categories=tuple(categories),
        is_default=True,
    )


__all__ = [
    "CORE_METRIC_KEYS",
    "CanonicalField",
    "DEFAULT_FIELDS",
    "DEFAULT_REGISTRY",
    "Derivation",
    "FieldRegistry",
    "Formula",
    "ValueKind",
    "compact_key",
    "default_template",
]
