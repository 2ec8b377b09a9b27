"""Resolve the effective template into ordered, labeled field values."""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Mapping

from .aggregator import ZERO, AggregateResult, evaluate_formula
from .branding import BrandOverlay
from .models import (
    AttachedGoal,
    ResolvedCategory,
    ResolvedField,
    Template,
    TemplateCategory,
    TemplateField,
)
from .registry import DEFAULT_REGISTRY, CanonicalField, FieldRegistry, compact_key

ACRONYMS = frozenset({"gp", "ac", "tpms", "ro", "mtd", "cv"})

_SEPARATORS = re.compile(r"[\s_\-.]+")
_WORDS = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


def humanize_key(key: str) -> str:
    """Readable label from a canonical key.

    >>> humanize_key("gpSales")
    'GP Sales'
    >>> humanize_key("tpms_check")
    'TPMS Check'
    """

    words: list[str] = []
    for chunk in _SEPARATORS.split(key):
        words.extend(_WORDS.findall(chunk))
    return " ".join(
        word.upper() if word.lower() in ACRONYMS else word[:1].upper() + word[1:].lower()
        for word in words
    )


def _field_order(item: TemplateField) -> tuple[int, str]:
    return (item.display_order, item.label or item.canonical_key)


def _category_order(item: TemplateCategory) -> tuple[int, str]:
    return (item.display_order, item.name)


class FieldResolver:
    """Apply a template to aggregated values.

    Label priority: vendor brand, template override, registry default, then a
    label humanized from the key. Disabled categories and fields are left out
    entirely; enabled fields are kept even when their value is zero.
    """

    def __init__(
        self,
        template: Template,
        registry: FieldRegistry = DEFAULT_REGISTRY,
        overlay: BrandOverlay | None = None,
    ):
        self.template = template
        self.registry = registry
        self.overlay = overlay

    def enabled_fields(self) -> list[tuple[TemplateCategory, list[TemplateField]]]:
        layout = []
        for category in sorted(self.template.categories, key=_category_order):
            if not category.enabled:
                continue
            fields = sorted((item for item in category.fields if item.enabled), key=_field_order)
            if fields:
                layout.append((category, fields))
        return layout

    def canonical(self, item: TemplateField) -> CanonicalField | None:
        return self.registry.get(item.canonical_key)

    def resolve_label(self, item: TemplateField) -> str:
        canonical = self.canonical(item)
        key = canonical.key if canonical else item.canonical_key
        default_label = canonical.label if canonical else None
        if self.overlay:
            branded = self.overlay.branded_name(key, default_label, item.canonical_key)
            if branded:
                return branded
        return item.label or default_label or humanize_key(item.canonical_key)

    def resolve_value(self, item: TemplateField, aggregate: AggregateResult) -> Decimal:
        canonical = self.canonical(item)
        if canonical is not None:
            if canonical.key in aggregate.values:
                return aggregate.values[canonical.key]
            if canonical.formula is not None:
                return evaluate_formula(canonical.formula, aggregate.values)
        found = aggregate.lookup(item.canonical_key)
        return ZERO if found is None else found

    def resolve(
        self,
        aggregate: AggregateResult,
        goals: Mapping[str, AttachedGoal] | None = None,
    ) -> tuple[ResolvedCategory, ...]:
        goal_index = {compact_key(key): goal for key, goal in (goals or {}).items()}
        categories = []
        for category, fields in self.enabled_fields():
            resolved = []
            for item in fields:
                canonical = self.canonical(item)
                key = canonical.key if canonical else item.canonical_key
                goal = None
                if item.show_goal:
                    goal = goal_index.get(compact_key(key)) or goal_index.get(compact_key(item.canonical_key))
                resolved.append(
                    ResolvedField(
                        key=key,
                        label=self.resolve_label(item),
                        value=self.resolve_value(item, aggregate),
                        format=item.format or (canonical.format if canonical else "number"),
                        show_goal=item.show_goal,
                        goal=goal,
                    )
                )
            categories.append(
                ResolvedCategory(
                    name=category.name,
                    fields=tuple(resolved),
                    icon=category.icon,
                    color=category.color,
                )
            )
        return tuple(categories)


__all__ = ["ACRONYMS", "FieldResolver", "humanize_key"]
