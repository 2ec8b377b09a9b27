"""Additive summation and percentage recomputation across snapshots.

Percentages are never summed or averaged. For every percentage field the
numerator and denominator are summed over all snapshots first, then
``ceil(100 * numerator / denominator)`` is taken, ``0`` when the denominator
is zero. Ceiling (not half-up) is the reporting policy for every attainment
percentage, including the headline GP percent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Any, Iterable, Mapping

from .errors import MalformedField
from .models import CoreMetrics, PerformanceSnapshot
from .registry import DEFAULT_REGISTRY, CanonicalField, FieldRegistry, Formula, compact_key

getcontext().prec = 28

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Descriptive columns that ride along in raw uploads and are never metrics.
METADATA_FIELDS = frozenset(
    compact_key(name)
    for name in (
        "id",
        "storeId",
        "storeName",
        "store",
        "market",
        "marketId",
        "employee",
        "employeeName",
        "advisorName",
        "dataLevel",
        "reportType",
    )
)


class _Unparseable(ValueError):
    pass


def coerce_number(value: Any) -> Decimal:
    """Convert a raw cell to ``Decimal``.

    Missing cells (``None`` or blank strings) are zero. Currency symbols,
    thousands separators and percent signs are stripped from strings.
    Anything else that is not a finite number raises ``ValueError``.
    """

    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise _Unparseable(value)
    if isinstance(value, (int, Decimal)):
        number = Decimal(value)
    elif isinstance(value, float):
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace("$", "").replace(",", "").replace("%", "").strip()
        if not text:
            return ZERO
        try:
            number = Decimal(text)
        except InvalidOperation as exc:
            raise _Unparseable(value) from exc
    else:
        raise _Unparseable(value)
    if not number.is_finite():
        raise _Unparseable(value)
    return number


def ceil_percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        return ZERO
    return (HUNDRED * numerator / denominator).to_integral_value(rounding=ROUND_CEILING)


def evaluate_formula(formula: Formula, values: Mapping[str, Decimal]) -> Decimal:
    operands = [values.get(key, ZERO) for key in formula.operands]
    if formula.op == "ratio":
        numerator, denominator = operands
        if denominator == 0:
            return ZERO
        result = numerator / denominator
    elif formula.op == "sum":
        result = sum(operands, ZERO)
    elif formula.op == "difference":
        result = operands[0]
        for operand in operands[1:]:
            result -= operand
    else:
        raise ValueError(f"Unsupported formula operation {formula.op!r}")
    quantum = Decimal(1).scaleb(-formula.places)
    return result.quantize(quantum, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class AggregateResult:
    """Canonical key → value for one set of snapshots."""

    values: dict[str, Decimal]
    extras: dict[str, Decimal] = field(default_factory=dict)
    snapshot_count: int = 0
    diagnostics: tuple[MalformedField, ...] = ()

    @property
    def core(self) -> CoreMetrics:
        return CoreMetrics(
            invoices=self.values.get("invoices", ZERO),
            sales=self.values.get("sales", ZERO),
            gp_sales=self.values.get("gpSales", ZERO),
            gp_percent=self.values.get("gpPercent", ZERO),
        )

    def lookup(self, key: str) -> Decimal | None:
        """Registered value, else an unregistered extra matched loosely."""

        if key in self.values:
            return self.values[key]
        wanted = compact_key(key)
        for name, value in self.extras.items():
            if compact_key(name) == wanted:
                return value
        return None


class _SnapshotReader:
    """Compact-key index over one snapshot's top-level and nested fields."""

    def __init__(self, snapshot: PerformanceSnapshot, diagnostics: list[MalformedField]):
        self.snapshot = snapshot
        self.diagnostics = diagnostics
        self.top: dict[str, tuple[str, Any]] = {}
        self.groups: dict[str, dict[str, tuple[str, Any]]] = {}
        # "GP %" and "GP $" compact to the same key; percentage columns are never read.
        for name, value in snapshot.raw_fields.items():
            if isinstance(value, Mapping):
                nested = self.groups.setdefault(compact_key(name), {})
                for inner_name, inner_value in value.items():
                    if "%" in inner_name:
                        continue
                    nested.setdefault(compact_key(inner_name), (f"{name}.{inner_name}", inner_value))
            elif "%" not in name:
                self.top.setdefault(compact_key(name), (name, value))

    def _coerce(self, path: str, value: Any) -> Decimal:
        try:
            return coerce_number(value)
        except ValueError:
            self.diagnostics.append(MalformedField(self.snapshot.snapshot_id, path, value))
            return ZERO

    def read(self, item: CanonicalField) -> Decimal:
        names = [compact_key(name) for name in item.source_names()]
        for name in names:
            if name in self.top:
                return self._coerce(*self.top[name])
        for group in item.alias_groups:
            nested = self.groups.get(compact_key(group), {})
            for name in names:
                if name in nested:
                    return self._coerce(*nested[name])
        return ZERO

    def extras(self, known: set[str]) -> list[tuple[str, Decimal]]:
        found: list[tuple[str, Decimal]] = []
        entries = list(self.top.items())
        for nested in self.groups.values():
            entries.extend(item for item in nested.items() if item[0] not in self.top)
        for compact, (path, value) in entries:
            if compact in known or compact in METADATA_FIELDS or "percent" in compact:
                continue
            label = path.split(".", 1)[-1]
            try:
                found.append((label, coerce_number(value)))
            except ValueError:
                # Non-numeric extras are descriptive text, not metrics.
                continue
        return found


def aggregate(
    snapshots: Iterable[PerformanceSnapshot],
    registry: FieldRegistry = DEFAULT_REGISTRY,
) -> AggregateResult:
    """Aggregate selected snapshots into canonical values.

    Additive fields are summed field by field, including values stored under
    nested alias groups. Percentage fields are recomputed from the summed
    numerator and denominator. Calculated fields are evaluated last, over the
    aggregated totals. A malformed raw value counts as zero and is reported in
    ``diagnostics``; it never aborts the snapshot or its sibling fields.
    """

    additive = registry.additive()
    totals: dict[str, Decimal] = {item.key: ZERO for item in additive}
    extras: dict[str, Decimal] = {}
    extra_labels: dict[str, str] = {}
    diagnostics: list[MalformedField] = []
    known = registry.known_source_names()
    count = 0

    for snapshot in snapshots:
        count += 1
        reader = _SnapshotReader(snapshot, diagnostics)
        for item in additive:
            totals[item.key] += reader.read(item)
        for label, value in reader.extras(known):
            compact = compact_key(label)
            label = extra_labels.setdefault(compact, label)
            extras[label] = extras.get(label, ZERO) + value

    values = dict(totals)
    for item in registry.percentages():
        values[item.key] = ceil_percent(values[item.numerator_key], values[item.denominator_key])
    for item in registry.calculated():
        if item.formula is not None:
            values[item.key] = evaluate_formula(item.formula, values)

    return AggregateResult(
        values=values,
        extras=dict(sorted(extras.items())),
        snapshot_count=count,
        diagnostics=tuple(diagnostics),
    )


__all__ = [
    "AggregateResult",
    "HUNDRED",
    "ZERO",
    "aggregate",
    "ceil_percent",
    "coerce_number",
    "evaluate_formula",
]
