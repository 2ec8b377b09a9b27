from __future__ import annotations

from datetime import date
from decimal import Decimal

from scorecard_portal.engine.models import ResolvedCategory, ResolvedField, ScopeType
from scorecard_portal.engine.registry import default_template
from scorecard_portal.engine.scorecard import assemble, services_map


def _field(key: str, label: str, value: int) -> ResolvedField:
    return ResolvedField(key=key, label=label, value=Decimal(value), format="number")


def test_services_map_skips_core_metrics_and_keeps_first_duplicate():
    categories = [
        ResolvedCategory("Core", (_field("sales", "Sales", 100), _field("gpPercent", "GP %", 40))),
        ResolvedCategory("Oil", (_field("premiumOilChange", "MOA® Service", 3), _field("tpms", "TPMS", 1))),
        ResolvedCategory("Other", (_field("engineFlush", "MOA® Service", 9),)),
    ]

    assert services_map(categories) == {"MOA® Service": Decimal("3"), "TPMS": Decimal("1")}


def test_assemble_store_scope_with_no_data(august):
    assembly = assemble(
        ScopeType.STORE,
        "store-a",
        august,
        [],
        default_template(),
        [],
        [],
        date(2024, 8, 20),
    )

    assert assembly.by_store == ()
    assert assembly.diagnostics == ()
    assert assembly.scorecard.store_id == "store-a"
    assert assembly.scorecard.metrics.invoices == 0
    assert assembly.as_rollup().rollup is assembly.scorecard


def test_assemble_ignores_snapshots_for_other_scopes(make_snapshot, august):
    snapshots = [
        make_snapshot({"sales": 100}, scope_id="adv-1"),
        make_snapshot({"sales": 999}, scope_id="adv-2"),
    ]

    assembly = assemble(
        ScopeType.ADVISOR,
        "adv-1",
        august,
        snapshots,
        default_template(),
        [],
        [],
        date(2024, 8, 20),
        include_breakdown=True,
    )

    assert assembly.scorecard.metrics.sales == 100
    assert assembly.scorecard.store_breakdown is None
