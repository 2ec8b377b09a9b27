from __future__ import annotations

from decimal import Decimal

import pytest

from scorecard_portal.engine.aggregator import aggregate, ceil_percent, coerce_number, evaluate_formula
from scorecard_portal.engine.registry import DEFAULT_REGISTRY, Formula


def test_rollup_percentage_is_recomputed_from_summed_totals(make_snapshot):
    store_a = make_snapshot({"potentialAlignments": 20, "potentialAlignmentsSold": 9}, store_id="store-a")
    store_b = make_snapshot({"potentialAlignments": 5, "potentialAlignmentsSold": 5}, store_id="store-b")

    result = aggregate([store_a, store_b])

    assert result.values["potentialAlignments"] == 25
    assert result.values["potentialAlignmentsSold"] == 14
    # Average of 45% and 100% would be 72.5
    assert result.values["potentialAlignmentsPercent"] == 56


def test_percentage_is_ceiling_and_zero_denominator_yields_zero(make_snapshot):
    result = aggregate([make_snapshot({"sales": "1000", "gpSales": "451.20", "retailTires": 0, "tireProtection": 3})])

    assert result.core.gp_percent == 46
    assert result.values["tireProtectionPercent"] == 0


def test_additive_fields_sum_and_read_aliases(make_snapshot):
    first = make_snapshot({"Invoices": 10, "Sales": "$1,250.50", "GP $": 500})
    second = make_snapshot({"invoices": 5, "sales": 749.5, "gpDollars": "250"}, store_id="store-b")

    result = aggregate([first, second])

    assert result.core.invoices == 15
    assert result.core.sales == Decimal("2000.00")
    assert result.core.gp_sales == 750
    assert result.snapshot_count == 2


def test_calculated_fields_use_aggregated_totals(make_snapshot):
    result = aggregate([make_snapshot({"invoices": 3, "sales": 1000, "gpSales": 400})])

    assert result.values["avgSpend"] == Decimal("333.33")
    assert result.values["gpPerInvoice"] == Decimal("133.33")


def test_calculated_fields_are_zero_without_invoices(make_snapshot):
    result = aggregate([make_snapshot({"sales": 1000})])

    assert result.values["avgSpend"] == 0


def test_nested_alias_group_values_are_summed(make_snapshot):
    first = make_snapshot({"otherServices": {"TPMS": 3, "Nitrogen": "2"}})
    second = make_snapshot({"otherServices": {"tpms": 4}}, store_id="store-b")

    result = aggregate([first, second])

    assert result.values["tpms"] == 7
    assert result.values["nitrogen"] == 2


def test_direct_key_wins_over_nested_alias(make_snapshot):
    result = aggregate([make_snapshot({"tpms": 2, "otherServices": {"tpms": 5}})])

    assert result.values["tpms"] == 2


def test_malformed_value_counts_as_zero_and_is_reported(make_snapshot):
    snapshot = make_snapshot({"invoices": 10, "sales": "n/a", "oilChange": 4})

    result = aggregate([snapshot])

    assert result.core.sales == 0
    assert result.core.invoices == 10
    assert result.values["oilChange"] == 4
    assert len(result.diagnostics) == 1
    diagnostic = result.diagnostics[0]
    assert diagnostic.snapshot_id == snapshot.snapshot_id
    assert diagnostic.field == "sales"
    assert diagnostic.raw_value == "n/a"


def test_unregistered_numeric_fields_are_kept_as_extras(make_snapshot):
    first = make_snapshot({"Wheel Locks": 4, "storeName": "Main St", "Notes": "busy week", "Close Rate %": 40})
    second = make_snapshot({"wheel locks": "3"}, store_id="store-b")

    result = aggregate([first, second])

    assert result.extras == {"Wheel Locks": Decimal("7")}
    assert result.lookup("wheelLocks") == 7
    assert result.lookup("unknownThing") is None


def test_empty_selection_is_all_zero():
    result = aggregate([])

    assert result.snapshot_count == 0
    assert result.core.sales == 0
    assert all(value == 0 for value in result.values.values())


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, Decimal("0")),
        ("", Decimal("0")),
        ("  ", Decimal("0")),
        ("$1,234.50", Decimal("1234.50")),
        ("45%", Decimal("45")),
        (7, Decimal("7")),
        (2.5, Decimal("2.5")),
    ],
)
def test_coerce_number_accepts_spreadsheet_values(raw, expected):
    assert coerce_number(raw) == expected


@pytest.mark.parametrize("raw", ["abc", True, float("nan"), "Infinity", ["1"]])
def test_coerce_number_rejects_non_numbers(raw):
    with pytest.raises(ValueError):
        coerce_number(raw)


def test_ceil_percent_rounds_up():
    assert ceil_percent(Decimal("1"), Decimal("3")) == 34
    assert ceil_percent(Decimal("2"), Decimal("4")) == 50
    assert ceil_percent(Decimal("5"), Decimal("0")) == 0


def test_evaluate_formula_operations():
    values = {"a": Decimal("10"), "b": Decimal("4")}

    assert evaluate_formula(Formula("sum", ("a", "b")), values) == Decimal("14.00")
    assert evaluate_formula(Formula("difference", ("a", "b")), values) == Decimal("6.00")
    assert evaluate_formula(Formula("ratio", ("a", "b"), places=1), values) == Decimal("2.5")
    with pytest.raises(ValueError):
        evaluate_formula(Formula("product", ("a", "b")), values)


def test_percentage_header_before_currency_header_is_not_read(make_snapshot):
    result = aggregate([make_snapshot({"Sales": 10000, "GP %": "45%", "GP $": 4500})])

    assert result.core.gp_sales == 4500
    assert result.core.gp_percent == 45


def test_percentage_header_before_count_header_is_not_read(make_snapshot):
    snapshot = make_snapshot({"Retail Tires": 10, "Tire Protection %": "30%", "Tire Protection": 3})

    result = aggregate([snapshot])

    assert result.values["tireProtection"] == 3
    assert result.values["tireProtectionPercent"] == 30
    assert result.extras == {}


def test_nested_percentage_header_is_not_read(make_snapshot):
    result = aggregate([make_snapshot({"otherServices": {"TPMS %": "80%", "TPMS": 4}})])

    assert result.values["tpms"] == 4


def test_extra_present_at_top_level_and_nested_counts_once(make_snapshot):
    result = aggregate([make_snapshot({"Wheel Locks": 2, "otherServices": {"Wheel Locks": 2}})])

    assert result.extras == {"Wheel Locks": Decimal("2")}


def test_additive_aggregation_is_commutative_and_associative(make_snapshot):
    a = make_snapshot({"sales": 4000, "invoices": 20, "otherServices": {"tpms": 2}, "Wheel Locks": 1}, store_id="store-a")
    b = make_snapshot({"sales": "7,000", "invoices": 30, "tpms": 5}, store_id="store-b")
    c = make_snapshot({"sales": 250.5, "oilChange": 3, "otherServices": {"nitrogen": 6}}, store_id="store-c")

    assert aggregate([a, b]).values == aggregate([b, a]).values
    assert aggregate([a, b, c]).values == aggregate([c, a, b]).values

    whole = aggregate([a, b, c])
    left = aggregate([a])
    right = aggregate([b, c])
    for item in DEFAULT_REGISTRY.additive():
        assert whole.values[item.key] == left.values[item.key] + right.values[item.key]
    assert whole.values["tpms"] == 7
    assert whole.values["nitrogen"] == 6
    assert whole.extras["Wheel Locks"] == left.extras["Wheel Locks"]
