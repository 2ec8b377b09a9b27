from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from decimal import Decimal

import pytest

from scorecard_portal.engine.errors import CollaboratorUnavailable, ScopeNotFound
from scorecard_portal.engine.models import (
    Goal,
    Period,
    ScopeInfo,
    ScopeType,
    Template,
    TemplateCategory,
    TemplateField,
    VendorMapping,
)
from scorecard_portal.services.scorecards import ScorecardService, gather_or_cancel
from scorecard_portal.services.sources import InMemoryScorecardSource

TODAY = date(2024, 8, 20)

MARKET_TEMPLATE = Template(
    template_id="tpl-mkt-1",
    name="Market 1",
    market_id="mkt-1",
    categories=(
        TemplateCategory(
            "Core Metrics",
            fields=(
                TemplateField("sales", display_order=1, show_goal=True),
                TemplateField("invoices", display_order=2),
                TemplateField("gpPercent", display_order=3),
            ),
            display_order=1,
        ),
        TemplateCategory(
            "Services",
            fields=(
                TemplateField("premiumoilchange", label="Premium Oil Change", display_order=1),
                TemplateField("potentialAlignmentsPercent", display_order=2),
                TemplateField("battery", display_order=3),
            ),
            display_order=2,
        ),
    ),
)


def _source(make_snapshot, **overrides) -> InMemoryScorecardSource:
    defaults = dict(
        snapshots=[
            make_snapshot(
                {"sales": 3000, "invoices": 12, "potentialAlignments": 20, "potentialAlignmentsSold": 9},
                store_id="store-a",
                uploaded_at=datetime(2024, 8, 5),
            ),
            make_snapshot(
                {"sales": 4000, "invoices": 15, "premiumOilChange": 3, "potentialAlignments": 20, "potentialAlignmentsSold": 9},
                store_id="store-a",
                uploaded_at=datetime(2024, 8, 9),
            ),
            make_snapshot(
                {"sales": 7000, "invoices": 25, "potentialAlignments": 5, "potentialAlignmentsSold": 5},
                store_id="store-b",
                uploaded_at=datetime(2024, 8, 11),
            ),
        ],
        templates=[MARKET_TEMPLATE],
        vendor_mappings=[VendorMapping(1, "vendor-1", "premiumoilchange", "MOA® Service")],
        market_vendors={"mkt-1": ["vendor-1"]},
        goals=[Goal(ScopeType.ADVISOR, "adv-1", "sales", Decimal("10000"), date(2024, 8, 1))],
        scopes=[ScopeInfo(ScopeType.ADVISOR, "adv-1", "mkt-1", "Pat Lee")],
    )
    defaults.update(overrides)
    return InMemoryScorecardSource(**defaults)


def _service(source) -> ScorecardService:
    return ScorecardService(source, clock=lambda: TODAY)


async def test_advisor_scorecard_rolls_up_stores(make_snapshot, august):
    scorecard = await _service(_source(make_snapshot)).compute_advisor_scorecard("adv-1", august)

    assert scorecard.metrics.sales == 11000
    assert scorecard.metrics.invoices == 40
    assert scorecard.services["Potential Alignments %"] == 56
    assert scorecard.services["MOA® Service"] == 3
    assert scorecard.last_updated == datetime(2024, 8, 11)
    assert scorecard.store_id is None
    assert [entry.store_id for entry in scorecard.store_breakdown] == ["store-a", "store-b"]
    assert [entry.metrics.sales for entry in scorecard.store_breakdown] == [4000, 7000]


async def test_advisor_by_store_reports_each_store_independently(make_snapshot, august):
    result = await _service(_source(make_snapshot)).compute_advisor_scorecard_by_store("adv-1", august)

    assert result.rollup.metrics.sales == 11000
    assert result.rollup.store_breakdown is None
    assert [entry.metrics.sales for entry in result.by_store] == [4000, 7000]
    assert [entry.services["Potential Alignments %"] for entry in result.by_store] == [45, 100]
    assert result.by_store[0].goals == result.rollup.goals


async def test_single_store_advisor_has_no_breakdown(make_snapshot, august):
    source = _source(make_snapshot, snapshots=[make_snapshot({"sales": 500}, store_id="store-a")])

    scorecard = await _service(source).compute_advisor_scorecard("adv-1", august)

    assert scorecard.store_breakdown is None
    assert scorecard.store_id == "store-a"


async def test_empty_period_returns_zero_scorecard(make_snapshot):
    scorecard = await _service(_source(make_snapshot)).compute_advisor_scorecard("adv-1", Period(2024, 9))

    assert scorecard.metrics.sales == 0
    assert scorecard.metrics.gp_percent == 0
    assert scorecard.last_updated is None
    fields = [item for category in scorecard.categories for item in category.fields]
    assert len(fields) == 6
    assert all(item.value == 0 for item in fields)
    assert scorecard.services == {"MOA® Service": 0, "Potential Alignments %": 0, "Battery": 0}


async def test_goal_attached_to_scorecard_and_field(make_snapshot, august):
    scorecard = await _service(_source(make_snapshot)).compute_advisor_scorecard("adv-1", august)

    assert scorecard.goals["sales"].target == Decimal("10000")
    sales_field = scorecard.categories[0].fields[0]
    assert sales_field.key == "sales"
    assert sales_field.goal == scorecard.goals["sales"]


async def test_unknown_scope_raises_scope_not_found(make_snapshot, august):
    with pytest.raises(ScopeNotFound) as excinfo:
        await _service(_source(make_snapshot)).compute_store_scorecard("store-zz", august)

    assert excinfo.value.scope_id == "store-zz"


async def test_scope_known_only_from_history_is_found(make_snapshot, august):
    snapshot = make_snapshot({"sales": 900}, scope_type=ScopeType.STORE, scope_id="store-a", store_id="store-a")
    source = _source(make_snapshot, snapshots=[snapshot], scopes=[])

    scorecard = await _service(source).compute_store_scorecard("store-a", august)

    assert scorecard.metrics.sales == 900
    assert scorecard.store_id == "store-a"


async def test_missing_template_falls_back_to_builtin_default(make_snapshot, august):
    source = _source(make_snapshot, templates=[])

    scorecard = await _service(source).compute_advisor_scorecard("adv-1", august)

    assert scorecard.categories[0].name == "Core Metrics"
    assert scorecard.services["MOA® Service"] == 3
    assert scorecard.services["Oil Change"] == 0
    assert ("get_effective_template", ("mkt-1",)) in source.calls


async def test_global_default_template_used_when_market_has_none(make_snapshot, august):
    default = Template(
        template_id="tpl-default",
        name="Company default",
        is_default=True,
        categories=(TemplateCategory("Core", fields=(TemplateField("sales"),)),),
    )
    source = _source(make_snapshot, templates=[default])

    scorecard = await _service(source).compute_advisor_scorecard("adv-1", august)

    assert [category.name for category in scorecard.categories] == ["Core"]


async def test_market_scorecard_includes_market_level_snapshot(make_snapshot, august):
    snapshots = [
        make_snapshot({"sales": 1000}, scope_type=ScopeType.MARKET, scope_id="mkt-1", store_id=None),
        make_snapshot({"sales": 2500}, scope_type=ScopeType.MARKET, scope_id="mkt-1", store_id="store-a"),
    ]
    source = _source(make_snapshot, snapshots=snapshots, scopes=[ScopeInfo(ScopeType.MARKET, "mkt-1", "mkt-1")])

    scorecard = await _service(source).compute_market_scorecard("mkt-1", august)

    assert scorecard.metrics.sales == 3500
    assert scorecard.store_breakdown is None


async def test_collaborator_data_is_fetched_once_per_request(make_snapshot, august):
    source = _source(make_snapshot)

    await _service(source).compute_advisor_scorecard_by_store("adv-1", august)

    names = [name for name, _ in source.calls]
    for name in ("get_effective_template", "get_vendor_mappings", "get_effective_goals", "query_snapshots"):
        assert names.count(name) == 1


async def test_identical_inputs_give_identical_scorecards(make_snapshot, august):
    service = _service(_source(make_snapshot))

    first = await service.compute_advisor_scorecard("adv-1", august)
    second = await service.compute_advisor_scorecard("adv-1", august)

    assert first == second


class _FailingSource(InMemoryScorecardSource):
    async def get_vendor_mappings(self, market_id):
        raise CollaboratorUnavailable("get_vendor_mappings", "connection refused")


async def test_collaborator_failure_propagates(make_snapshot, august):
    source = _FailingSource(scopes=[ScopeInfo(ScopeType.ADVISOR, "adv-1", "mkt-1")])

    with pytest.raises(CollaboratorUnavailable):
        await _service(source).compute_advisor_scorecard("adv-1", august)


async def test_malformed_fields_are_logged_and_counted_as_zero(make_snapshot, august, caplog):
    source = _source(make_snapshot, snapshots=[make_snapshot({"sales": "#REF!", "invoices": 4})])

    with caplog.at_level(logging.WARNING, logger="scorecard_portal.services.scorecards"):
        scorecard = await _service(source).compute_advisor_scorecard("adv-1", august)

    assert scorecard.metrics.sales == 0
    assert scorecard.metrics.invoices == 4
    assert any("#REF!" in record.getMessage() for record in caplog.records)


async def test_injected_logger_receives_diagnostics(make_snapshot, august):
    records: list[logging.LogRecord] = []

    class _Collect(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(record)

    log = logging.getLogger("tests.scorecards.injected")
    log.addHandler(_Collect())
    log.setLevel(logging.DEBUG)
    source = _source(make_snapshot, snapshots=[make_snapshot({"battery": "lots"})])

    await ScorecardService(source, clock=lambda: TODAY, log=log).compute_advisor_scorecard("adv-1", august)

    assert [record.levelno for record in records if "battery" in record.getMessage()] == [logging.WARNING]


class _SlowGoalsFailingMappingsSource(InMemoryScorecardSource):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.goals_cancelled = False

    async def get_vendor_mappings(self, market_id):
        await asyncio.sleep(0)
        raise CollaboratorUnavailable("get_vendor_mappings", "connection refused")

    async def get_effective_goals(self, scope_type, scope_id):
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            self.goals_cancelled = True
            raise
        return []

    async def query_snapshots(self, scope_type, scope_id, period):
        await asyncio.sleep(0)
        raise CollaboratorUnavailable("query_snapshots", "timed out")


async def test_failed_collaborator_call_cancels_the_others(august):
    source = _SlowGoalsFailingMappingsSource(scopes=[ScopeInfo(ScopeType.ADVISOR, "adv-1", "mkt-1")])

    with pytest.raises(CollaboratorUnavailable):
        await _service(source).compute_advisor_scorecard("adv-1", august)

    assert source.goals_cancelled


async def test_gather_or_cancel_returns_results_in_order():
    async def value(number: int) -> int:
        await asyncio.sleep(0)
        return number

    assert await gather_or_cancel(value(1), value(2), value(3)) == [1, 2, 3]
