import asyncio
import inspect
import itertools
import pathlib
import sys
from datetime import date, datetime
from typing import Any, Callable

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scorecard_portal.engine.models import Period, PerformanceSnapshot, ScopeType  # noqa: E402

TODAY = date(2024, 8, 20)
AUGUST = Period(2024, 8)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used in the suite."""

    config.addinivalue_line("markers", "asyncio: mark test as running in an asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    test_function = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_function):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            arguments = {name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames}
            loop.run_until_complete(test_function(**arguments))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


@pytest.fixture
def august() -> Period:
    return AUGUST


@pytest.fixture
def make_snapshot() -> Callable[..., PerformanceSnapshot]:
    """Snapshot factory; ids and sequence numbers increase per call."""

    counter = itertools.count(1)

    def _make(
        fields: dict[str, Any],
        *,
        scope_type: ScopeType = ScopeType.ADVISOR,
        scope_id: str = "adv-1",
        store_id: str | None = "store-a",
        market_id: str | None = "mkt-1",
        period: Period = AUGUST,
        uploaded_at: datetime = datetime(2024, 8, 10, 9, 0),
        sequence: int | None = None,
    ) -> PerformanceSnapshot:
        number = next(counter)
        return PerformanceSnapshot(
            snapshot_id=f"snap-{number}",
            scope_type=scope_type,
            scope_id=scope_id,
            period_year=period.year,
            period_month=period.month,
            uploaded_at=uploaded_at,
            raw_fields=fields,
            store_id=store_id,
            market_id=market_id,
            sequence=number if sequence is None else sequence,
        )

    return _make
