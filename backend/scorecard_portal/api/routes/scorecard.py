"""Scorecard endpoints for advisors, stores and markets."""

from __future__ import annotations

import logging
from typing import Awaitable, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, status

from scorecard_portal.api.dependencies.scorecard import get_scorecard_service
from scorecard_portal.engine.errors import CollaboratorUnavailable, ScopeNotFound
from scorecard_portal.engine.models import Period
from scorecard_portal.schemas import CanonicalFieldSchema, ScorecardSchema, StoreRollupSchema
from scorecard_portal.services.scorecards import ScorecardService

logger = logging.getLogger(__name__)

router = APIRouter()

T = TypeVar("T")


def _resolve_period(service: ScorecardService, year: int | None, month: int | None) -> Period:
    """Fill whichever of year and month is missing from the current month."""

    today = service.clock()
    try:
        return Period(year if year is not None else today.year, month if month is not None else today.month)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


async def _call(operation: Awaitable[T]) -> T:
    try:
        return await operation
    except ScopeNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CollaboratorUnavailable as exc:
        logger.warning("Scorecard unavailable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Scorecard data is temporarily unavailable ({exc.operation})",
        ) from exc


YearQuery = Query(default=None, ge=1900, le=9999, description="Defaults to the current year")
MonthQuery = Query(default=None, ge=1, le=12, description="Defaults to the current month")


@router.get("/fields", response_model=list[CanonicalFieldSchema])
async def list_fields(service: ScorecardService = Depends(get_scorecard_service)) -> list[CanonicalFieldSchema]:
    """Canonical fields available to scorecard templates."""

    return [CanonicalFieldSchema.from_field(item) for item in service.registry]


@router.get("/advisor/{advisor_id}", response_model=ScorecardSchema)
async def get_advisor_scorecard(
    advisor_id: str,
    year: int | None = YearQuery,
    month: int | None = MonthQuery,
    service: ScorecardService = Depends(get_scorecard_service),
) -> ScorecardSchema:
    period = _resolve_period(service, year, month)
    scorecard = await _call(service.compute_advisor_scorecard(advisor_id, period))
    return ScorecardSchema.from_scorecard(scorecard)


@router.get("/advisor/{advisor_id}/by-store", response_model=StoreRollupSchema)
async def get_advisor_scorecard_by_store(
    advisor_id: str,
    year: int | None = YearQuery,
    month: int | None = MonthQuery,
    service: ScorecardService = Depends(get_scorecard_service),
) -> StoreRollupSchema:
    period = _resolve_period(service, year, month)
    result = await _call(service.compute_advisor_scorecard_by_store(advisor_id, period))
    return StoreRollupSchema.from_rollup(result)


@router.get("/store/{store_id}", response_model=ScorecardSchema)
async def get_store_scorecard(
    store_id: str,
    year: int | None = YearQuery,
    month: int | None = MonthQuery,
    service: ScorecardService = Depends(get_scorecard_service),
) -> ScorecardSchema:
    period = _resolve_period(service, year, month)
    scorecard = await _call(service.compute_store_scorecard(store_id, period))
    return ScorecardSchema.from_scorecard(scorecard)


@router.get("/market/{market_id}", response_model=ScorecardSchema)
async def get_market_scorecard(
    market_id: str,
    year: int | None = YearQuery,
    month: int | None = MonthQuery,
    service: ScorecardService = Depends(get_scorecard_service),
) -> ScorecardSchema:
    period = _resolve_period(service, year, month)
    scorecard = await _call(service.compute_market_scorecard(market_id, period))
    return ScorecardSchema.from_scorecard(scorecard)


__all__ = ["router"]
