"""Route registration helpers."""

from __future__ import annotations

from fastapi import APIRouter

from .scorecard import router as scorecard_router

api_router = APIRouter()
api_router.include_router(scorecard_router, prefix="/scorecard", tags=["scorecard"])

__all__ = ["api_router"]
