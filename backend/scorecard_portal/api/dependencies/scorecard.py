"""Scorecard service wiring for API routes."""

from __future__ import annotations

import logging

from scorecard_portal.config import AppSettings, get_settings
from scorecard_portal.db.session import get_session_factory
from scorecard_portal.services.http_source import HttpScorecardSource
from scorecard_portal.services.scorecards import ScorecardService, local_today
from scorecard_portal.services.sources import ScorecardSource
from scorecard_portal.services.sql_source import SqlScorecardSource

logger = logging.getLogger(__name__)

_service: ScorecardService | None = None


def build_source(settings: AppSettings) -> ScorecardSource:
    if settings.scorecard_source == "http":
        logger.info("Reading scorecard data from %s", settings.data_service_url)
        return HttpScorecardSource.from_settings(settings)
    return SqlScorecardSource(get_session_factory())


def get_scorecard_service() -> ScorecardService:
    """Process-wide scorecard service; tests replace it via ``dependency_overrides``."""

    global _service
    if _service is None:
        settings = get_settings()
        _service = ScorecardService(build_source(settings), clock=local_today(settings.timezone))
    return _service


__all__ = ["build_source", "get_scorecard_service"]
