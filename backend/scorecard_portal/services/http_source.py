"""HTTP client for a remote portal data service."""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import httpx
from opentelemetry.propagate import inject

from scorecard_portal.config import AppSettings
from scorecard_portal.engine.errors import CollaboratorUnavailable
from scorecard_portal.engine.models import (
    Goal,
    Period,
    PerformanceSnapshot,
    ScopeInfo,
    ScopeType,
    Template,
    TemplateCategory,
    TemplateField,
    VendorMapping,
)

logger = logging.getLogger(__name__)

_MISSING = object()


def _parse_snapshot(item: dict[str, Any]) -> PerformanceSnapshot:
    return PerformanceSnapshot(
        snapshot_id=str(item["id"]),
        scope_type=ScopeType(item["scopeType"]),
        scope_id=str(item["scopeId"]),
        period_year=int(item["periodYear"]),
        period_month=int(item["periodMonth"]),
        uploaded_at=datetime.fromisoformat(item["uploadedAt"]),
        raw_fields=item.get("data") or {},
        store_id=item.get("storeId"),
        market_id=item.get("marketId"),
        sequence=int(item.get("sequence") or 0),
    )


def _parse_template(payload: dict[str, Any]) -> Template:
    categories = tuple(
        TemplateCategory(
            name=category["name"],
            fields=tuple(
                TemplateField(
                    canonical_key=field["key"],
                    label=field.get("label"),
                    format=field.get("format"),
                    display_order=int(field.get("displayOrder", 0)),
                    enabled=bool(field.get("enabled", True)),
                    show_goal=bool(field.get("showGoal", False)),
                )
                for field in category.get("fields", [])
            ),
            display_order=int(category.get("displayOrder", 0)),
            enabled=bool(category.get("enabled", True)),
            icon=category.get("icon"),
            color=category.get("color"),
        )
        for category in payload.get("categories", [])
    )
    return Template(
        template_id=str(payload["id"]),
        name=payload.get("name") or "",
        categories=categories,
        market_id=payload.get("marketId"),
        is_default=bool(payload.get("isDefault", False)),
    )


def _parse_mapping(item: dict[str, Any]) -> VendorMapping:
    return VendorMapping(
        mapping_id=int(item["id"]),
        vendor_id=str(item["vendorId"]),
        service_field=item["serviceField"],
        branded_name=item["productName"],
        market_id=item.get("marketId"),
        vendor_name=item.get("vendorName"),
    )


def _parse_goal(item: dict[str, Any], scope_type: ScopeType, scope_id: str) -> Goal:
    return Goal(
        scope_type=scope_type,
        scope_id=scope_id,
        metric_key=item["metricKey"],
        target_value=Decimal(str(item["targetValue"])),
        effective_date=date.fromisoformat(item["effectiveDate"]),
        period_type=item.get("periodType") or "monthly",
    )


class HttpScorecardSource:
    """Fetch scorecard inputs from the portal data service over HTTP.

    Transport errors, timeouts, 5xx answers and unreadable payloads raise
    :class:`CollaboratorUnavailable`. A 404 on a lookup that may legitimately
    find nothing (scopes, effective template) returns ``None``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "HttpScorecardSource":
        return cls(
            settings.data_service_url,
            token=settings.data_service_token,
            timeout_seconds=settings.data_service_timeout_seconds,
        )

    async def _request(
        self,
        operation: str,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        not_found: Any = _MISSING,
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers: dict[str, str] = {"Accept": "application/json"}
        if self.token:
            headers["X-Internal-Token"] = self.token
        # Inject current trace context so downstream spans link to the scorecard request
        inject(headers)
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Data service %s unreachable: %s", url, exc)
            raise CollaboratorUnavailable(operation, str(exc) or exc.__class__.__name__) from exc

        if response.status_code == 404 and not_found is not _MISSING:
            return not_found
        if response.status_code >= 400:
            logger.warning("Data service error %s for %s", response.status_code, url)
            raise CollaboratorUnavailable(operation, f"HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise CollaboratorUnavailable(operation, "response was not valid JSON") from exc

    async def query_snapshots(
        self, scope_type: ScopeType, scope_id: str, period: Period
    ) -> list[PerformanceSnapshot]:
        payload = await self._request(
            "query_snapshots",
            "/snapshots",
            {"scopeType": scope_type.value, "scopeId": scope_id, "year": period.year, "month": period.month},
        )
        try:
            return [_parse_snapshot(item) for item in payload or []]
        except (KeyError, TypeError, ValueError) as exc:
            raise CollaboratorUnavailable("query_snapshots", f"unexpected payload: {exc}") from exc

    async def get_effective_template(self, market_id: str | None) -> Template | None:
        params = {"marketId": market_id} if market_id is not None else None
        payload = await self._request("get_effective_template", "/templates/effective", params, not_found=None)
        if not payload:
            return None
        try:
            return _parse_template(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise CollaboratorUnavailable("get_effective_template", f"unexpected payload: {exc}") from exc

    async def get_vendor_mappings(self, market_id: str | None) -> list[VendorMapping]:
        if market_id is None:
            return []
        payload = await self._request("get_vendor_mappings", "/vendor-mappings", {"marketId": market_id})
        try:
            return [_parse_mapping(item) for item in payload or []]
        except (KeyError, TypeError, ValueError) as exc:
            raise CollaboratorUnavailable("get_vendor_mappings", f"unexpected payload: {exc}") from exc

    async def get_effective_goals(self, scope_type: ScopeType, scope_id: str) -> list[Goal]:
        payload = await self._request(
            "get_effective_goals", "/goals", {"scopeType": scope_type.value, "scopeId": scope_id}
        )
        try:
            return [_parse_goal(item, scope_type, scope_id) for item in payload or []]
        except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
            raise CollaboratorUnavailable("get_effective_goals", f"unexpected payload: {exc}") from exc

    async def describe_scope(self, scope_type: ScopeType, scope_id: str) -> ScopeInfo | None:
        payload = await self._request("describe_scope", f"/scopes/{scope_type.value}/{scope_id}", not_found=None)
        if payload is None:
            return None
        return ScopeInfo(
            scope_type=scope_type,
            scope_id=scope_id,
            market_id=payload.get("marketId"),
            name=payload.get("name"),
        )


__all__ = ["HttpScorecardSource"]
