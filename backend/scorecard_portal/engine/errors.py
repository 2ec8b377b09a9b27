"""Scorecard error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ScorecardError(Exception):
    """Base class for scorecard failures surfaced to callers."""


class ScopeNotFound(ScorecardError):
    """The scope identifier has no history at all."""

    def __init__(self, scope_type: str, scope_id: str):
        super().__init__(f"No {scope_type} found with id {scope_id!r}")
        self.scope_type = scope_type
        self.scope_id = scope_id


class CollaboratorUnavailable(ScorecardError):
    """A consumed data interface failed or timed out."""

    def __init__(self, operation: str, detail: str):
        super().__init__(f"{operation} failed: {detail}")
        self.operation = operation
        self.detail = detail


@dataclass(frozen=True)
class MalformedField:
    """A raw snapshot field that failed numeric coercion and counted as zero."""

    snapshot_id: str
    field: str
    raw_value: Any

    def describe(self) -> str:
        return f"snapshot={self.snapshot_id} field={self.field!r} value={self.raw_value!r}"


__all__ = ["CollaboratorUnavailable", "MalformedField", "ScopeNotFound", "ScorecardError"]
