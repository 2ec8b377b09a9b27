"""Vendor brand overlay for field labels."""

from __future__ import annotations

import re
from typing import Iterable

from .models import VendorMapping
from .registry import compact_key

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def alternate_forms(key: str, template_key: str | None = None) -> list[str]:
    """Other spellings a mapping may use for the field ``key``.

    Covers the template's own key, the spaced title form of a camelCase key
    (``premiumOilChange`` → ``Premium Oil Change``), the snake_case form and
    the compact lowercase form used by template editors.
    """

    spaced = _CAMEL_BOUNDARY.sub(" ", key)
    candidates = [
        template_key,
        spaced[:1].upper() + spaced[1:],
        _CAMEL_BOUNDARY.sub("_", key).lower(),
        compact_key(key),
    ]
    forms: list[str] = []
    for form in candidates:
        if form and form != key and form not in forms:
            forms.append(form)
    return forms


class BrandOverlay:
    """Resolve a branded display name from one market's vendor mappings.

    Resolution is tiered and the first tier with a match wins: exact canonical
    key, exact default label, exact alternate field-name form, then
    case-insensitive canonical key. Inside a tier the lowest mapping id wins,
    so a fixed mapping table always yields the same label.
    """

    def __init__(self, mappings: Iterable[VendorMapping]):
        self._exact: dict[str, VendorMapping] = {}
        self._folded: dict[str, VendorMapping] = {}
        for mapping in sorted(mappings, key=lambda item: item.mapping_id):
            if not mapping.branded_name or not mapping.service_field:
                continue
            self._exact.setdefault(mapping.service_field, mapping)
            self._folded.setdefault(mapping.service_field.casefold(), mapping)

    def __bool__(self) -> bool:
        return bool(self._exact)

    def match(
        self,
        key: str,
        default_label: str | None = None,
        template_key: str | None = None,
    ) -> VendorMapping | None:
        found = self._exact.get(key)
        if found is not None:
            return found
        if default_label:
            found = self._exact.get(default_label)
            if found is not None:
                return found
        candidates = [self._exact[form] for form in alternate_forms(key, template_key) if form in self._exact]
        if candidates:
            return min(candidates, key=lambda item: item.mapping_id)
        return self._folded.get(key.casefold())

    def branded_name(
        self,
        key: str,
        default_label: str | None = None,
        template_key: str | None = None,
    ) -> str | None:
        mapping = self.match(key, default_label, template_key)
        return mapping.branded_name if mapping else None


__all__ = ["BrandOverlay", "alternate_forms"]
