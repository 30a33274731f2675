"""
Fallback descriptions for destinations without a stored one.

Lookup order: exact text override by normalized name, then the first
description pattern matching the name, then the first matching the province
name, then a generic sentence. The result is never empty.
"""

import re
from collections.abc import Iterable, Sequence

from compass.local_images.overrides import override_matches
from compass.models import DescriptionPattern, Entity, ManualOverride
from compass.utils.text import normalize

GENERIC_TEMPLATE = (
    "Explore {name}{where}. Discover highlights, local culture, "
    "and visitor tips for this destination."
)


class DescriptionResolver:
    """Picks display text for entities from injected override tables."""

    def __init__(
        self,
        text_overrides: Sequence[ManualOverride] = (),
        patterns: Sequence[DescriptionPattern] = (),
    ):
        self.text_overrides = [o for o in text_overrides if o.kind == "text"]
        self.patterns = list(patterns)

    def match_override(self, name: str | None) -> str | None:
        for override in self.text_overrides:
            if override_matches(override, name):
                return override.resolution
        return None

    def match_pattern(self, text: str | None) -> DescriptionPattern | None:
        """First pattern found in ``text`` (case-insensitive)."""
        if not text:
            return None
        for p in self.patterns:
            if re.search(p.pattern, text, re.IGNORECASE):
                return p
        return None

    def describe(self, name: str | None, province_name: str | None = None) -> str:
        """Fallback text for a destination; never empty."""
        manual = self.match_override(name)
        if manual:
            return manual

        found = self.match_pattern(name) or self.match_pattern(province_name)
        if found:
            return found.text

        where = f" in {province_name}" if province_name else ""
        return GENERIC_TEMPLATE.format(name=(name or "this place").strip(), where=where)

    def display_description(self, entity: Entity) -> str:
        """The stored description when present, otherwise ``describe``."""
        if entity.has("description"):
            return entity.get("description")
        return self.describe(entity.name, entity.province_name)

    def find_pattern_collisions(self, names: Iterable[str]) -> dict[str, list[str]]:
        """
        Patterns that match more than one distinct place.

        Names that normalize to the same key count once. The result is for a
        human to review; nothing is changed.
        """
        hits: dict[str, dict[str, str]] = {}
        for name in names:
            p = self.match_pattern(name)
            if p is None:
                continue
            hits.setdefault(p.pattern, {}).setdefault(normalize(name), name)

        return {
            pattern: sorted(by_key.values())
            for pattern, by_key in hits.items()
            if len(by_key) > 1
        }
