"""
Matching of destination names to local image files.

Names and filename stems are folded to keys with normalize_for_key. A file
matches when one key contains the other, or when any word of the name
appears in the filename or path. This is a heuristic and misfires on short
or shared words ("Temple A" vs "Temple B"); known cases are fixed with
manual overrides, which are consulted first.
"""

import re
from collections.abc import Iterable, Sequence

from loguru import logger

from compass.local_images.catalog import order_by_root
from compass.local_images.overrides import override_matches
from compass.models import ImageCandidate, ManualOverride
from compass.utils.text import name_tokens, normalize_for_key


class LocalImageMatcher:
    """
    Finds local image candidates for entity names.

    Usage:
        candidates = list_local_images(settings.assets.roots, base_dir=...)
        matcher = LocalImageMatcher(candidates, overrides.image_overrides)
        url = matcher.primary_image("Lovers' Leap", "Central")
    """

    def __init__(
        self,
        candidates: Iterable[ImageCandidate],
        overrides: Sequence[ManualOverride] = (),
        primary_tag: str = "primary",
    ):
        self.primary_tag = primary_tag
        self.candidates = order_by_root(candidates, primary_tag)
        self.overrides = [o for o in overrides if o.kind == "image"]

    def __len__(self) -> int:
        return len(self.candidates)

    def find_candidates(self, name: str | None) -> list[ImageCandidate]:
        """All candidates matching ``name``, primary root first."""
        key = normalize_for_key(name)
        tokens = name_tokens(name)

        matches = []
        for c in self.candidates:
            if not c.key:
                continue
            if key and (key in c.key or c.key in key):
                matches.append(c)
                continue
            filename = c.filename.lower()
            path = c.path.lower()
            if any(t in filename or t in path for t in tokens):
                matches.append(c)
        return matches

    def find_local_images(self, name: str | None) -> list[str]:
        """Urls of all candidates matching ``name``; empty when nothing matches."""
        return [c.url for c in self.find_candidates(name)]

    def find_manual_override(self, name: str | None) -> str | None:
        """
        Resolve the first override that fires for ``name``.

        A resolution starting with "/" is a literal path. Anything else is a
        pattern searched in candidate filenames. Returns None when no override
        fires, or when the one that fires finds no file.
        """
        for override in self.overrides:
            if not override_matches(override, name):
                continue

            if override.resolution.startswith("/"):
                return override.resolution

            for c in self.candidates:
                if override.source and c.source != override.source:
                    continue
                if re.search(override.resolution, c.filename, re.IGNORECASE):
                    return c.url

            logger.debug(f"Override {override.pattern!r} fired for {name!r} but no file matched")
            return None
        return None

    def find_province_image(self, province_name: str | None) -> str | None:
        """First image whose path mentions the province, or whose key contains it."""
        if not province_name:
            return None
        lowered = province_name.lower()
        key = normalize_for_key(province_name)
        for c in self.candidates:
            if lowered in c.path.lower() or (key and key in c.key):
                return c.url
        return None

    def primary_image(self, name: str | None, province_name: str | None = None) -> str | None:
        """Best single image: override, then computed match, then province image."""
        manual = self.find_manual_override(name)
        if manual:
            return manual

        matches = self.find_local_images(name)
        if matches:
            return matches[0]

        return self.find_province_image(province_name)
