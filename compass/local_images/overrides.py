"""
Loading of hand-maintained override and description tables.

The tables live in a JSON file (bundled default: compass/data/overrides.json)
and are passed into the matcher and description resolver, so content edits
never touch matching code.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from compass.errors import ConfigurationError
from compass.models import DescriptionPattern, ManualOverride
from compass.utils.text import normalize_for_key

DEFAULT_OVERRIDES_FILE = Path(__file__).resolve().parent.parent / "data" / "overrides.json"

MATCH_MODES = ("key", "regex")


@dataclass
class OverrideConfig:
    """Override tables, in the order they are consulted."""

    image_overrides: list[ManualOverride] = field(default_factory=list)
    text_overrides: list[ManualOverride] = field(default_factory=list)
    description_patterns: list[DescriptionPattern] = field(default_factory=list)


def override_matches(override: ManualOverride, name: str | None) -> bool:
    """True when ``override`` fires for the raw ``name``."""
    if not name:
        return False
    if override.match == "regex":
        return re.search(override.pattern, name, re.IGNORECASE) is not None
    return normalize_for_key(name) == override.pattern


def _check_regex(pattern: str, where: str) -> None:
    try:
        re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"Invalid pattern {pattern!r} in {where}: {e}") from e


def _parse_override(raw: dict, kind: str, where: str) -> ManualOverride:
    try:
        pattern = raw["pattern"]
        resolution = raw["resolution"]
    except KeyError as e:
        raise ConfigurationError(f"Override in {where} is missing {e.args[0]!r}") from e

    match = raw.get("match", "key")
    if match not in MATCH_MODES:
        raise ConfigurationError(f"Unknown match mode {match!r} in {where}")
    if match == "regex":
        _check_regex(pattern, where)
    else:
        # Keys are stored normalized so "Diyaluma Falls" and "diyalumafalls" both work
        pattern = normalize_for_key(pattern)

    if kind == "image" and not resolution.startswith("/"):
        _check_regex(resolution, where)

    return ManualOverride(
        pattern=pattern,
        resolution=resolution,
        kind=kind,
        match=match,
        source=raw.get("source"),
    )


def parse_overrides(data: dict, where: str = "<memory>") -> OverrideConfig:
    """Build an OverrideConfig from the decoded JSON structure."""
    config = OverrideConfig()

    for raw in data.get("image_overrides", []):
        config.image_overrides.append(_parse_override(raw, "image", where))

    for raw in data.get("text_overrides", []):
        config.text_overrides.append(_parse_override(raw, "text", where))

    for raw in data.get("description_patterns", []):
        if "pattern" not in raw or "text" not in raw:
            raise ConfigurationError(f"Description pattern in {where} needs 'pattern' and 'text'")
        _check_regex(raw["pattern"], where)
        config.description_patterns.append(DescriptionPattern(pattern=raw["pattern"], text=raw["text"]))

    return config


def load_overrides(path: Path | str | None = None) -> OverrideConfig:
    """
    Load override tables from a JSON file.

    Args:
        path: JSON file to read; the bundled table when None

    Returns:
        OverrideConfig

    Raises:
        ConfigurationError: File missing, not valid JSON, or a bad pattern
    """
    path = Path(path) if path else DEFAULT_OVERRIDES_FILE
    if not path.exists():
        raise ConfigurationError(f"Overrides file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Overrides file {path} is not valid JSON: {e}") from e

    config = parse_overrides(data, where=str(path))
    logger.debug(
        f"Loaded overrides from {path}: {len(config.image_overrides)} image, "
        f"{len(config.text_overrides)} text, {len(config.description_patterns)} patterns"
    )
    return config
