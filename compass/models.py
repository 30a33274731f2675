"""
Data models shared by the resolver, the image matcher and the maintenance jobs.

Records from the backend are loaded into Entity objects once, so every
caller checks optional fields the same way.
"""

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any

from compass.config import SCORING_FIELDS


@dataclass
class Entity:
    """
    A destination-like record subject to deduplication or image matching.

    ``id`` is opaque and only used for tie-breaking and reporting.
    """

    id: str
    name: str
    attributes: dict[str, Any] = field(default_factory=dict)

    # Fields that may be absent; everything in attributes is optional
    OPTIONAL_FIELDS = SCORING_FIELDS + ("province_name",)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Entity":
        """Build an Entity from a backend row.

        The embedded ``provinces(name)`` relation is flattened to
        ``province_name``; other columns are kept as attributes.
        """
        attributes = {k: v for k, v in row.items() if k not in ("id", "name", "provinces")}

        provinces = row.get("provinces")
        if isinstance(provinces, dict) and provinces.get("name"):
            attributes["province_name"] = provinces["name"]

        raw_id = row.get("id")
        return cls(
            id="" if raw_id is None else str(raw_id),
            name=row.get("name") or "",
            attributes=attributes,
        )

    def get(self, name: str, default: Any = None) -> Any:
        """Return an attribute value, or ``default`` when absent."""
        value = self.attributes.get(name)
        return default if value is None else value

    def has(self, name: str) -> bool:
        """True when the field is present: not None, and not blank for strings."""
        value = self.attributes.get(name)
        if value is None:
            return False
        if isinstance(value, str):
            return bool(value.strip())
        return True

    @property
    def province_name(self) -> str | None:
        return self.get("province_name")

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, **self.attributes}


@dataclass
class DuplicateGroup:
    """Entities sharing one normalized name, with the keeper already chosen."""

    key: str
    keeper: Entity
    remove: list[Entity] = field(default_factory=list)

    @property
    def remove_ids(self) -> list[str]:
        return [e.id for e in self.remove]

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "keep": self.keeper.to_dict(),
            "remove": [e.to_dict() for e in self.remove],
        }


@dataclass
class RemovalPlan:
    """Result of a resolution run: one DuplicateGroup per group of size >= 2."""

    groups: list[DuplicateGroup] = field(default_factory=list)

    @property
    def remove_ids(self) -> list[str]:
        return [i for g in self.groups for i in g.remove_ids]

    @property
    def keeper_ids(self) -> list[str]:
        return [g.keeper.id for g in self.groups]

    @property
    def is_empty(self) -> bool:
        return not self.groups

    def to_dict(self) -> dict[str, Any]:
        return {
            "group_count": len(self.groups),
            "remove_count": len(self.remove_ids),
            "groups": [g.to_dict() for g in self.groups],
        }


@dataclass(frozen=True)
class ImageCandidate:
    """One image file discovered under a local asset root."""

    path: str
    key: str
    url: str
    source: str

    @property
    def filename(self) -> str:
        return PurePosixPath(self.path.replace("\\", "/")).name


@dataclass(frozen=True)
class ManualOverride:
    """
    Hand-authored answer for a name the generic matcher gets wrong.

    ``match`` is "key" (exact normalized key) or "regex" (searched against
    the raw name, case-insensitive). ``kind`` is "image" or "text".
    ``source`` restricts an image override to candidates from one asset root.
    """

    pattern: str
    resolution: str
    kind: str = "image"
    match: str = "key"
    source: str | None = None


@dataclass(frozen=True)
class DescriptionPattern:
    """Regular expression over a name and the paragraph used when it matches."""

    pattern: str
    text: str
