"""
Duplicate resolution for destination records.

Records whose names normalize to the same key are treated as one place.
Within a group the most complete record is kept; ties go to the
lexically smallest id. Everything here is pure: the caller decides what to
do with the plan.
"""

from collections.abc import Iterable

from loguru import logger

from compass.models import DuplicateGroup, Entity, RemovalPlan
from compass.utils.text import normalize

# Points per populated field
SCORE_WEIGHTS = {
    "description": 2,
    "province_id": 1,
    "image_url": 2,
}
COORDINATE_FIELDS = ("location_lat", "location_lng")
COORDINATE_WEIGHT = 1


def score(entity: Entity) -> int:
    """Attribute-completeness score in the range 0-6."""
    total = sum(weight for name, weight in SCORE_WEIGHTS.items() if entity.has(name))
    if any(entity.has(name) for name in COORDINATE_FIELDS):
        total += COORDINATE_WEIGHT
    return total


def _rank_key(entity: Entity) -> tuple[int, str]:
    return (-score(entity), entity.id)


def group_entities(entities: Iterable[Entity]) -> dict[str, list[Entity]]:
    """Partition entities by normalized name, keeping input order inside groups.

    Blank names all share the empty key.
    """
    groups: dict[str, list[Entity]] = {}
    for entity in entities:
        groups.setdefault(normalize(entity.name), []).append(entity)
    return groups


def unique_by_id(entities: Iterable[Entity]) -> list[Entity]:
    """Drop repeated ids, keeping the first occurrence."""
    seen: set[str] = set()
    unique = []
    for entity in entities:
        if entity.id in seen:
            continue
        seen.add(entity.id)
        unique.append(entity)
    return unique


def rank_group(entities: Iterable[Entity]) -> list[Entity]:
    """Order a group best-first: score descending, then id ascending."""
    return sorted(entities, key=_rank_key)


def resolve_duplicates(entities: Iterable[Entity]) -> RemovalPlan:
    """
    Build a removal plan for a snapshot of entities.

    Args:
        entities: Every record of one logical table

    Returns:
        RemovalPlan with one group per normalized name shared by two or more
        records, ordered by key. Empty input gives an empty plan.
    """
    groups = group_entities(entities)

    plan = RemovalPlan()
    for key in sorted(groups):
        # A record listed twice must never be marked for removal against itself
        members = unique_by_id(groups[key])
        if len(members) < 2:
            continue
        ranked = rank_group(members)
        plan.groups.append(DuplicateGroup(key=key, keeper=ranked[0], remove=ranked[1:]))

    if plan.groups:
        logger.debug(
            f"Resolved {len(plan.groups)} duplicate groups, "
            f"{len(plan.remove_ids)} records to remove"
        )
    return plan


def dedupe_for_display(entities: Iterable[Entity]) -> list[Entity]:
    """Keep one record per normalized name, in the original list order."""
    items = unique_by_id(entities)
    keepers = {id(rank_group(members)[0]) for members in group_entities(items).values()}
    return [e for e in items if id(e) in keepers]
