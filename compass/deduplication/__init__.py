"""
Deduplication components.

One shared implementation of the duplicate scoring rule, used by the
destructive cleanup job and by list-view deduplication alike.
"""

from compass.deduplication.resolver import (
    dedupe_for_display,
    group_entities,
    rank_group,
    resolve_duplicates,
    score,
    unique_by_id,
)

__all__ = [
    "score",
    "group_entities",
    "rank_group",
    "resolve_duplicates",
    "dedupe_for_display",
    "unique_by_id",
]
