"""List destinations whose description is NULL."""

from pathlib import Path
from typing import Optional

from loguru import logger

from compass.backup import write_csv
from compass.models import Entity
from compass.store import SupabaseStore

SCAN_COLUMNS = "id,name,province_id,description,provinces(name)"


def run(store: SupabaseStore, csv_path: Optional[Path] = None) -> list[Entity]:
    """
    Find destinations with a NULL description, ordered by name.

    Args:
        store: Entity store
        csv_path: Also write an ``id,name,province_id`` CSV here
    """
    logger.info(f"Scanning {store.table} for NULL descriptions...")
    entities = store.list_entities({"description": "is.null"}, columns=SCAN_COLUMNS, order="name.asc")

    if not entities:
        logger.info("No destinations with NULL description found.")
        return []

    logger.info(f"Found {len(entities)} destination(s) with NULL description")
    if csv_path:
        write_csv(
            csv_path,
            ["id", "name", "province_id"],
            [[e.id, e.name, e.get("province_id", "")] for e in entities],
        )
    return entities
