"""Delete a single destination by id, then verify it is gone."""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from compass.errors import NotFoundError, PermissionDeniedError, StoreError, VerificationMismatch
from compass.maintenance.confirm import ConfirmFn, confirmed
from compass.models import Entity
from compass.store import SupabaseStore

CONFIRM_PROMPT = "Proceed to delete destination"


@dataclass
class DeleteReport:
    entity_id: str
    entity: Optional[Entity] = None
    deleted: bool = False
    not_found: bool = False
    aborted: bool = False


def run(
    store: SupabaseStore,
    entity_id: str,
    confirm: Optional[ConfirmFn] = None,
    assume_yes: bool = False,
) -> DeleteReport:
    """
    Delete one destination.

    Raises:
        PermissionDeniedError: The backend rejected the delete
        VerificationMismatch: The row is still there after the delete
        StoreError: Any other request failure
    """
    report = DeleteReport(entity_id=entity_id)

    logger.info(f"Looking up destination id={entity_id}...")
    try:
        report.entity = store.get_entity(entity_id)
    except NotFoundError:
        logger.info("No destination found with that id. Nothing to delete.")
        report.not_found = True
        return report

    entity = report.entity
    logger.info(f"Found destination: id={entity.id}, name={entity.name!r}, province_id={entity.get('province_id')}")

    prompt = f"{CONFIRM_PROMPT} \"{entity.name}\" (id={entity.id})?"
    if not confirmed(prompt, confirm, assume_yes):
        logger.info("Aborted. No deletions performed.")
        report.aborted = True
        return report

    result = store.delete_entities([entity_id], batch_size=1)
    for err in result.errors:
        if err.kind == "verification":
            raise VerificationMismatch(err.message, operation="delete", ids=err.ids)
        if err.kind == "permission":
            raise PermissionDeniedError(err.message, operation="delete", ids=err.ids)
        raise StoreError(err.message, operation="delete", ids=err.ids)

    if store.exists([entity_id]):
        raise VerificationMismatch(
            "Destination still exists after delete request; this is likely "
            "caused by row-level security blocking the operation",
            operation="delete",
            ids=[entity_id],
        )

    logger.info(f"Destination id={entity_id} deleted successfully.")
    report.deleted = True
    return report
