"""
Assign local pictures to destinations that have no image_url.

Uses the shared image matcher (overrides first, then the first computed
match) and writes the assignment plan to a backup before updating.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from compass.backup import write_plan_backup
from compass.errors import BatchResult, PartialBatchFailure
from compass.local_images import LocalImageMatcher
from compass.maintenance.confirm import ConfirmFn, confirmed
from compass.models import Entity
from compass.store import SupabaseStore

CONFIRM_PROMPT = "Proceed to update these destinations?"


@dataclass
class Assignment:
    id: str
    name: str
    image_url: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "image_url": self.image_url}


@dataclass
class AssignReport:
    assignments: list[Assignment] = field(default_factory=list)
    unmatched: list[Entity] = field(default_factory=list)
    backup_path: Optional[Path] = None
    result: Optional[BatchResult] = None
    dry_run: bool = False
    aborted: bool = False

    def raise_for_errors(self) -> None:
        if self.result and not self.result.ok:
            raise PartialBatchFailure("assign local images", self.result)


def plan_assignments(entities: Iterable[Entity], matcher: LocalImageMatcher) -> tuple[list[Assignment], list[Entity]]:
    """Pick an image for each entity; returns (assignments, unmatched)."""
    assignments = []
    unmatched = []
    for entity in entities:
        # No province fallback: a province photo is not a picture of this place
        url = matcher.primary_image(entity.name)
        if url:
            assignments.append(Assignment(id=entity.id, name=entity.name, image_url=url))
        else:
            unmatched.append(entity)
    return assignments, unmatched


def run(
    store: SupabaseStore,
    matcher: LocalImageMatcher,
    confirm: Optional[ConfirmFn] = None,
    assume_yes: bool = False,
    dry_run: bool = False,
    backup_dir: Optional[Path] = None,
    batch_size: Optional[int] = None,
) -> AssignReport:
    """
    Match destinations missing an image to local files and store the urls.

    Returns:
        AssignReport; call ``raise_for_errors`` to surface failed ids
    """
    if not len(matcher):
        logger.info("No local image files found.")
        return AssignReport(dry_run=dry_run)

    entities = store.list_entities({"image_url": "is.null"})
    if not entities:
        logger.info("No destinations without image_url found.")
        return AssignReport(dry_run=dry_run)

    assignments, unmatched = plan_assignments(entities, matcher)
    report = AssignReport(assignments=assignments, unmatched=unmatched, dry_run=dry_run)
    if not assignments:
        logger.info("No suitable local images found to assign.")
        return report

    logger.info(f"Will assign {len(assignments)} images ({len(unmatched)} destinations unmatched)")
    report.backup_path = write_plan_backup(
        "assign_local_images",
        {"assignments": [a.to_dict() for a in assignments]},
        backup_dir,
    )

    if dry_run:
        logger.info("Dry run; exiting without making changes.")
        return report

    if not confirmed(CONFIRM_PROMPT, confirm, assume_yes):
        logger.info("Aborted. No changes made.")
        report.aborted = True
        return report

    report.result = store.update_entities(
        [(a.id, {"image_url": a.image_url}) for a in assignments],
        batch_size=batch_size,
    )
    logger.info(f"Assigned {len(report.result.succeeded)} local images")
    return report
