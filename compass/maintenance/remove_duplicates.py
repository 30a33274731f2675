"""
Remove duplicate destinations.

Groups destinations by normalized name, keeps the most complete record of
each group and deletes the rest, after writing the plan to a backup file
and getting confirmation.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from compass.backup import csv_path_for, write_csv, write_plan_backup
from compass.deduplication import resolve_duplicates
from compass.errors import BatchResult, PartialBatchFailure
from compass.maintenance.confirm import ConfirmFn, confirmed
from compass.models import RemovalPlan
from compass.store import SupabaseStore

CONFIRM_PROMPT = "Proceed to delete the marked rows?"


@dataclass
class DedupeReport:
    plan: RemovalPlan
    backup_path: Optional[Path] = None
    csv_path: Optional[Path] = None
    result: Optional[BatchResult] = None
    dry_run: bool = False
    aborted: bool = False

    @property
    def deleted_ids(self) -> list[str]:
        return list(self.result.succeeded) if self.result else []

    def raise_for_errors(self) -> None:
        if self.result and not self.result.ok:
            raise PartialBatchFailure("delete duplicates", self.result)


def plan_csv_rows(plan: RemovalPlan) -> list[list[str]]:
    rows = []
    for n, group in enumerate(plan.groups, start=1):
        for r in group.remove:
            rows.append([str(n), group.keeper.id, group.keeper.name, r.id, r.name])
    return rows


def run(
    store: SupabaseStore,
    confirm: Optional[ConfirmFn] = None,
    assume_yes: bool = False,
    dry_run: bool = False,
    backup_dir: Optional[Path] = None,
    batch_size: Optional[int] = None,
    export_csv: bool = False,
) -> DedupeReport:
    """
    Find and delete duplicate destinations.

    Args:
        store: Entity store
        confirm: Asks the user; deletion needs a True answer or ``assume_yes``
        assume_yes: Skip the prompt
        dry_run: Write the plan but never delete
        backup_dir: Where the plan backup goes
        batch_size: Ids per delete request
        export_csv: Also write the plan as CSV

    Returns:
        DedupeReport; call ``raise_for_errors`` to surface failed ids
    """
    logger.info(f"Fetching {store.table}...")
    entities = store.list_entities()
    if not entities:
        logger.info("No destinations found. Nothing to do.")
        return DedupeReport(plan=RemovalPlan(), dry_run=dry_run)

    plan = resolve_duplicates(entities)
    report = DedupeReport(plan=plan, dry_run=dry_run)
    if plan.is_empty:
        logger.info("No duplicate groups found.")
        return report

    logger.info(
        f"Found {len(plan.groups)} duplicate groups; "
        f"{len(plan.remove_ids)} rows marked for deletion"
    )

    report.backup_path = write_plan_backup("duplicates", plan.to_dict(), backup_dir)
    if export_csv:
        report.csv_path = write_csv(
            csv_path_for(report.backup_path),
            ["group_index", "keep_id", "keep_name", "remove_id", "remove_name"],
            plan_csv_rows(plan),
        )

    if dry_run:
        logger.info("Dry run; no deletions performed.")
        return report

    if not confirmed(CONFIRM_PROMPT, confirm, assume_yes):
        logger.info("Aborted. No deletions performed.")
        report.aborted = True
        return report

    report.result = store.delete_entities(plan.remove_ids, batch_size=batch_size)
    logger.info(
        f"Deletion finished: {len(report.result.succeeded)} deleted, "
        f"{len(report.result.failed_ids)} failed"
    )
    return report
