#!/usr/bin/env python3
"""
Compass LK - Maintenance Entry Point

Command line tools for cleaning up the destinations table: removing
duplicates, assigning local pictures, deleting single rows and finding
missing descriptions.

Usage:
    python -m compass.main dedupe --dry-run
    python -m compass.main assign-images --yes
    python -m compass.main delete <id>
    python -m compass.main match "Lovers' Leap" --province Central
"""

import sys
from pathlib import Path

import click
import httpx
from rich.console import Console
from rich.table import Table

from compass.config import settings
from compass.descriptions import DescriptionResolver
from compass.errors import (
    CompassError,
    ConfigurationError,
    PartialBatchFailure,
    PermissionDeniedError,
    VerificationMismatch,
)
from compass.local_images import LocalImageMatcher, list_local_images, load_overrides
from compass.store import SupabaseStore


console = Console()

SAMPLE_SIZE = 10


def ask_yes(prompt: str) -> bool:
    """Prompt that only accepts the literal answer YES."""
    answer = click.prompt(f"{prompt} Type YES to confirm", default="", show_default=False)
    return answer.strip() == "YES"


def build_matcher() -> LocalImageMatcher:
    overrides = load_overrides(settings.assets.overrides_file)
    candidates = list_local_images(settings.assets.roots, base_dir=settings.assets.base_dir)
    return LocalImageMatcher(candidates, overrides.image_overrides)


def build_describer() -> DescriptionResolver:
    overrides = load_overrides(settings.assets.overrides_file)
    return DescriptionResolver(overrides.text_overrides, overrides.description_patterns)


def print_batch_failure(err: PartialBatchFailure) -> None:
    console.print(f"[red]{err}[/red]")
    table = Table(title="Failed ids")
    table.add_column("Kind")
    table.add_column("Ids")
    table.add_column("Message")
    for batch_error in err.result.errors:
        table.add_row(batch_error.kind, ", ".join(batch_error.ids), batch_error.message)
    console.print(table)


def fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    sys.exit(1)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def cli(debug):
    """Compass LK - Destination maintenance tools"""
    if debug:
        from compass.utils.logging import setup_logging
        setup_logging(level="DEBUG")


@cli.command()
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Delete without prompting")
@click.option("--dry-run", is_flag=True, help="Write the plan backup but delete nothing")
@click.option("--csv", "export_csv", is_flag=True, help="Also write the plan as CSV")
@click.option("--batch-size", type=click.IntRange(min=1), default=None, help="Ids per delete request")
def dedupe(assume_yes: bool, dry_run: bool, export_csv: bool, batch_size: int):
    """Remove duplicate destinations, keeping the most complete record."""
    from compass.maintenance import remove_duplicates

    console.print("\n[bold blue]Compass LK - Remove Duplicates[/bold blue]\n")
    try:
        with SupabaseStore.from_settings() as store:
            report = remove_duplicates.run(
                store,
                confirm=ask_yes,
                assume_yes=assume_yes,
                dry_run=dry_run,
                batch_size=batch_size,
                export_csv=export_csv,
            )
    except (CompassError, httpx.HTTPError) as e:
        fail(str(e))

    if report.plan.is_empty:
        console.print("[green]No duplicate groups found.[/green]")
        return

    table = Table(title=f"{len(report.plan.groups)} duplicate groups")
    table.add_column("Keep")
    table.add_column("Name")
    table.add_column("Remove")
    for group in report.plan.groups[:SAMPLE_SIZE]:
        table.add_row(
            group.keeper.id,
            group.keeper.name,
            ", ".join(f'{r.id} ("{r.name}")' for r in group.remove),
        )
    console.print(table)
    if len(report.plan.groups) > SAMPLE_SIZE:
        console.print(f"[dim]...and {len(report.plan.groups) - SAMPLE_SIZE} more groups[/dim]")

    console.print(f"Backup: {report.backup_path}")
    if report.csv_path:
        console.print(f"CSV: {report.csv_path}")

    if report.dry_run or report.aborted:
        console.print("[yellow]No deletions performed.[/yellow]")
        return

    try:
        report.raise_for_errors()
    except PartialBatchFailure as e:
        print_batch_failure(e)
        sys.exit(1)
    console.print(f"[green]Deleted {len(report.deleted_ids)} rows.[/green]")


@cli.command("assign-images")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Update without prompting")
@click.option("--dry-run", is_flag=True, help="Write the plan backup but update nothing")
@click.option("--batch-size", type=click.IntRange(min=1), default=None, help="Updates per batch")
def assign_images(assume_yes: bool, dry_run: bool, batch_size: int):
    """Attach local pictures to destinations without an image_url."""
    from compass.maintenance import assign_local_images

    console.print("\n[bold blue]Compass LK - Assign Local Images[/bold blue]\n")
    try:
        matcher = build_matcher()
        console.print(f"Found {len(matcher)} local image files")
        with SupabaseStore.from_settings() as store:
            report = assign_local_images.run(
                store,
                matcher,
                confirm=ask_yes,
                assume_yes=assume_yes,
                dry_run=dry_run,
                batch_size=batch_size,
            )
    except (CompassError, httpx.HTTPError) as e:
        fail(str(e))

    if not report.assignments:
        console.print("[yellow]No suitable local images found to assign.[/yellow]")
        return

    table = Table(title=f"{len(report.assignments)} assignments")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Image")
    for a in report.assignments[:SAMPLE_SIZE]:
        table.add_row(a.id, a.name, a.image_url)
    console.print(table)
    console.print(f"Backup: {report.backup_path}")

    if report.dry_run or report.aborted:
        console.print("[yellow]No changes made.[/yellow]")
        return

    try:
        report.raise_for_errors()
    except PartialBatchFailure as e:
        print_batch_failure(e)
        sys.exit(1)
    console.print(f"[green]Assigned {len(report.result.succeeded)} local images.[/green]")


@cli.command()
@click.argument("entity_id")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Delete without prompting")
def delete(entity_id: str, assume_yes: bool):
    """Delete one destination by id and verify it is gone."""
    from compass.maintenance import delete_destination

    try:
        with SupabaseStore.from_settings() as store:
            report = delete_destination.run(store, entity_id, confirm=ask_yes, assume_yes=assume_yes)
    except VerificationMismatch as e:
        fail(f"Delete failed: {e}")
    except PermissionDeniedError as e:
        fail(f"Delete rejected by policy: {e}")
    except (CompassError, httpx.HTTPError) as e:
        fail(str(e))

    if report.not_found:
        console.print("[yellow]No destination found with that id. Nothing to delete.[/yellow]")
    elif report.aborted:
        console.print("[yellow]Aborted. No deletions performed.[/yellow]")
    else:
        console.print(f"[green]Destination id={entity_id} deleted successfully.[/green]")


@cli.command("scan-descriptions")
@click.option("--csv", "csv_path", type=click.Path(path_type=Path), default=Path("scan_null_descriptions.csv"))
@click.option("--suggest", is_flag=True, help="Show the fallback text each row would display")
def scan_descriptions_cmd(csv_path: Path, suggest: bool):
    """List destinations with a NULL description."""
    from compass.maintenance import scan_descriptions

    try:
        with SupabaseStore.from_settings() as store:
            entities = scan_descriptions.run(store, csv_path=csv_path)
        describer = build_describer() if suggest else None
    except (CompassError, httpx.HTTPError) as e:
        fail(str(e))

    if not entities:
        console.print("[green]No destinations with NULL description found.[/green]")
        return

    table = Table(title=f"{len(entities)} destination(s) with NULL description")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Province")
    if describer:
        table.add_column("Fallback text")
    for e in entities:
        row = [e.id, e.name, str(e.get("province_id", "-"))]
        if describer:
            text = describer.describe(e.name, e.province_name)
            row.append(text[:60] + "..." if len(text) > 60 else text)
        table.add_row(*row)
    console.print(table)
    console.print(f"Wrote CSV to {csv_path}")

    if describer:
        collisions = describer.find_pattern_collisions(e.name for e in entities)
        for pattern, names in collisions.items():
            console.print(f"[yellow]Pattern {pattern!r} matches several places: {', '.join(names)}[/yellow]")


@cli.command()
@click.argument("name")
@click.option("--province", default=None, help="Province name for fallbacks")
def match(name: str, province: str):
    """Preview image matches and fallback text for one name."""
    try:
        matcher = build_matcher()
        describer = build_describer()
    except ConfigurationError as e:
        fail(str(e))

    console.print(f"\n[bold blue]Matches for {name!r}[/bold blue]\n")

    override = matcher.find_manual_override(name)
    if override:
        console.print(f"Override: [green]{override}[/green]")

    table = Table()
    table.add_column("#")
    table.add_column("Root")
    table.add_column("Url")
    for n, c in enumerate(matcher.find_candidates(name), start=1):
        table.add_row(str(n), c.source, c.url)
    console.print(table)

    console.print(f"Primary image: {matcher.primary_image(name, province) or '-'}")
    console.print(f"Description: {describer.describe(name, province)}")


@cli.command()
@click.option("--keep", type=int, default=None, help="Remove all but the newest N backups per kind")
def backups(keep: int):
    """List plan backups."""
    from compass.backup import cleanup_old_backups, list_backups

    if keep is not None:
        removed = cleanup_old_backups(keep_count=keep)
        console.print(f"Removed {len(removed)} old backups")

    files = list_backups()
    if not files:
        console.print("[yellow]No backups found[/yellow]")
        return

    table = Table()
    table.add_column("File")
    table.add_column("Size")
    for f in files:
        table.add_row(f.name, f"{f.stat().st_size:,} bytes")
    console.print(table)


if __name__ == "__main__":
    cli()
