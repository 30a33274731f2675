"""
Backup utilities for maintenance operations.
Writes the full computed plan to a timestamped artifact before any destructive step.
"""
import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Sequence

from loguru import logger

from compass.config import settings
from compass.utils.text import sanitize_filename


def _timestamp() -> str:
    # Microseconds so two runs in the same second do not collide
    return datetime.now().strftime("%Y%m%d_%H%M%S_%f")


def write_plan_backup(kind: str, payload: dict[str, Any], backup_dir: Path | None = None) -> Path:
    """Write a JSON record of a plan before acting on it.

    Args:
        kind: Operation name used as the file prefix (e.g. "duplicates")
        payload: Plan contents (groups, assignments, ...)
        backup_dir: Target directory, defaults to settings

    Returns:
        Path of the written file
    """
    backup_dir = Path(backup_dir or settings.maintenance.backup_dir)
    backup_dir.mkdir(parents=True, exist_ok=True)

    path = backup_dir / f"{sanitize_filename(kind)}_backup_{_timestamp()}.json"
    record = {"timestamp": datetime.now(timezone.utc).isoformat(), "kind": kind, **payload}
    path.write_text(json.dumps(record, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
    logger.info(f"Backup of {kind} plan written to {path}")
    return path


def write_csv(path: Path, header: Sequence[str], rows: Iterable[Sequence[Any]]) -> Path:
    """Write a CSV report, creating the parent directory."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)
    logger.info(f"CSV written to {path}")
    return path


def csv_path_for(backup_path: Path) -> Path:
    """CSV companion of a JSON backup file."""
    return Path(backup_path).with_suffix(".csv")


def list_backups(backup_dir: Path | None = None, kind: str | None = None) -> list[Path]:
    """List backup files, newest first.

    Args:
        backup_dir: Directory to scan, defaults to settings
        kind: Only this operation's backups when set
    """
    backup_dir = Path(backup_dir or settings.maintenance.backup_dir)
    if not backup_dir.exists():
        return []

    pattern = f"{kind}_backup_*.json" if kind else "*_backup_*.json"
    return sorted(backup_dir.glob(pattern), key=lambda p: p.stem.split("_backup_")[-1], reverse=True)


def load_backup(path: Path) -> dict[str, Any]:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def cleanup_old_backups(backup_dir: Path | None = None, keep_count: int = 10) -> list[Path]:
    """Remove old backups, keeping the most recent ones per operation.

    Args:
        backup_dir: Directory to clean, defaults to settings
        keep_count: Number of backups to keep for each kind

    Returns:
        Removed files
    """
    removed = []
    by_kind: dict[str, list[Path]] = {}
    for f in list_backups(backup_dir):
        by_kind.setdefault(f.stem.split("_backup_")[0], []).append(f)

    for files in by_kind.values():
        for f in files[keep_count:]:
            companion = csv_path_for(f)
            if companion.exists():
                companion.unlink()
            f.unlink()
            removed.append(f)
            logger.info(f"Removed old backup: {f}")

    return removed
