"""
Enumeration of local image assets.

Scans the asset roots once per run and produces ImageCandidate records for
the matcher. The matcher never scans directories itself.
"""

from collections.abc import Iterable, Sequence
from pathlib import Path

from loguru import logger

from compass.models import ImageCandidate
from compass.utils.text import normalize_for_key

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


def is_image_file(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS


def _web_url(path: Path, base_dir: Path | None) -> str:
    """Absolute web path ("/src/pictures/x.jpg") relative to the app root."""
    if base_dir is not None:
        try:
            return "/" + path.resolve().relative_to(base_dir.resolve()).as_posix()
        except ValueError:
            pass
    return path.as_posix()


def make_candidate(path: str | Path, source: str, url: str | None = None) -> ImageCandidate:
    """Build a candidate from a known file path."""
    path = Path(path)
    return ImageCandidate(
        path=path.as_posix(),
        key=normalize_for_key(path.stem),
        url=url or path.as_posix(),
        source=source,
    )


def scan_root(root: Path, source: str, base_dir: Path | None = None) -> list[ImageCandidate]:
    """Recursively list image files under one root, sorted by path."""
    root = Path(root)
    if not root.is_dir():
        logger.warning(f"Image root not found, skipping: {root}")
        return []

    files = sorted((p for p in root.rglob("*") if is_image_file(p)), key=lambda p: p.as_posix())
    candidates = []
    for f in files:
        url = _web_url(f, base_dir)
        candidates.append(make_candidate(url, source, url=url))

    logger.debug(f"Found {len(candidates)} images under {root} [{source}]")
    return candidates


def list_local_images(
    roots: Sequence[tuple[str, Path]],
    base_dir: Path | None = None,
    primary_tag: str = "primary",
) -> list[ImageCandidate]:
    """
    Enumerate image files under the given roots.

    Args:
        roots: (source tag, directory) pairs
        base_dir: Directory urls are made relative to (the web app root)
        primary_tag: Tag whose candidates sort first

    Returns:
        Candidates with primary-root files ahead of the rest
    """
    candidates: list[ImageCandidate] = []
    for source, root in roots:
        candidates.extend(scan_root(root, source, base_dir))

    logger.info(f"Found {len(candidates)} local image files in {len(roots)} roots")
    return order_by_root(candidates, primary_tag)


def order_by_root(candidates: Iterable[ImageCandidate], primary_tag: str = "primary") -> list[ImageCandidate]:
    """Stable sort putting primary-root candidates first."""
    return sorted(candidates, key=lambda c: c.source != primary_tag)
