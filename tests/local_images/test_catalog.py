# SPDX-License-Identifier: MIT
"""Tests for local image enumeration."""

from pathlib import Path

from compass.local_images.catalog import list_local_images, make_candidate, order_by_root


def touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x89PNG")
    return path


class TestListLocalImages:
    """Directory scanning."""

    def test_primary_root_listed_first(self, tmp_path):
        touch(tmp_path / "src/assets/destinations/lovers-leap-old.jpg")
        touch(tmp_path / "src/pictures/Central/loversleap.jpg")

        candidates = list_local_images(
            [("fallback", tmp_path / "src/assets/destinations"), ("primary", tmp_path / "src/pictures")],
            base_dir=tmp_path,
        )

        assert [c.source for c in candidates] == ["primary", "fallback"]
        assert candidates[0].url == "/src/pictures/Central/loversleap.jpg"
        assert candidates[0].key == "loversleap"
        assert candidates[0].filename == "loversleap.jpg"
        assert candidates[1].key == "loversleapold"

    def test_only_image_extensions(self, tmp_path):
        touch(tmp_path / "pics/a.JPG")
        touch(tmp_path / "pics/b.webp")
        touch(tmp_path / "pics/notes.txt")
        touch(tmp_path / "pics/c.svg")

        candidates = list_local_images([("primary", tmp_path / "pics")], base_dir=tmp_path)
        assert sorted(c.filename for c in candidates) == ["a.JPG", "b.webp"]

    def test_missing_root_is_skipped(self, tmp_path):
        touch(tmp_path / "pics/ella.png")
        candidates = list_local_images(
            [("primary", tmp_path / "pics"), ("fallback", tmp_path / "does-not-exist")],
            base_dir=tmp_path,
        )
        assert [c.filename for c in candidates] == ["ella.png"]

    def test_nested_directories_scanned(self, tmp_path):
        touch(tmp_path / "pics/New folder/horton plains.jpg")
        candidates = list_local_images([("primary", tmp_path / "pics")], base_dir=tmp_path)
        assert candidates[0].url == "/pics/New folder/horton plains.jpg"
        assert candidates[0].key == "hortonplains"

    def test_order_is_stable_across_runs(self, tmp_path):
        for name in ("b.jpg", "a.jpg", "c/d.jpg"):
            touch(tmp_path / "pics" / name)
        roots = [("primary", tmp_path / "pics")]
        first = list_local_images(roots, base_dir=tmp_path)
        assert first == list_local_images(roots, base_dir=tmp_path)


class TestOrderByRoot:

    def test_ties_keep_input_order(self):
        candidates = [
            make_candidate("/f/one.jpg", "fallback"),
            make_candidate("/p/two.jpg", "primary"),
            make_candidate("/f/three.jpg", "fallback"),
            make_candidate("/p/four.jpg", "primary"),
        ]
        ordered = order_by_root(candidates)
        assert [c.filename for c in ordered] == ["two.jpg", "four.jpg", "one.jpg", "three.jpg"]
