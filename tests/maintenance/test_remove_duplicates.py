# SPDX-License-Identifier: MIT
"""Tests for the duplicate removal job."""

import csv

import httpx
import pytest

from compass.backup import list_backups, load_backup
from compass.errors import PartialBatchFailure
from compass.maintenance import remove_duplicates
from compass.store import SupabaseStore


class TestRemoveDuplicates:

    def test_dry_run_writes_plan_only(self, make_store, sample_rows, tmp_path):
        store, backend = make_store(sample_rows)
        report = remove_duplicates.run(store, assume_yes=True, dry_run=True, backup_dir=tmp_path)

        assert report.dry_run
        assert report.plan.remove_ids == ["a", "z9"]
        assert report.result is None
        assert backend.requests_by("DELETE") == []
        assert list_backups(tmp_path, kind="duplicates") == [report.backup_path]

    def test_plan_backup_contents(self, make_store, sample_rows, tmp_path):
        store, _ = make_store(sample_rows)
        report = remove_duplicates.run(store, dry_run=True, backup_dir=tmp_path)

        record = load_backup(report.backup_path)
        assert record["kind"] == "duplicates"
        assert record["group_count"] == 2
        assert [(g["keep"]["id"], [r["id"] for r in g["remove"]]) for g in record["groups"]] == [
            ("b", ["a"]),
            ("a1", ["z9"]),
        ]

    def test_no_confirmation_deletes_nothing(self, make_store, sample_rows, tmp_path):
        store, backend = make_store(sample_rows)
        report = remove_duplicates.run(store, backup_dir=tmp_path)

        assert report.aborted
        assert report.backup_path.exists()
        assert backend.requests_by("DELETE") == []

    def test_declined_prompt(self, make_store, sample_rows, tmp_path):
        store, backend = make_store(sample_rows)
        prompts = []

        def decline(prompt):
            prompts.append(prompt)
            return False

        report = remove_duplicates.run(store, confirm=decline, backup_dir=tmp_path)

        assert report.aborted
        assert prompts == [remove_duplicates.CONFIRM_PROMPT]
        assert len(backend.rows) == 5

    def test_confirmed_delete(self, make_store, sample_rows, tmp_path):
        store, backend = make_store(sample_rows)
        report = remove_duplicates.run(store, confirm=lambda prompt: True, backup_dir=tmp_path)

        report.raise_for_errors()
        assert sorted(report.deleted_ids) == ["a", "z9"]
        assert set(backend.rows) == {"b", "a1", "k1"}

    def test_rerun_finds_nothing(self, make_store, sample_rows, tmp_path):
        store, _ = make_store(sample_rows)
        remove_duplicates.run(store, assume_yes=True, backup_dir=tmp_path)
        report = remove_duplicates.run(store, assume_yes=True, backup_dir=tmp_path / "second")

        assert report.plan.is_empty
        assert report.backup_path is None
        assert not (tmp_path / "second").exists()

    def test_csv_export(self, make_store, sample_rows, tmp_path):
        store, _ = make_store(sample_rows)
        report = remove_duplicates.run(store, dry_run=True, backup_dir=tmp_path, export_csv=True)

        with open(report.csv_path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["group_index", "keep_id", "keep_name", "remove_id", "remove_name"]
        assert rows[1:] == [
            ["1", "b", "Sigiriya Rock", "a", "sigiriya rock!!"],
            ["2", "a1", "temple a", "z9", "Temple A"],
        ]

    def test_blocked_rows_surface_as_failure(self, make_store, sample_rows, tmp_path):
        store, _ = make_store(sample_rows, protected={"z9"})
        report = remove_duplicates.run(store, assume_yes=True, backup_dir=tmp_path)

        assert report.deleted_ids == ["a"]
        with pytest.raises(PartialBatchFailure) as exc_info:
            report.raise_for_errors()
        assert exc_info.value.result.failed_ids == ["z9"]

    def test_empty_table(self, make_store, tmp_path):
        store, _ = make_store([])
        report = remove_duplicates.run(store, assume_yes=True, backup_dir=tmp_path)
        assert report.plan.is_empty
        assert report.backup_path is None


class TestUnstablePaging:
    """Rows repeated across pages by the backend."""

    def test_keeper_not_marked_for_removal(self, tmp_path):
        pages = {
            "0": [{"id": "a", "name": "Temple", "description": "Old."}, {"id": "c", "name": "temple"}],
            "2": [{"id": "a", "name": "Temple", "description": "Old."}],
        }

        def handler(request):
            return httpx.Response(200, json=pages[request.url.params["offset"]])

        client = httpx.Client(transport=httpx.MockTransport(handler))
        store = SupabaseStore("https://x.supabase.co/rest/v1", "key", page_size=2, http_client=client)

        report = remove_duplicates.run(store, dry_run=True, backup_dir=tmp_path)
        client.close()

        assert report.plan.keeper_ids == ["a"]
        assert report.plan.remove_ids == ["c"]
