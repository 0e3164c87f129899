"""Tests for CleanupService against real storage."""
from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import VIDEO_A, VIDEO_B, VIDEO_C
from transcriptor.errors import InvalidVideoIdError
from transcriptor.services import CleanupService


@pytest.fixture
def cleanup(registry_store, blob_store, link_manager) -> CleanupService:
    return CleanupService(registry_store, blob_store, link_manager)


class TestFindOlderThan:
    def test_boundary_is_exclusive(self, cleanup: CleanupService, add_cached):
        add_cached(VIDEO_A, date_added="251031T2359")
        add_cached(VIDEO_B, date_added="251101T0000")
        add_cached(VIDEO_C, date_added="251015T0800")

        assert cleanup.find_older_than("2025-11-01") == [VIDEO_C, VIDEO_A]

    def test_invalid_cutoff(self, cleanup: CleanupService):
        with pytest.raises(ValueError, match="Invalid date format"):
            cleanup.find_older_than("2025/11/01")

    def test_future_cutoff_detection(self):
        assert CleanupService.is_future_cutoff("2030-01-01", today=date(2025, 11, 22))
        assert not CleanupService.is_future_cutoff("2025-11-22", today=date(2025, 11, 22))


class TestCleanBefore:
    """Deleting by cutoff date."""

    def test_deletes_entry_blob_and_links(
        self, cleanup: CleanupService, link_manager, registry_store, blob_store, add_cached, tmp_path: Path
    ):
        add_cached(VIDEO_A, date_added="251001T1200")
        add_cached(VIDEO_B, date_added="251120T1200")
        projects = [tmp_path / "p1", tmp_path / "p2"]
        for project in projects:
            link_manager.attach(VIDEO_A, project)

        result = cleanup.clean_before("2025-11-01")

        assert result.deleted == 1
        assert result.deleted_ids == [VIDEO_A]
        assert result.links_removed == 2
        assert result.failed == 0
        assert set(registry_store.load()) == {VIDEO_B}
        assert not blob_store.exists(VIDEO_A)
        for project in projects:
            assert not os.path.lexists(project / "transcripts" / f"{VIDEO_A}.md")

    def test_nothing_matches(self, cleanup: CleanupService, registry_store, add_cached):
        add_cached(VIDEO_A, date_added="251120T1200")
        result = cleanup.clean_before("2025-11-01")
        assert (result.deleted, result.failed) == (0, 0)
        assert VIDEO_A in registry_store.load()

    def test_missing_blob_still_deletes_entry(self, cleanup: CleanupService, registry_store, blob_store, add_cached):
        add_cached(VIDEO_A, date_added="251001T1200")
        blob_store.delete(VIDEO_A)

        result = cleanup.clean_before("2025-11-01")

        assert result.deleted == 1
        assert VIDEO_A not in registry_store.load()

    def test_vanished_links_counted_as_skipped(self, cleanup: CleanupService, add_cached, tmp_path: Path):
        add_cached(VIDEO_A, date_added="251001T1200", links=[str(tmp_path / "gone")])
        result = cleanup.clean_before("2025-11-01")
        assert result.links_skipped == 1
        assert result.deleted == 1

    def test_unremovable_link_recorded_but_entry_deleted(
        self, cleanup: CleanupService, registry_store, add_cached, project_dir: Path
    ):
        add_cached(VIDEO_A, date_added="251001T1200", links=[str(project_dir)])
        user_file = project_dir / "transcripts" / f"{VIDEO_A}.md"
        user_file.parent.mkdir()
        user_file.write_text("mine", encoding="utf-8")

        result = cleanup.clean_before("2025-11-01")

        assert result.deleted == 1
        assert result.failed == 0
        assert len(result.errors) == 1
        assert user_file.read_text(encoding="utf-8") == "mine"
        assert VIDEO_A not in registry_store.load()

    def test_blob_delete_failure_keeps_entry_and_continues(
        self, cleanup: CleanupService, registry_store, blob_store, add_cached
    ):
        add_cached(VIDEO_A, date_added="251001T1200")
        add_cached(VIDEO_B, date_added="251002T1200")
        original_delete = blob_store.delete

        def flaky_delete(video_id):
            if video_id == VIDEO_A:
                raise PermissionError("permission denied")
            original_delete(video_id)

        with patch.object(blob_store, "delete", side_effect=flaky_delete):
            result = cleanup.clean_before("2025-11-01")

        assert result.failed == 1
        assert result.deleted_ids == [VIDEO_B]
        assert result.errors[0].target == VIDEO_A
        assert set(registry_store.load()) == {VIDEO_A}


class TestCleanIds:
    def test_deletes_named_entries(self, cleanup: CleanupService, registry_store, add_cached):
        add_cached(VIDEO_A)
        add_cached(VIDEO_B)

        result = cleanup.clean_ids([VIDEO_A, VIDEO_A])

        assert result.deleted_ids == [VIDEO_A]
        assert set(registry_store.load()) == {VIDEO_B}

    def test_unknown_id_reported_as_failure(self, cleanup: CleanupService, add_cached):
        add_cached(VIDEO_A)
        result = cleanup.clean_ids([VIDEO_B, VIDEO_A])
        assert result.failed == 1
        assert result.errors[0].message == "Not found in registry"
        assert result.deleted == 1

    def test_invalid_id_rejected_before_any_deletion(self, cleanup: CleanupService, registry_store, add_cached):
        add_cached(VIDEO_A)
        with pytest.raises(InvalidVideoIdError):
            cleanup.clean_ids([VIDEO_A, "../../etc"])
        assert VIDEO_A in registry_store.load()
