"""Tests for MaintenanceService integrity reconciliation."""
from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

from conftest import VIDEO_A, VIDEO_B
from transcriptor.cache import LinkManager, MaintenanceService, RegistryStore


class TestValidateIntegrity:
    def test_empty_registry(self, maintenance: MaintenanceService):
        result = maintenance.validate_integrity()
        assert result.checked == 0
        assert not result.changed

    def test_consistent_registry_not_saved(
        self, maintenance: MaintenanceService, registry_store: RegistryStore, link_manager: LinkManager, add_cached, project_dir: Path
    ):
        add_cached(VIDEO_A)
        link_manager.attach(VIDEO_A, project_dir)
        writes_before = registry_store.stats()["document_writes"]

        result = maintenance.validate_integrity()

        assert result.checked == 1
        assert not result.changed
        assert registry_store.stats()["document_writes"] == writes_before

    def test_orphan_entry_removed_with_its_links(
        self, maintenance: MaintenanceService, registry_store: RegistryStore, link_manager: LinkManager, add_cached, project_dir: Path
    ):
        add_cached(VIDEO_A)
        add_cached(VIDEO_B)
        link_manager.attach(VIDEO_A, project_dir)
        link_manager.blob_store.delete(VIDEO_A)

        result = maintenance.validate_integrity()

        assert result.orphaned == 1
        assert result.links_removed == 1
        assert not os.path.lexists(project_dir / "transcripts" / f"{VIDEO_A}.md")
        assert set(registry_store.load()) == {VIDEO_B}

    def test_stale_link_pruned(
        self, maintenance: MaintenanceService, registry_store: RegistryStore, link_manager: LinkManager, add_cached, project_dir: Path, tmp_path: Path
    ):
        add_cached(VIDEO_A, links=[str(tmp_path / "vanished")])
        link_manager.attach(VIDEO_A, project_dir)

        # Point the project link somewhere else
        link = project_dir / "transcripts" / f"{VIDEO_A}.md"
        other = tmp_path / "other.md"
        other.write_text("x", encoding="utf-8")
        link.unlink()
        os.symlink(str(other), link)

        result = maintenance.validate_integrity()

        assert result.orphaned == 0
        assert result.links_removed == 2
        assert not os.path.lexists(link)
        assert registry_store.load()[VIDEO_A].links == []

    def test_regular_file_at_link_path_is_left_alone(
        self, maintenance: MaintenanceService, registry_store: RegistryStore, add_cached, project_dir: Path
    ):
        add_cached(VIDEO_A, links=[str(project_dir)])
        path = project_dir / "transcripts" / f"{VIDEO_A}.md"
        path.parent.mkdir()
        path.write_text("user file", encoding="utf-8")

        result = maintenance.validate_integrity()

        assert result.links_removed == 1
        assert path.read_text(encoding="utf-8") == "user file"
        assert registry_store.load()[VIDEO_A].links == []

    def test_second_pass_finds_nothing(
        self, maintenance: MaintenanceService, link_manager: LinkManager, add_cached, project_dir: Path, tmp_path: Path
    ):
        add_cached(VIDEO_A, links=[str(tmp_path / "vanished")])
        add_cached(VIDEO_B)
        link_manager.attach(VIDEO_B, project_dir)
        link_manager.blob_store.delete(VIDEO_B)

        first = maintenance.validate_integrity()
        second = maintenance.validate_integrity()

        assert first.changed
        assert not second.changed
        assert second.checked == 1


class TestLinkConvergence:
    """Stale links are pruned individually; valid links on the same entry survive."""

    def test_only_stale_link_removed(
        self, maintenance: MaintenanceService, registry_store: RegistryStore, link_manager: LinkManager, add_cached, tmp_path: Path
    ):
        first, second = tmp_path / "p1", tmp_path / "p2"
        add_cached(VIDEO_A)
        link_manager.attach(VIDEO_A, first)
        link_manager.attach(VIDEO_A, second)
        (second / "transcripts" / f"{VIDEO_A}.md").unlink()

        result = maintenance.validate_integrity()

        assert result.links_removed == 1
        assert result.links_failed == 0
        assert registry_store.load()[VIDEO_A].links == [str(first)]
        assert (first / "transcripts" / f"{VIDEO_A}.md").is_symlink()

    def test_unremovable_stale_link_counted_and_pass_continues(
        self, maintenance: MaintenanceService, registry_store: RegistryStore, link_manager: LinkManager, add_cached, tmp_path: Path
    ):
        first, second = tmp_path / "p1", tmp_path / "p2"
        add_cached(VIDEO_A)
        add_cached(VIDEO_B)
        link_manager.attach(VIDEO_A, first)
        link_manager.attach(VIDEO_A, second)
        link_manager.attach(VIDEO_B, first)

        stale = second / "transcripts" / f"{VIDEO_A}.md"
        other = tmp_path / "other.md"
        other.write_text("x", encoding="utf-8")
        stale.unlink()
        os.symlink(str(other), stale)

        with patch("transcriptor.cache.maintenance.os.unlink", side_effect=PermissionError("denied")):
            result = maintenance.validate_integrity()

        assert result.checked == 2
        assert result.links_removed == 1
        assert result.links_failed == 1
        assert len(result.errors) == 1
        assert "denied" in result.errors[0].message
        assert os.path.islink(stale)
        registry = registry_store.load()
        assert registry[VIDEO_A].links == [str(first)]
        assert registry[VIDEO_B].links == [str(first)]
