"""Tests for RegistryStore: initialization, loading, atomic saves, migration."""
from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import VIDEO_A, VIDEO_B
from transcriptor.cache import RegistryStore
from transcriptor.errors import CorruptRegistryError, RegistrySaveError
from transcriptor.models import RegistryEntry
from transcriptor.utils.paths import StoragePaths


def write_document(paths: StoragePaths, document) -> None:
    paths.root.mkdir(parents=True, exist_ok=True)
    paths.registry_path.write_text(json.dumps(document), encoding="utf-8")


class TestInitialize:
    def test_creates_layout_and_empty_document(self, storage_paths: StoragePaths):
        store = RegistryStore(storage_paths)
        store.initialize()

        assert storage_paths.transcripts_dir.is_dir()
        assert json.loads(storage_paths.registry_path.read_text(encoding="utf-8")) == {}

    def test_is_idempotent(self, storage_paths: StoragePaths):
        store = RegistryStore(storage_paths)
        store.initialize()
        store.initialize()
        assert store.stats()["document_writes"] == 1

    def test_keeps_existing_document(self, storage_paths: StoragePaths):
        write_document(storage_paths, {VIDEO_A: {"date_added": "251101T1200", "channel": "c", "title": "t", "links": []}})
        store = RegistryStore(storage_paths)
        store.initialize()
        assert VIDEO_A in store.load()


class TestCorruption:
    """Corrupt documents are reported, never repaired."""

    def test_invalid_json(self, storage_paths: StoragePaths):
        storage_paths.root.mkdir(parents=True)
        storage_paths.registry_path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CorruptRegistryError, match="JSON parse error"):
            RegistryStore(storage_paths).initialize()
        assert storage_paths.registry_path.read_text(encoding="utf-8") == "{not json"

    def test_not_an_object(self, storage_paths: StoragePaths):
        write_document(storage_paths, ["a", "list"])
        with pytest.raises(CorruptRegistryError, match="JSON object"):
            RegistryStore(storage_paths).load()

    def test_invalid_video_id_key(self, storage_paths: StoragePaths):
        write_document(storage_paths, {"../../etc/x": {"date_added": "251101T1200"}})
        with pytest.raises(CorruptRegistryError, match="Invalid video ID"):
            RegistryStore(storage_paths).load()

    def test_missing_date(self, storage_paths: StoragePaths):
        write_document(storage_paths, {VIDEO_A: {"channel": "c"}})
        with pytest.raises(CorruptRegistryError, match="date_added"):
            RegistryStore(storage_paths).load()

    def test_unrecognized_date(self, storage_paths: StoragePaths):
        write_document(storage_paths, {VIDEO_A: {"date_added": "yesterday"}})
        with pytest.raises(CorruptRegistryError):
            RegistryStore(storage_paths).load()


class TestLoadAndSave:
    def test_save_then_load(self, registry_store: RegistryStore):
        registry_store.save({VIDEO_A: RegistryEntry("251101T1200", "Chan", "Title", ["/work/p"])})

        fresh = RegistryStore(registry_store.paths)
        entry = fresh.load()[VIDEO_A]
        assert entry == RegistryEntry("251101T1200", "Chan", "Title", ["/work/p"])

    def test_document_shape_on_disk(self, registry_store: RegistryStore):
        registry_store.save({VIDEO_A: RegistryEntry("251101T1200", "Chan", "Title", [])})
        document = json.loads(registry_store.registry_path.read_text(encoding="utf-8"))
        assert document == {
            VIDEO_A: {"date_added": "251101T1200", "channel": "Chan", "title": "Title", "links": []}
        }

    def test_load_returns_deep_copies(self, registry_store: RegistryStore):
        registry_store.save({VIDEO_A: RegistryEntry("251101T1200", links=["/work/p"])})

        first = registry_store.load()
        first[VIDEO_A].links.append("/work/other")
        first[VIDEO_B] = RegistryEntry("251101T1200")

        second = registry_store.load()
        assert second[VIDEO_A].links == ["/work/p"]
        assert VIDEO_B not in second

    def test_get_entry_counts_hits_and_misses(self, registry_store: RegistryStore):
        registry_store.save({VIDEO_A: RegistryEntry("251101T1200")})

        assert registry_store.get_entry(VIDEO_A) is not None
        assert registry_store.get_entry(VIDEO_B) is None
        stats = registry_store.stats()
        assert stats["entry_hits"] == 1
        assert stats["entry_misses"] == 1
        assert stats["hit_rate"] == "50.00%"

    def test_metadata_only(self, registry_store: RegistryStore):
        registry_store.save({VIDEO_A: RegistryEntry("251101T1200", "Chan", "Title", ["/a", "/b"])})
        (metadata,) = registry_store.load_metadata_only()
        assert metadata.video_id == VIDEO_A
        assert metadata.link_count == 2

    def test_invalidate_rereads_document(self, registry_store: RegistryStore):
        registry_store.load()
        other = RegistryStore(registry_store.paths)
        other.save({VIDEO_A: RegistryEntry("251101T1200")})

        assert VIDEO_A not in registry_store.load()
        registry_store.invalidate()
        assert VIDEO_A in registry_store.load()

    @pytest.mark.parametrize(
        "entry",
        [
            RegistryEntry("2025-11-01"),
            RegistryEntry("251101T1200", links=["relative/path"]),
            RegistryEntry("251101T1200", links=["/a", "/a"]),
        ],
    )
    def test_save_rejects_invalid_entries(self, registry_store: RegistryStore, entry):
        with pytest.raises(RegistrySaveError, match="invalid structure"):
            registry_store.save({VIDEO_A: entry})

    def test_save_rejects_invalid_key(self, registry_store: RegistryStore):
        with pytest.raises(RegistrySaveError):
            registry_store.save({"bad": RegistryEntry("251101T1200")})


class TestAtomicity:
    """A failed write leaves the previous document intact."""

    def test_failed_rename_keeps_previous_document(self, registry_store: RegistryStore):
        registry_store.save({VIDEO_A: RegistryEntry("251101T1200")})
        before = registry_store.registry_path.read_text(encoding="utf-8")

        with patch("transcriptor.utils.paths.os.replace", side_effect=OSError("simulated crash")):
            with pytest.raises(RegistrySaveError, match="simulated crash"):
                registry_store.save({VIDEO_B: RegistryEntry("251101T1200")})

        assert registry_store.registry_path.read_text(encoding="utf-8") == before
        leftovers = [name for name in os.listdir(registry_store.paths.root) if name.endswith(".tmp")]
        assert leftovers == []
        # The in-memory copy still reflects the last successful save
        assert set(registry_store.load()) == {VIDEO_A}

    def test_failure_after_rename_leaves_new_document(self, registry_store: RegistryStore):
        registry_store.save({VIDEO_A: RegistryEntry("251101T1200")})
        real_replace = os.replace

        def replace_then_crash(src, dst):
            real_replace(src, dst)
            raise OSError("crashed after rename")

        with patch("transcriptor.utils.paths.os.replace", side_effect=replace_then_crash):
            with pytest.raises(RegistrySaveError, match="crashed after rename"):
                registry_store.save({VIDEO_B: RegistryEntry("251102T0800")})

        on_disk = json.loads(registry_store.registry_path.read_text(encoding="utf-8"))
        assert set(on_disk) == {VIDEO_B}
        assert set(RegistryStore(registry_store.paths).load()) == {VIDEO_B}
        leftovers = [name for name in os.listdir(registry_store.paths.root) if name.endswith(".tmp")]
        assert leftovers == []


class TestMigrationOnLoad:
    """Legacy documents are normalized, backed up, and persisted."""

    def test_legacy_document_migrated_with_backup(self, storage_paths: StoragePaths):
        legacy = {
            VIDEO_A: {"date_added": "2025-11-01", "links": ["/work/p"]},
            VIDEO_B: {"date_added": "251102T0930", "channel": "c", "title": "t", "links": []},
        }
        write_document(storage_paths, legacy)

        store = RegistryStore(storage_paths)
        registry = store.load()

        assert registry[VIDEO_A] == RegistryEntry("251101T0000", "unknown", "unknown", ["/work/p"])
        assert registry[VIDEO_B].date_added == "251102T0930"

        on_disk = json.loads(storage_paths.registry_path.read_text(encoding="utf-8"))
        assert on_disk[VIDEO_A]["date_added"] == "251101T0000"

        backups = list(storage_paths.root.glob("data.json.backup.*"))
        assert len(backups) == 1
        assert json.loads(backups[0].read_text(encoding="utf-8")) == legacy

    def test_current_document_not_rewritten(self, storage_paths: StoragePaths):
        write_document(
            storage_paths,
            {VIDEO_A: {"date_added": "251101T1200", "channel": "c", "title": "t", "links": []}},
        )
        store = RegistryStore(storage_paths)
        store.load()

        assert store.stats()["document_writes"] == 0
        assert list(storage_paths.root.glob("data.json.backup.*")) == []

    def test_custom_root(self, tmp_path: Path):
        store = RegistryStore(StoragePaths.from_root(tmp_path / "elsewhere"))
        store.initialize()
        assert (tmp_path / "elsewhere" / "data.json").is_file()
