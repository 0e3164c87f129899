"""Persistent registry of cached transcripts.

The registry is a single JSON document (``<root>/data.json``) mapping video
IDs to entries. It is read once, cached in memory, and handed out as deep
copies so callers can mutate what they receive and pass it back to
``save``. Every save replaces the document atomically; a crash leaves
either the previous or the new document on disk, never a mix.
"""
from __future__ import annotations

import json
import shutil
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..errors import CorruptRegistryError, RegistrySaveError, StorageAccessError
from ..models import Registry, RegistryEntry, copy_registry, registry_to_dict
from ..utils.dates import generate_date_added
from ..utils.logging_factory import DEFAULT_LOG_CONTEXT, LogContext
from ..utils.paths import StoragePaths, safe_write_json
from .migration import migrate_document, validate_registry


@dataclass
class EntryMetadata:
    """Registry fields of one entry, without any blob content."""

    video_id: str
    date_added: str
    channel: str
    title: str
    links: List[str]

    @property
    def link_count(self) -> int:
        return len(self.links)


@dataclass
class StoreStats:
    """Registry access statistics."""

    entry_hits: int = 0
    entry_misses: int = 0
    document_reads: int = 0
    document_writes: int = 0
    cached_loads: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate entry hit rate.

        Returns:
            Hit rate percentage
        """
        total = self.entry_hits + self.entry_misses
        if total == 0:
            return 0.0
        return (self.entry_hits / total) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry_hits": self.entry_hits,
            "entry_misses": self.entry_misses,
            "hit_rate": f"{self.hit_rate:.2f}%",
            "document_reads": self.document_reads,
            "document_writes": self.document_writes,
            "cached_loads": self.cached_loads,
        }


class RegistryStore:
    """Owns the registry document: initialization, loading, and atomic saves."""

    def __init__(self, paths: StoragePaths, log_context: LogContext = DEFAULT_LOG_CONTEXT) -> None:
        self.paths = paths
        self.logger = log_context.get_logger(__name__)
        self._stats = StoreStats()
        self._cache: Optional[Registry] = None
        self._initialized = False

    @property
    def registry_path(self):
        return self.paths.registry_path

    def initialize(self) -> None:
        """Create the storage layout and an empty registry if needed.

        An existing document is parsed so that corruption is reported here,
        before any other component touches the registry.

        Raises:
            StorageAccessError: If the directories cannot be created
            CorruptRegistryError: If the existing document is unreadable
        """
        if self._initialized:
            return

        try:
            self.paths.root.mkdir(parents=True, exist_ok=True)
            self.paths.transcripts_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageAccessError(
                f"Storage initialization failed: {e}", path=str(self.paths.root)
            ) from e

        if not self.registry_path.exists():
            self.logger.debug(f"Creating empty registry at {self.registry_path}")
            self._write({})
        else:
            self._read_document()

        self._initialized = True

    def load(self) -> Registry:
        """Return a deep copy of the full registry.

        Raises:
            CorruptRegistryError: If the document cannot be parsed
            StorageAccessError: If the document cannot be read
        """
        self.initialize()
        if self._cache is None:
            self._read_document()
        else:
            self._stats.cached_loads += 1
        return copy_registry(self._cache)

    def load_metadata_only(self) -> List[EntryMetadata]:
        """Return entry metadata for statistics without reading any blob."""
        registry = self.load()
        return [
            EntryMetadata(
                video_id=video_id,
                date_added=entry.date_added,
                channel=entry.channel,
                title=entry.title,
                links=list(entry.links),
            )
            for video_id, entry in registry.items()
        ]

    def get_entry(self, video_id: str) -> Optional[RegistryEntry]:
        """Look up one entry, counting the access as a hit or a miss."""
        self.initialize()
        if self._cache is None:
            self._read_document()
        entry = self._cache.get(video_id)
        if entry is None:
            self._stats.entry_misses += 1
            self.logger.debug(f"Cache miss: {video_id}")
            return None
        self._stats.entry_hits += 1
        self.logger.debug(f"Cache hit: {video_id}")
        return entry.copy()

    def save(self, registry: Registry) -> None:
        """Atomically replace the registry document.

        Raises:
            RegistrySaveError: If the registry is invalid or the write fails
        """
        try:
            validate_registry(registry)
        except ValueError as e:
            raise RegistrySaveError(
                f"Registry save: invalid structure ({e})", path=str(self.registry_path)
            ) from e

        try:
            self.paths.root.mkdir(parents=True, exist_ok=True)
            self._write(registry_to_dict(registry))
        except OSError as e:
            raise RegistrySaveError(
                f"Failed to save registry: {e}", path=str(self.registry_path)
            ) from e

        self._cache = copy_registry(registry)
        self.logger.debug(f"Registry saved ({len(registry)} entries)")

    def invalidate(self) -> None:
        """Drop the in-memory copy so the next access re-reads the document."""
        self._cache = None

    def stats(self) -> Dict[str, Any]:
        """Snapshot of the access counters."""
        return self._stats.to_dict()

    def _write(self, document: Dict[str, Any]) -> None:
        safe_write_json(self.registry_path, document)
        self._stats.document_writes += 1

    def _read_document(self) -> None:
        path = self.registry_path
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._cache = {}
            return
        except UnicodeDecodeError as e:
            raise CorruptRegistryError(
                f"Registry read: file is not valid UTF-8 - {e}", path=str(path)
            ) from e
        except OSError as e:
            raise StorageAccessError(f"Registry read failed: {e}", path=str(path)) from e

        self._stats.document_reads += 1
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptRegistryError(
                f"Registry read: File corrupted with JSON parse error - {e}", path=str(path)
            ) from e

        registry, report = migrate_document(raw, source=str(path))
        self._cache = registry

        if report.changed:
            self._persist_migration(registry)

    def _persist_migration(self, registry: Registry) -> None:
        backup_path = self.registry_path.with_name(
            f"{self.registry_path.name}.backup.{generate_date_added()}"
        )
        try:
            shutil.copy2(self.registry_path, backup_path)
        except OSError as e:
            raise StorageAccessError(
                f"Registry backup failed, migration not persisted: {e}", path=str(backup_path)
            ) from e
        self.logger.info(f"Registry backup created: {backup_path}")
        self.save(registry)
