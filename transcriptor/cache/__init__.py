"""Local transcript cache.

This package owns everything stored under the central root
(``~/.transcriptor`` by default) and the project-side links into it.

Components:
    - RegistryStore: the ``data.json`` document, atomic saves, access stats
    - BlobStore: one transcript file per video ID under ``transcripts/``
    - LinkManager: project symlinks and the ``links`` back-references
    - MaintenanceService: orphan and stale-link reconciliation
    - migrate_document: load-time normalization of older registry formats
    - calculate_statistics: totals and date range for the ``data`` command

Usage::

    paths = StoragePaths.from_root()
    store = RegistryStore(paths)
    store.initialize()
    blobs = BlobStore(paths)
    links = LinkManager(store, blobs)
    MaintenanceService(store, blobs, links).validate_integrity()
"""

from .blob_store import BlobStore
from .links import LinkManager
from .maintenance import MaintenanceService
from .migration import MigrationReport, migrate_document, validate_registry
from .registry_store import EntryMetadata, RegistryStore, StoreStats
from .statistics import RegistryStatistics, calculate_statistics, format_size

__all__ = [
    "BlobStore",
    "EntryMetadata",
    "LinkManager",
    "MaintenanceService",
    "MigrationReport",
    "RegistryStatistics",
    "RegistryStore",
    "StoreStats",
    "calculate_statistics",
    "format_size",
    "migrate_document",
    "validate_registry",
]
