"""Integrity reconciliation between the registry, blobs, and project links.

Runs at the start of every ``process`` invocation, before any network
call. Problems with a single entry are recorded and the pass moves on;
failing to load or save the registry aborts the run.
"""
from __future__ import annotations

import os

from ..models import MaintenanceResult, OperationError, Registry
from ..utils.logging_factory import DEFAULT_LOG_CONTEXT, LogContext
from .blob_store import BlobStore
from .links import LinkManager
from .registry_store import RegistryStore


class MaintenanceService:
    """Self-heals orphaned entries and stale links."""

    def __init__(
        self,
        registry_store: RegistryStore,
        blob_store: BlobStore,
        link_manager: LinkManager,
        log_context: LogContext = DEFAULT_LOG_CONTEXT,
    ) -> None:
        self.registry_store = registry_store
        self.blob_store = blob_store
        self.link_manager = link_manager
        self.logger = log_context.get_logger(__name__)

    def validate_integrity(self) -> MaintenanceResult:
        """Reconcile every registry entry against the filesystem.

        For each entry:

        1. If its blob is missing, the entry is an orphan: its links are
           removed best-effort and the entry is deleted.
        2. Otherwise each ``links`` path whose link is missing or does not
           resolve to the blob is pruned from the entry. A stale symlink left
           at that path is unlinked; if that fails the failure is counted and
           recorded, and the path is pruned anyway.

        The registry is saved once at the end, and only if something changed.

        Returns:
            MaintenanceResult with checked/orphaned/links_removed/links_failed

        Raises:
            StorageError: If the registry cannot be loaded or saved
        """
        result = MaintenanceResult()
        registry = self.registry_store.load()

        if not registry:
            self.logger.debug("Registry empty, nothing to validate")
            return result

        self.logger.debug(f"Validating {len(registry)} registry entries...")

        for video_id in list(registry):
            result.checked += 1
            try:
                if not self.blob_store.exists(video_id):
                    self._remove_orphan(video_id, registry, result)
                else:
                    self._prune_stale_links(video_id, registry, result)
            except Exception as e:
                result.errors.append(OperationError(target=video_id, message=str(e), video_id=video_id))
                self.logger.warning(f"Error checking {video_id}: {e}")

        if result.changed:
            self.registry_store.save(registry)
            self.logger.info(
                f"Maintenance: removed {result.orphaned} orphaned entries and "
                f"{result.links_removed} stale links"
            )
        else:
            self.logger.debug("All entries valid, no cleanup needed")

        return result

    def _remove_orphan(self, video_id: str, registry: Registry, result: MaintenanceResult) -> None:
        entry = registry[video_id]
        self.logger.info(f"Removing orphaned entry: {video_id} (added {entry.date_added})")

        try:
            detached = self.link_manager.detach_all(video_id, registry)
        except Exception as e:
            result.errors.append(
                OperationError(target=video_id, message=f"Link cleanup failed: {e}", video_id=video_id)
            )
            self.logger.error(f"Link cleanup failed for {video_id}: {e}")
        else:
            result.links_removed += detached.removed
            result.links_failed += len(detached.errors)
            result.errors.extend(detached.errors)

        del registry[video_id]
        result.orphaned += 1

    def _prune_stale_links(self, video_id: str, registry: Registry, result: MaintenanceResult) -> None:
        entry = registry[video_id]
        kept = []
        for project in entry.links:
            if self.link_manager.is_link_valid(project, video_id):
                kept.append(project)
                continue

            path = self.link_manager.link_path(project, video_id)
            self.logger.info(f"Pruning stale link for {video_id}: {path}")
            result.links_removed += 1

            if os.path.islink(path):
                try:
                    os.unlink(path)
                except OSError as e:
                    result.links_failed += 1
                    result.errors.append(OperationError(target=str(path), message=str(e), video_id=video_id))
                    self.logger.warning(f"Failed to remove stale link {path}: {e}")

        entry.links = kept
