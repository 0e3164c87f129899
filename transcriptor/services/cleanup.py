"""Deletion of cached transcripts by age or by ID."""
from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional

from ..cache import BlobStore, LinkManager, RegistryStore
from ..errors import BlobNotFoundError, StorageError
from ..models import CleanupResult, OperationError, Registry
from ..utils.dates import convert_date_to_prefix, extract_date_prefix, parse_cutoff
from ..utils.logging_factory import DEFAULT_LOG_CONTEXT, LogContext
from ..utils.validation import assert_valid_video_id


class CleanupService:
    """Removes entries together with their blob and project links.

    Each deletion is saved on its own, so an interrupted clean leaves a
    consistent registry. A failure on one entry is recorded, that entry is
    kept, and the remaining entries are still processed.
    """

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

    def find_older_than(self, cutoff: str, registry: Optional[Registry] = None) -> List[str]:
        """IDs whose ``date_added`` day is strictly before ``cutoff`` (``YYYY-MM-DD``).

        Raises:
            ValueError: If the cutoff is not a valid date
        """
        prefix = convert_date_to_prefix(cutoff)
        if registry is None:
            registry = self.registry_store.load()
        candidates = [
            (entry.date_added, video_id)
            for video_id, entry in registry.items()
            if extract_date_prefix(entry.date_added) < prefix
        ]
        return [video_id for _, video_id in sorted(candidates)]

    @staticmethod
    def is_future_cutoff(cutoff: str, today: Optional[date] = None) -> bool:
        return parse_cutoff(cutoff) > (today or date.today())

    def clean_before(self, cutoff: str) -> CleanupResult:
        """Delete every entry added before ``cutoff`` (exclusive boundary)."""
        registry = self.registry_store.load()
        return self._delete(self.find_older_than(cutoff, registry), registry)

    def clean_ids(self, video_ids: Iterable[str]) -> CleanupResult:
        """Delete explicitly named entries; unknown IDs are reported as failures."""
        registry = self.registry_store.load()
        result = CleanupResult()
        targets = []
        for video_id in dict.fromkeys(video_ids):
            assert_valid_video_id(video_id)
            if video_id not in registry:
                result.failed += 1
                result.errors.append(
                    OperationError(target=video_id, message="Not found in registry", video_id=video_id)
                )
                continue
            targets.append(video_id)
        return self._delete(targets, registry, result)

    def _delete(
        self, video_ids: List[str], registry: Registry, result: Optional[CleanupResult] = None
    ) -> CleanupResult:
        result = result or CleanupResult()
        total = len(video_ids)

        for index, video_id in enumerate(video_ids, start=1):
            entry = registry[video_id]
            self.logger.info(f"[{index}/{total}] Deleting: {video_id} (added {entry.date_added})")
            try:
                self._delete_one(video_id, registry, result)
            except (OSError, StorageError) as e:
                result.failed += 1
                result.errors.append(OperationError(target=video_id, message=str(e), video_id=video_id))
                self.logger.error(f"Error deleting {video_id}: {e}")
                # Reload so the next deletion starts from what is actually on disk
                self.registry_store.invalidate()
                registry.clear()
                registry.update(self.registry_store.load())
                continue

            result.deleted += 1
            result.deleted_ids.append(video_id)

        return result

    def _delete_one(self, video_id: str, registry: Registry, result: CleanupResult) -> None:
        detached = self.link_manager.detach_all(video_id, registry)
        result.links_removed += detached.removed
        result.links_skipped += detached.skipped
        for error in detached.errors:
            self.logger.warning(f"Link could not be removed for {video_id}: {error.target}: {error.message}")
            result.errors.append(error)

        try:
            self.blob_store.delete(video_id)
        except BlobNotFoundError:
            self.logger.warning(f"Transcript file already deleted: {video_id}")

        del registry[video_id]
        self.registry_store.save(registry)
