"""Per-video processing pipeline.

Flow for one invocation::

    maintenance pass (fatal on registry load/save failure)
    for each video ID, strictly in order:
        registry lookup -> cache hit?  -> link into project
                         -> cache miss -> fetch (retry engine) -> blob write
                                          -> registry entry -> save -> link

A fetch failure skips the item and the batch continues. Storage failures
propagate and end the run, since the registry can no longer be trusted.
Blob writes and registry saves are individually atomic, so an interrupted
run leaves only fully-completed items behind and a re-run picks up the
rest as cache misses.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Protocol, Union

from ..cache import BlobStore, LinkManager, MaintenanceService, RegistryStore
from ..errors import (
    BlobNotFoundError,
    EntryNotFoundError,
    FetchError,
    InvalidVideoIdError,
    LinkConflictError,
)
from ..models import (
    BatchSummary,
    ItemResult,
    ItemStatus,
    MaintenanceResult,
    RegistryEntry,
)
from ..models.registry import UNKNOWN
from ..utils.dates import generate_date_added
from ..utils.logging_factory import DEFAULT_LOG_CONTEXT, LogContext
from ..utils.sanitization import FALLBACK_CHANNEL, is_unknown_title
from ..utils.validation import assert_valid_video_id
from .fetcher import Fetcher, FetchedTranscript


class ReportingSink(Protocol):
    """Receives progress from ``TranscriptService.process_batch``."""

    def on_maintenance(self, result: MaintenanceResult) -> None:
        ...

    def on_batch_start(self, total: int) -> None:
        ...

    def on_item(self, item: ItemResult, index: int, total: int) -> None:
        ...

    def on_summary(self, summary: BatchSummary) -> None:
        ...


class NullSink:
    """Reporting sink that discards everything."""

    def on_maintenance(self, result: MaintenanceResult) -> None:
        pass

    def on_batch_start(self, total: int) -> None:
        pass

    def on_item(self, item: ItemResult, index: int, total: int) -> None:
        pass

    def on_summary(self, summary: BatchSummary) -> None:
        pass


class TranscriptService:
    """Orchestrates maintenance, cache lookup, fetching, storage and linking."""

    def __init__(
        self,
        registry_store: RegistryStore,
        blob_store: BlobStore,
        link_manager: LinkManager,
        maintenance: MaintenanceService,
        fetcher: Fetcher,
        log_context: LogContext = DEFAULT_LOG_CONTEXT,
    ) -> None:
        self.registry_store = registry_store
        self.blob_store = blob_store
        self.link_manager = link_manager
        self.maintenance = maintenance
        self.fetcher = fetcher
        self.logger = log_context.get_logger(__name__)

    def process_batch(
        self,
        video_ids: Iterable[str],
        project_dir: Union[str, Path],
        sink: Optional[ReportingSink] = None,
    ) -> BatchSummary:
        """Run maintenance, then process each video ID in order.

        Args:
            video_ids: Video IDs to process
            project_dir: Project that receives the links
            sink: Optional reporting sink

        Returns:
            BatchSummary with per-item results

        Raises:
            StorageError: If the registry cannot be loaded or saved
        """
        sink = sink or NullSink()
        ids = list(video_ids)

        self.registry_store.initialize()
        maintenance = self.maintenance.validate_integrity()
        sink.on_maintenance(maintenance)

        summary = BatchSummary(maintenance=maintenance)
        sink.on_batch_start(len(ids))

        for index, video_id in enumerate(ids, start=1):
            item = self.process_video(video_id, project_dir)
            summary.record(item)
            sink.on_item(item, index, len(ids))

        self.logger.debug(
            f"Batch complete: {summary.cached} cached, {summary.fetched} fetched, "
            f"{summary.linked} linked, {summary.failed} failed"
        )
        sink.on_summary(summary)
        return summary

    def process_video(self, video_id: str, project_dir: Union[str, Path]) -> ItemResult:
        """Ensure one video is cached and linked into ``project_dir``.

        Fetch failures are returned as a FAILED item rather than raised.
        """
        try:
            assert_valid_video_id(video_id)
        except InvalidVideoIdError as e:
            self.logger.warning(str(e))
            return ItemResult(video_id=str(video_id), status=ItemStatus.FAILED, error_kind="VALIDATION", error=str(e))

        entry = self.registry_store.get_entry(video_id)
        if entry is not None and self.blob_store.exists(video_id):
            self.logger.debug(f"Using cached transcript for {video_id}")
            item = ItemResult(
                video_id=video_id, status=ItemStatus.CACHED, title=entry.title, channel=entry.channel
            )
        else:
            try:
                fetched = self.fetcher.fetch(video_id)
            except FetchError as e:
                self.logger.warning(f"Skipping {video_id}: [{e.kind.value}] {e}")
                if e.context:
                    self.logger.debug(f"Error context for {video_id}: {e.context}")
                return ItemResult(
                    video_id=video_id,
                    status=ItemStatus.FAILED,
                    error_kind=e.kind.value,
                    error=str(e),
                )
            stored = self._store(video_id, fetched)
            item = ItemResult(
                video_id=video_id, status=ItemStatus.FETCHED, title=stored.title, channel=stored.channel
            )

        try:
            self.link_manager.attach(video_id, project_dir)
            item.linked = True
        except (LinkConflictError, EntryNotFoundError, BlobNotFoundError, OSError) as e:
            self.logger.warning(f"Could not link {video_id} into {project_dir}: {e}")
            item.error = str(e)

        return item

    def _store(self, video_id: str, fetched: FetchedTranscript) -> RegistryEntry:
        """Write the blob, then create or refresh the registry entry."""
        self.blob_store.write(video_id, fetched.content)

        registry = self.registry_store.load()
        existing = registry.get(video_id)
        entry = RegistryEntry(
            date_added=existing.date_added if existing else generate_date_added(),
            channel=fetched.channel if fetched.channel and fetched.channel != FALLBACK_CHANNEL else UNKNOWN,
            title=UNKNOWN if is_unknown_title(fetched.title) else fetched.title,
            links=list(existing.links) if existing else [],
        )
        registry[video_id] = entry
        self.registry_store.save(registry)
        self.logger.info(f"Saved transcript {video_id}: {entry.title}")
        return entry
