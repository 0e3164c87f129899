"""Service container handed to every command at construction time."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..cache import BlobStore, LinkManager, MaintenanceService, RegistryStore
from ..config import TranscriptorConfig
from ..services import (
    CleanupService,
    Fetcher,
    MetadataClient,
    TranscriptApiClient,
    TranscriptFetcher,
    TranscriptService,
)
from ..ui.console import ConsoleManager
from ..utils.logging_factory import LogContext
from ..utils.retry import RetryEngine


@dataclass
class Services:
    """Everything a command needs for one run.

    ``fetcher`` is None when no API key is configured; only ``process``
    needs it and reports the missing key itself.
    """

    config: TranscriptorConfig
    log_context: LogContext
    console: ConsoleManager
    registry_store: RegistryStore
    blob_store: BlobStore
    link_manager: LinkManager
    maintenance: MaintenanceService
    cleanup: CleanupService
    fetcher: Optional[Fetcher] = None

    def transcript_service(self) -> TranscriptService:
        if self.fetcher is None:
            self.config.require_api_key()
        return TranscriptService(
            self.registry_store,
            self.blob_store,
            self.link_manager,
            self.maintenance,
            self.fetcher,
            log_context=self.log_context,
        )

    def close(self) -> None:
        close = getattr(self.fetcher, "close", None)
        if close is not None:
            close()


def build_services(
    config: TranscriptorConfig,
    log_context: LogContext,
    console: ConsoleManager,
    fetcher: Optional[Fetcher] = None,
) -> Services:
    """Wire the storage layer, the fetch collaborators and the services.

    Raises:
        ConfigurationError: If the storage root cannot be resolved
    """
    paths = config.storage_paths()
    registry_store = RegistryStore(paths, log_context=log_context)
    blob_store = BlobStore(paths, log_context=log_context)
    link_manager = LinkManager(
        registry_store, blob_store, link_dirname=config.link_dirname, log_context=log_context
    )
    maintenance = MaintenanceService(registry_store, blob_store, link_manager, log_context=log_context)
    cleanup = CleanupService(registry_store, blob_store, link_manager, log_context=log_context)

    if fetcher is None and config.api_key:
        fetcher = TranscriptFetcher(
            TranscriptApiClient(
                config.require_api_key(),
                config.api_base_url,
                timeout=config.request_timeout,
                log_context=log_context,
            ),
            MetadataClient(timeout=config.metadata_timeout, log_context=log_context),
            RetryEngine(config.retry_policy(), log_context=log_context),
            title_retries=config.title_retries,
            title_retry_delay=config.title_retry_delay,
            log_context=log_context,
        )

    return Services(
        config=config,
        log_context=log_context,
        console=console,
        registry_store=registry_store,
        blob_store=blob_store,
        link_manager=link_manager,
        maintenance=maintenance,
        cleanup=cleanup,
        fetcher=fetcher,
    )
