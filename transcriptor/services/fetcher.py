"""Fetch collaborator: transcript text plus channel and title for one video."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Protocol

from ..utils.logging_factory import DEFAULT_LOG_CONTEXT, LogContext
from ..utils.retry import RetryEngine, retry_until
from ..utils.sanitization import is_unknown_title
from .api_client import TranscriptApiClient
from .metadata import MetadataClient, VideoMetadata


@dataclass(frozen=True)
class FetchedTranscript:
    content: str
    title: str
    channel: str


class Fetcher(Protocol):
    """Anything that can fetch a transcript by video ID.

    Implementations raise a ``FetchError`` subclass on failure.
    """

    def fetch(self, video_id: str) -> FetchedTranscript:
        ...


class TranscriptFetcher:
    """Combines the transcript API and the metadata lookup.

    The transcript request runs under the ``RetryEngine`` (rate limits only).
    The title lookup has its own content retry: while the title normalizes
    to ``unknown`` it waits ``title_retry_delay`` seconds and asks again, up
    to ``title_retries`` more times, and then settles for the fallback.
    """

    def __init__(
        self,
        api_client: TranscriptApiClient,
        metadata_client: MetadataClient,
        retry_engine: RetryEngine,
        title_retries: int = 3,
        title_retry_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        log_context: LogContext = DEFAULT_LOG_CONTEXT,
    ) -> None:
        self.api_client = api_client
        self.metadata_client = metadata_client
        self.retry_engine = retry_engine
        self.title_retries = title_retries
        self.title_retry_delay = title_retry_delay
        self._sleep = sleep
        self.logger = log_context.get_logger(__name__)

    def fetch(self, video_id: str) -> FetchedTranscript:
        """Fetch transcript content and metadata.

        Raises:
            FetchError: If the transcript cannot be fetched
        """
        content = self.retry_engine.execute(
            lambda: self.api_client.fetch_transcript(video_id), description=video_id
        )
        metadata = self.fetch_metadata(video_id)
        return FetchedTranscript(content=content, title=metadata.title, channel=metadata.channel)

    def fetch_metadata(self, video_id: str) -> VideoMetadata:
        return retry_until(
            lambda: self.metadata_client.fetch(video_id),
            accept=lambda metadata: not is_unknown_title(metadata.title),
            retries=self.title_retries,
            delay=self.title_retry_delay,
            sleep=self._sleep,
            description=f"title lookup for {video_id}",
            logger=self.logger,
        )

    def close(self) -> None:
        self.api_client.close()
        self.metadata_client.close()
