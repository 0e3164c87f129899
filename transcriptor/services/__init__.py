"""Core services for fetching, caching, and cleaning transcripts."""

from .api_client import TranscriptApiClient, build_video_url
from .cleanup import CleanupService
from .fetcher import FetchedTranscript, Fetcher, TranscriptFetcher
from .metadata import FALLBACK_METADATA, MetadataClient, VideoMetadata
from .transcript_service import NullSink, ReportingSink, TranscriptService

__all__ = [
    "CleanupService",
    "FALLBACK_METADATA",
    "FetchedTranscript",
    "Fetcher",
    "MetadataClient",
    "NullSink",
    "ReportingSink",
    "TranscriptApiClient",
    "TranscriptFetcher",
    "TranscriptService",
    "VideoMetadata",
    "build_video_url",
]
