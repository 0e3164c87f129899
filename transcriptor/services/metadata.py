"""Video metadata (channel and title) from the YouTube oEmbed endpoint."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..utils.logging_factory import DEFAULT_LOG_CONTEXT, LogContext
from ..utils.sanitization import FALLBACK_CHANNEL, FALLBACK_TITLE, sanitize_channel, sanitize_title
from ..utils.validation import is_valid_video_id

OEMBED_ENDPOINT = "https://www.youtube.com/oembed"


@dataclass(frozen=True)
class VideoMetadata:
    channel: str = FALLBACK_CHANNEL
    title: str = FALLBACK_TITLE


FALLBACK_METADATA = VideoMetadata()


class MetadataClient:
    """Looks up channel and title for a video.

    Lookups never raise: any failure yields the fallback values, and values
    containing path separators or control characters are replaced by them.
    """

    def __init__(
        self,
        timeout: float = 15.0,
        endpoint: str = OEMBED_ENDPOINT,
        transport: Optional[httpx.BaseTransport] = None,
        log_context: LogContext = DEFAULT_LOG_CONTEXT,
    ) -> None:
        self.endpoint = endpoint
        self.logger = log_context.get_logger(__name__)
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": "transcriptor/1.0"},
            transport=transport,
        )

    def __enter__(self) -> "MetadataClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch(self, video_id: str) -> VideoMetadata:
        if not is_valid_video_id(video_id):
            self.logger.warning(f"Invalid video ID for metadata lookup: {video_id}")
            return FALLBACK_METADATA

        params = {"url": f"https://youtu.be/{video_id}", "format": "json"}
        try:
            response = self._client.get(self.endpoint, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException:
            self.logger.warning(f"Metadata fetch timeout for {video_id}")
            return FALLBACK_METADATA
        except httpx.HTTPStatusError as e:
            self.logger.warning(
                f"Metadata fetch failed for {video_id}: HTTP {e.response.status_code}"
            )
            return FALLBACK_METADATA
        except (httpx.HTTPError, ValueError) as e:
            self.logger.warning(f"Metadata fetch error for {video_id}: {e}")
            return FALLBACK_METADATA

        if not isinstance(data, dict):
            self.logger.warning(f"Invalid oEmbed response structure for {video_id}")
            return FALLBACK_METADATA

        return VideoMetadata(
            channel=sanitize_channel(data.get("author_name")),
            title=sanitize_title(data.get("title")),
        )
