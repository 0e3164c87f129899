"""HTTP client for the transcript extraction API.

One ``POST {base}/transcript`` per attempt, authenticated with the
``x-api-key`` header. Every failure leaves this module as a classified
``FetchError``; retrying is the caller's concern (see ``RetryEngine``).
"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from ..errors import ResponseValidationError, classify_http_status, classify_transport_error
from ..utils.logging_factory import DEFAULT_LOG_CONTEXT, LogContext
from ..utils.validation import assert_valid_video_id

TRANSCRIPT_ENDPOINT = "/transcript"
API_KEY_HEADER = "x-api-key"
USER_AGENT = "transcriptor/1.0"
MAX_TRANSCRIPT_LENGTH = 10 * 1024 * 1024


def build_video_url(video_id: str) -> str:
    """Canonical watch URL sent to the API."""
    assert_valid_video_id(video_id)
    return f"https://www.youtube.com/watch?v={video_id}"


class TranscriptApiClient:
    """Fetches transcript text for a single video per call.

    Args:
        api_key: Key sent in the ``x-api-key`` header
        base_url: API base URL
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
        log_context: Logging context for the run
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        log_context: LogContext = DEFAULT_LOG_CONTEXT,
    ) -> None:
        self.logger = log_context.get_logger(__name__)
        self.base_url = base_url.rstrip("/")
        self.request_count = 0
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
                API_KEY_HEADER: api_key,
            },
            follow_redirects=False,
            transport=transport,
        )

    def __enter__(self) -> "TranscriptApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch_transcript(self, video_id: str) -> str:
        """Fetch transcript text for one video.

        Args:
            video_id: Validated video ID

        Returns:
            Trimmed transcript text

        Raises:
            FetchError: Classified failure (HTTP status, transport, or response validation)
        """
        video_url = build_video_url(video_id)
        self.request_count += 1
        self.logger.debug(f"POST {self.base_url}{TRANSCRIPT_ENDPOINT} for {video_id}")

        try:
            response = self._client.post(TRANSCRIPT_ENDPOINT, json={"url": video_url})
        except httpx.HTTPError as e:
            raise classify_transport_error(e) from e

        self.logger.debug(f"Response {response.status_code} for {video_id}")
        if not response.is_success:
            raise classify_http_status(response.status_code, _body(response), response.headers)

        text = extract_transcript_text(response)
        self.logger.debug(f"Transcript received for {video_id}: {len(text)} chars")
        return text


def extract_transcript_text(response: httpx.Response) -> str:
    """Validate the API payload and return its ``transcript_only_text``.

    Raises:
        ResponseValidationError: If the payload is not the expected shape
    """
    try:
        data = response.json()
    except ValueError as e:
        raise ResponseValidationError(
            "API response is not valid JSON", {"data": response.text}
        ) from e

    if not isinstance(data, dict):
        raise ResponseValidationError("API response missing data object", {"data": data})

    if "transcript_only_text" not in data:
        raise ResponseValidationError("API response missing transcript_only_text field")

    text = data["transcript_only_text"]
    if not isinstance(text, str):
        raise ResponseValidationError(
            f"API response transcript_only_text must be string, got {type(text).__name__}"
        )

    trimmed = text.strip()
    if not trimmed:
        raise ResponseValidationError("API returned empty transcript text")

    if len(trimmed) > MAX_TRANSCRIPT_LENGTH:
        raise ResponseValidationError(f"Transcript exceeds maximum size: {len(trimmed)} bytes")

    return trimmed


def _body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
