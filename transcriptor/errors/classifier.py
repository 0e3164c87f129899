"""Mapping of raw transport and HTTP failures onto the fetch error taxonomy.

Classification is a pure function of the raw failure. Every classified error
carries a sanitized context: credential headers are removed and response
payloads are truncated before anything can reach a log line.
"""
from __future__ import annotations

import errno
import json
import socket
import ssl
from typing import Any, Dict, Mapping, Optional

import httpx

from .exceptions import (
    ErrorKind,
    FetchError,
    FetchTimeoutError,
    InvalidRequestError,
    NetworkError,
    RateLimitedError,
    ServerError,
    UnauthorizedError,
    UnknownFetchError,
)

MAX_CONTEXT_DATA_LENGTH = 500
SENSITIVE_HEADERS = frozenset({"x-api-key", "authorization"})
SERVER_ERROR_STATUSES = frozenset({500, 502, 503, 504})

TIMEOUT_CODES = frozenset({"ECONNABORTED", "ETIMEDOUT"})
NETWORK_CODES = frozenset(
    {
        "ECONNREFUSED",
        "ECONNRESET",
        "ENOTFOUND",
        "ENETUNREACH",
        "EAI_AGAIN",
        "CERT_HAS_EXPIRED",
        "UNABLE_TO_VERIFY_LEAF_SIGNATURE",
    }
)

_ERRNO_CODES = {
    errno.ECONNREFUSED: "ECONNREFUSED",
    errno.ECONNRESET: "ECONNRESET",
    errno.ENETUNREACH: "ENETUNREACH",
    errno.ETIMEDOUT: "ETIMEDOUT",
    errno.ECONNABORTED: "ECONNABORTED",
}


def truncate_data(data: Any, max_length: int = MAX_CONTEXT_DATA_LENGTH) -> str:
    """Render a payload as a bounded string for logging.

    Args:
        data: Response body, parsed JSON or any other value
        max_length: Maximum number of characters to keep

    Returns:
        Truncated string representation
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    if isinstance(data, str):
        return data[:max_length]
    try:
        serialized = json.dumps(data)
    except (TypeError, ValueError):
        return "[Non-serializable data]"
    return serialized[:max_length]


def sanitize_context(context: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of an error context that is safe to log.

    Credential headers are dropped (case-insensitively) and ``data`` is
    truncated. The input mapping is never modified.
    """
    sanitized = dict(context)

    headers = sanitized.get("headers")
    if isinstance(headers, Mapping):
        sanitized["headers"] = {
            str(key): value
            for key, value in headers.items()
            if str(key).lower() not in SENSITIVE_HEADERS
        }

    if sanitized.get("data") is not None:
        sanitized["data"] = truncate_data(sanitized["data"])

    return sanitized


def classify_http_status(
    status: int,
    data: Any = None,
    headers: Optional[Mapping[str, str]] = None,
) -> FetchError:
    """Classify a non-success HTTP response.

    Args:
        status: HTTP status code
        data: Response body (text or parsed JSON)
        headers: Response headers

    Returns:
        The matching FetchError variant
    """
    headers = headers or {}

    if status == 400:
        return InvalidRequestError(
            "Invalid YouTube URL or video unavailable", {"status": status, "data": data}
        )
    if status in (401, 403):
        return UnauthorizedError(
            "API authentication failed - check SCRAPE_CREATORS_API_KEY", {"status": status}
        )
    if status == 429:
        retry_after = _header(headers, "retry-after")
        return RateLimitedError(
            "API rate limit exceeded",
            retry_after=retry_after,
            context={"status": status, "retry_after": retry_after},
        )
    if status in SERVER_ERROR_STATUSES:
        return ServerError(
            "API server error - will skip and continue",
            status=status,
            context={"status": status, "data": data},
        )
    return UnknownFetchError(
        f"Unexpected HTTP status: {status}", status=status, context={"status": status, "data": data}
    )


def classify_transport_error(exc: BaseException) -> FetchError:
    """Classify a failure that produced no HTTP response.

    Args:
        exc: httpx transport exception or OS-level error

    Returns:
        FetchTimeoutError, NetworkError or UnknownFetchError
    """
    if isinstance(exc, FetchError):
        return exc

    code = transport_error_code(exc)
    context = {"code": code, "error_type": type(exc).__name__}

    if isinstance(exc, (httpx.TimeoutException, TimeoutError, socket.timeout)) or code in TIMEOUT_CODES:
        return FetchTimeoutError(f"Request timed out: {exc}", context)

    if code in NETWORK_CODES or isinstance(exc, (httpx.TransportError, ConnectionError, ssl.SSLError)):
        return NetworkError(f"Network error: {exc}", code=code, context=context)

    return UnknownFetchError(f"Unexpected error: {exc}", context=context)


def transport_error_code(exc: BaseException) -> Optional[str]:
    """Derive a short transport code (``ECONNREFUSED`` etc.) from an exception chain."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        code = _code_for(current)
        if code:
            return code
        current = current.__cause__ or current.__context__
    return None


def classify_error(exc: BaseException) -> FetchError:
    """Classify any failure raised while fetching.

    ``httpx.HTTPStatusError`` is routed through the status mapping; every
    other exception is treated as a transport failure.
    """
    if isinstance(exc, FetchError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        return classify_http_status(response.status_code, _response_data(response), response.headers)
    return classify_transport_error(exc)


def is_retriable(error: BaseException) -> bool:
    """Only rate limiting is retried automatically."""
    return isinstance(error, FetchError) and error.is_retriable


def is_skippable(error: BaseException) -> bool:
    """Every classified failure other than a live rate limit skips the item."""
    return isinstance(error, FetchError) and error.is_skippable


def kind_of(error: BaseException) -> ErrorKind:
    if isinstance(error, FetchError):
        return error.kind
    return ErrorKind.UNKNOWN


def _code_for(exc: BaseException) -> Optional[str]:
    if isinstance(exc, ssl.SSLCertVerificationError):
        if "expired" in str(exc).lower():
            return "CERT_HAS_EXPIRED"
        return "UNABLE_TO_VERIFY_LEAF_SIGNATURE"
    if isinstance(exc, socket.gaierror):
        if exc.errno == socket.EAI_AGAIN:
            return "EAI_AGAIN"
        return "ENOTFOUND"
    if isinstance(exc, OSError) and exc.errno in _ERRNO_CODES:
        return _ERRNO_CODES[exc.errno]
    if isinstance(exc, ConnectionRefusedError):
        return "ECONNREFUSED"
    if isinstance(exc, ConnectionResetError):
        return "ECONNRESET"
    if isinstance(exc, httpx.TimeoutException):
        return "ETIMEDOUT"
    return None


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def _response_data(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
