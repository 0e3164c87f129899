"""Exception hierarchy for transcriptor.

Two branches hang off ``TranscriptorError``:

- fatal storage and configuration failures, which stop a run before any
  network call is made
- ``FetchError`` variants, one per ``ErrorKind``, which are per-item
  failures that the pipeline records before moving on to the next id

Each fetch variant carries only the fields that matter for its kind, plus
a sanitized ``context`` mapping that is safe to log.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Optional


class ErrorKind(Enum):
    """Closed taxonomy of fetch failure kinds."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    TIMEOUT = "TIMEOUT"
    NETWORK = "NETWORK"
    VALIDATION = "VALIDATION"
    UNKNOWN = "UNKNOWN"


class TranscriptorError(Exception):
    """Base class for all transcriptor errors."""


# --- fatal branch -----------------------------------------------------------


class ConfigurationError(TranscriptorError):
    """Raised when configuration values are missing or invalid."""


class StorageError(TranscriptorError):
    """Base class for failures of the central storage area."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        self.path = path
        super().__init__(message)


class CorruptRegistryError(StorageError):
    """The registry document exists but cannot be parsed or fails schema checks.

    Corruption is never repaired automatically; an operator has to inspect or
    remove the file.
    """


class RegistrySaveError(StorageError):
    """The registry document could not be written."""


class StorageAccessError(StorageError):
    """The storage root or one of its directories is not accessible."""


# --- local domain errors ----------------------------------------------------


class InvalidVideoIdError(TranscriptorError, ValueError):
    """Raised when a video identifier does not match the expected format."""

    def __init__(self, video_id: Any) -> None:
        self.video_id = video_id
        super().__init__(
            f'Invalid video ID format: "{video_id}". '
            "Expected 11 alphanumeric characters, dashes, or underscores."
        )


class BlobNotFoundError(TranscriptorError, FileNotFoundError):
    """Raised when a transcript blob does not exist."""

    def __init__(self, video_id: str, path: Optional[str] = None) -> None:
        self.video_id = video_id
        self.path = path
        super().__init__(f"Transcript not found: {video_id}")


class EntryNotFoundError(TranscriptorError, KeyError):
    """Raised when a registry entry does not exist."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        super().__init__(f"Registry entry not found: {video_id}")

    def __str__(self) -> str:
        return str(self.args[0])


class LinkConflictError(TranscriptorError):
    """A non-link filesystem entry occupies the path where a link should go."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Refusing to replace non-symlink at {path}")


# --- fetch branch -----------------------------------------------------------


class FetchError(TranscriptorError):
    """Base class for classified fetch failures.

    Attributes:
        kind: Taxonomy kind of the failure
        context: Sanitized diagnostic context, safe to log
    """

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, context: Optional[Mapping[str, Any]] = None) -> None:
        # Imported lazily to avoid a cycle with the classifier module
        from .classifier import sanitize_context

        self.context: Dict[str, Any] = sanitize_context(context or {})
        super().__init__(message)

    @property
    def is_retriable(self) -> bool:
        return self.kind is ErrorKind.RATE_LIMITED

    @property
    def is_skippable(self) -> bool:
        return not self.is_retriable

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON console output."""
        return {"kind": self.kind.value, "message": str(self), "context": dict(self.context)}


class InvalidRequestError(FetchError):
    kind = ErrorKind.INVALID_REQUEST


class UnauthorizedError(FetchError):
    kind = ErrorKind.UNAUTHORIZED


class RateLimitedError(FetchError):
    """HTTP 429. ``retry_after`` holds the raw ``Retry-After`` header, if any."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str,
        retry_after: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(message, context)


class ServerError(FetchError):
    kind = ErrorKind.SERVER_ERROR

    def __init__(
        self, message: str, status: int, context: Optional[Mapping[str, Any]] = None
    ) -> None:
        self.status = status
        super().__init__(message, context)


class FetchTimeoutError(FetchError):
    kind = ErrorKind.TIMEOUT


class NetworkError(FetchError):
    """Connection-level failure. ``code`` is a short transport code such as ``ECONNREFUSED``."""

    kind = ErrorKind.NETWORK

    def __init__(
        self, message: str, code: Optional[str] = None, context: Optional[Mapping[str, Any]] = None
    ) -> None:
        self.code = code
        super().__init__(message, context)


class ResponseValidationError(FetchError):
    kind = ErrorKind.VALIDATION


class UnknownFetchError(FetchError):
    kind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.status = status
        super().__init__(message, context)


class RetryBudgetExhaustedError(FetchError):
    """Rate limiting persisted past the attempt limit or the total wait budget.

    This is the terminal form of ``RATE_LIMITED``: it is not retried again and
    the pipeline treats it as a skippable item failure.

    Attributes:
        attempts: Number of attempts made
        total_waited: Seconds spent sleeping between attempts
        last_error: The final rate-limit error
    """

    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        attempts: int,
        total_waited: float,
        last_error: Optional[FetchError] = None,
        reason: str = "attempts",
    ) -> None:
        self.attempts = attempts
        self.total_waited = total_waited
        self.last_error = last_error
        self.reason = reason
        super().__init__(
            f"Retry budget exhausted after {attempts} attempts "
            f"({total_waited:.2f}s waited, limit: {reason})",
            {"attempts": attempts, "total_waited": round(total_waited, 3), "reason": reason},
        )

    @property
    def is_retriable(self) -> bool:
        return False

    @property
    def is_skippable(self) -> bool:
        return True
