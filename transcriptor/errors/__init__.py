"""Error taxonomy and classification."""

from .classifier import (
    classify_error,
    classify_http_status,
    classify_transport_error,
    is_retriable,
    is_skippable,
    kind_of,
    sanitize_context,
    truncate_data,
)
from .exceptions import (
    BlobNotFoundError,
    ConfigurationError,
    CorruptRegistryError,
    EntryNotFoundError,
    ErrorKind,
    FetchError,
    FetchTimeoutError,
    InvalidRequestError,
    InvalidVideoIdError,
    LinkConflictError,
    NetworkError,
    RateLimitedError,
    RegistrySaveError,
    ResponseValidationError,
    RetryBudgetExhaustedError,
    ServerError,
    StorageAccessError,
    StorageError,
    TranscriptorError,
    UnauthorizedError,
    UnknownFetchError,
)

__all__ = [
    "BlobNotFoundError",
    "ConfigurationError",
    "CorruptRegistryError",
    "EntryNotFoundError",
    "ErrorKind",
    "FetchError",
    "FetchTimeoutError",
    "InvalidRequestError",
    "InvalidVideoIdError",
    "LinkConflictError",
    "NetworkError",
    "RateLimitedError",
    "RegistrySaveError",
    "ResponseValidationError",
    "RetryBudgetExhaustedError",
    "ServerError",
    "StorageAccessError",
    "StorageError",
    "TranscriptorError",
    "UnauthorizedError",
    "UnknownFetchError",
    "classify_error",
    "classify_http_status",
    "classify_transport_error",
    "is_retriable",
    "is_skippable",
    "kind_of",
    "sanitize_context",
    "truncate_data",
]
