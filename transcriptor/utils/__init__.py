"""Utility modules for transcript caching."""

from .logging_factory import LogContext, LogLevel
from .retry import (
    RetryEngine,
    RetryPolicy,
    calculate_delay,
    parse_retry_after,
    retry_until,
)
from .validation import assert_valid_video_id, is_valid_video_id

__all__ = [
    "LogContext",
    "LogLevel",
    "RetryEngine",
    "RetryPolicy",
    "assert_valid_video_id",
    "calculate_delay",
    "is_valid_video_id",
    "parse_retry_after",
    "retry_until",
]
