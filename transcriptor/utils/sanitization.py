"""Sanitization of third-party metadata before it is stored or displayed."""
from __future__ import annotations

import re
import unicodedata
from typing import Optional

FALLBACK_CHANNEL = "Unknown Channel"
FALLBACK_TITLE = "Unknown Title"
UNKNOWN_TITLE = "unknown"
MAX_TITLE_LENGTH = 100

# Path separators, characters reserved on common filesystems, and control characters
UNSAFE_METADATA_PATTERN = re.compile(r'[/\\<>:"?*\x00-\x1f]')


class MetadataSanitizer:
    """Utilities for sanitizing channel names and titles."""

    @staticmethod
    def sanitize_value(value: Optional[str], fallback: str) -> str:
        """Return a trimmed metadata value, or the fallback if it is unusable.

        A value is unusable when it is missing, blank after trimming, or
        contains a path separator or control character.

        Args:
            value: Raw value from the metadata endpoint
            fallback: Value to use instead

        Returns:
            Safe display value
        """
        if not isinstance(value, str):
            return fallback
        trimmed = value.strip()
        if not trimmed or UNSAFE_METADATA_PATTERN.search(trimmed):
            return fallback
        return trimmed

    @staticmethod
    def normalize_title(title: Optional[str], replacement: str = "_") -> str:
        """Normalize a title to a lowercase filesystem-safe token.

        Unicode is decomposed (NFKD) and combining marks dropped, everything outside ``a-z0-9-`` becomes
        ``replacement``, runs of the replacement are collapsed and trimmed,
        and the result is bounded to ``MAX_TITLE_LENGTH`` characters.

        Missing, empty, fallback, and fully-stripped titles all normalize to
        ``UNKNOWN_TITLE``.

        Args:
            title: Original video title
            replacement: Separator for removed characters

        Returns:
            Normalized title
        """
        if not isinstance(title, str) or not title.strip() or title.strip() == FALLBACK_TITLE:
            return UNKNOWN_TITLE

        decomposed = unicodedata.normalize("NFKD", title.strip())
        normalized = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()
        normalized = re.sub(r"[^a-z0-9-]+", replacement, normalized)
        normalized = re.sub(f"{re.escape(replacement)}+", replacement, normalized)
        normalized = normalized.strip(replacement)

        if len(normalized) > MAX_TITLE_LENGTH:
            normalized = normalized[:MAX_TITLE_LENGTH].rstrip(replacement)

        return normalized or UNKNOWN_TITLE


def sanitize_channel(channel: Optional[str]) -> str:
    return MetadataSanitizer.sanitize_value(channel, FALLBACK_CHANNEL)


def sanitize_title(title: Optional[str]) -> str:
    return MetadataSanitizer.sanitize_value(title, FALLBACK_TITLE)


def normalize_title(title: Optional[str]) -> str:
    """Normalize a title; see ``MetadataSanitizer.normalize_title``."""
    return MetadataSanitizer.normalize_title(title)


def is_unknown_title(title: Optional[str]) -> bool:
    """True when no title was resolved: missing, blank, or a fallback value.

    Titles that merely normalize to an empty token (e.g. non-Latin scripts)
    are real titles.
    """
    if not isinstance(title, str):
        return True
    return title.strip() in ("", FALLBACK_TITLE, UNKNOWN_TITLE)
