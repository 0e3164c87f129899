"""Extraction of YouTube video IDs from free-form input files."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, List, Union

from .paths import ensure_subpath
from .validation import is_valid_video_id

logger = logging.getLogger(__name__)

DEFAULT_INPUT_FILE = "youtube.md"
MAX_INPUT_FILE_SIZE = 10 * 1024 * 1024
MAX_LINE_LENGTH = 10 * 1024
MAX_URL_COUNT = 1000

YOUTUBE_URL_PATTERNS = [
    re.compile(r"(?:https?://)?(?:www\.|m\.)?youtube\.com/watch\?(?:[^\s#]*&)?v=([A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"),
    re.compile(r"(?:https?://)?(?:www\.)?youtu\.be/([A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"),
    re.compile(r"(?:https?://)?(?:www\.|m\.)?youtube\.com/(?:shorts|embed|live|v)/([A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"),
]


class InputFileError(ValueError):
    """Raised when the input file is missing, unreadable, or not text."""


def extract_video_id(url: str) -> Union[str, None]:
    """Return the first video ID found in a URL, or None."""
    for pattern in YOUTUBE_URL_PATTERNS:
        match = pattern.search(url)
        if match and is_valid_video_id(match.group(1)):
            return match.group(1)
    return None


def extract_video_ids(lines: Union[str, Iterable[str]], max_count: int = MAX_URL_COUNT) -> List[str]:
    """Extract ordered, de-duplicated video IDs from text.

    Blank lines and ``#`` comment lines are skipped, as are lines longer than
    ``MAX_LINE_LENGTH``. A line may hold several URLs (markdown links often
    do); all of them are collected in order of appearance.

    Args:
        lines: Text content or an iterable of lines
        max_count: Stop after this many unique IDs

    Returns:
        Unique video IDs in first-seen order
    """
    if isinstance(lines, str):
        lines = lines.splitlines()

    video_ids: List[str] = []
    seen = set()
    invalid = 0

    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if len(stripped) > MAX_LINE_LENGTH:
            logger.warning(f"Skipping line longer than {MAX_LINE_LENGTH} characters")
            continue

        found = _ids_in_line(stripped)
        if not found:
            invalid += 1
            continue

        for video_id in found:
            if video_id in seen:
                continue
            if len(video_ids) >= max_count:
                logger.warning(
                    f"Maximum URL count ({max_count}) reached. Remaining lines will be ignored."
                )
                return video_ids
            seen.add(video_id)
            video_ids.append(video_id)

    if invalid:
        logger.debug(f"Ignored {invalid} line(s) without a recognizable YouTube URL")
    return video_ids


def read_input_file(working_dir: Union[str, Path], filename: str = DEFAULT_INPUT_FILE) -> List[str]:
    """Read the input file from a project directory and extract its video IDs.

    Args:
        working_dir: Project directory containing the input file
        filename: Input file name relative to ``working_dir``

    Returns:
        Unique video IDs in file order

    Raises:
        InputFileError: If the file is missing, too large, a directory,
            unreadable, or looks binary
    """
    try:
        path = ensure_subpath(Path(working_dir), filename)
    except ValueError as e:
        raise InputFileError(f"Security validation failed: {e}") from e

    if not path.exists():
        raise InputFileError(
            f"YouTube URL file not found: {path}\n"
            f"Please create {filename} with one YouTube URL per line"
        )
    if path.is_dir():
        raise InputFileError(f"Path is a directory, not a file: {path}")

    try:
        size = path.stat().st_size
        if size > MAX_INPUT_FILE_SIZE:
            raise InputFileError(
                f"File too large: {size / 1024 / 1024:.2f}MB exceeds "
                f"{MAX_INPUT_FILE_SIZE // (1024 * 1024)}MB limit"
            )
        content = path.read_text(encoding="utf-8", errors="replace")
    except PermissionError as e:
        raise InputFileError(f"Permission denied reading {path}") from e
    except OSError as e:
        raise InputFileError(f"Failed to read {path}: {e}") from e

    if _looks_binary(content[:8000]):
        raise InputFileError(f"Invalid file format: {filename} must be a text file")

    return extract_video_ids(content)


def _ids_in_line(line: str) -> List[str]:
    matches = []
    for pattern in YOUTUBE_URL_PATTERNS:
        for match in pattern.finditer(line):
            matches.append((match.start(), match.group(1)))
    matches.sort()
    return [video_id for _, video_id in matches if is_valid_video_id(video_id)]


def _looks_binary(sample: str) -> bool:
    if "\x00" in sample:
        return True
    window = sample[:1000]
    non_printable = sum(1 for ch in window if ord(ch) < 32 and ch not in "\t\n\r")
    return non_printable > len(window) * 0.1
