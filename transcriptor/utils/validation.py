"""Input validation for video identifiers and registry paths."""
from __future__ import annotations

import os
import re
from typing import Any, Union

from ..errors import InvalidVideoIdError

VIDEO_ID_LENGTH = 11
VIDEO_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{11}")


def is_valid_video_id(video_id: Any) -> bool:
    """Check whether a value is a well-formed video ID.

    Args:
        video_id: Candidate identifier

    Returns:
        True for an 11 character token of letters, digits, ``-`` and ``_``
    """
    return isinstance(video_id, str) and bool(VIDEO_ID_PATTERN.fullmatch(video_id))


def assert_valid_video_id(video_id: Any) -> str:
    """Validate a video ID, raising if it is malformed.

    Every filesystem path derived from an ID goes through this check first,
    which keeps IDs from carrying separators or traversal segments.

    Args:
        video_id: Candidate identifier

    Returns:
        The validated identifier

    Raises:
        InvalidVideoIdError: If the identifier is malformed
    """
    if not is_valid_video_id(video_id):
        raise InvalidVideoIdError(video_id)
    return video_id


def is_absolute_path(value: Any) -> bool:
    """Check that a registry link value is a non-empty absolute path string."""
    return isinstance(value, str) and value.strip() != "" and os.path.isabs(value)


def normalize_project_dir(project_dir: Union[str, "os.PathLike[str]"]) -> str:
    """Return the absolute, normalized form of a project directory.

    Symbolic links in the path are preserved; only ``.``/``..`` segments and
    duplicate separators are collapsed.

    Args:
        project_dir: Relative or absolute project directory

    Returns:
        Absolute normalized path string
    """
    return os.path.normpath(os.path.abspath(os.fspath(project_dir)))
