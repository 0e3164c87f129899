"""Path utilities for the central storage area and safe file IO.

Functions here centralize the storage layout, containment checks, and
atomic writes. Every write of the registry document or a transcript blob
goes through ``atomic_write_text`` so readers never observe a partial file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from .validation import assert_valid_video_id

logger = logging.getLogger(__name__)

REGISTRY_FILENAME = "data.json"
TRANSCRIPTS_DIRNAME = "transcripts"
DEFAULT_ROOT_DIRNAME = ".transcriptor"
BLOB_SUFFIX = ".md"


def ensure_subpath(root: Path, sub: Union[Path, str]) -> Path:
    """Return absolute path for `root/sub` ensuring it stays within `root`.

    Raises ValueError if the resolved path escapes the root directory.
    """
    root_resolved = Path(root).resolve()
    candidate = (root_resolved / Path(sub)).resolve()
    try:
        # Will raise ValueError if candidate is not within root
        candidate.relative_to(root_resolved)
    except ValueError as e:
        raise ValueError(f"Path escapes root: {candidate} not in {root_resolved}") from e
    return candidate


def default_root() -> Path:
    """Resolve ``~/.transcriptor``.

    Raises:
        RuntimeError: If the home directory cannot be determined
    """
    home = Path.home()
    if not str(home) or str(home) == "~":
        raise RuntimeError("Unable to determine home directory")
    return home / DEFAULT_ROOT_DIRNAME


@dataclass(frozen=True)
class StoragePaths:
    """Fixed layout of the central storage area.

    Attributes:
        root: Central root directory (``~/.transcriptor`` by default)
    """

    root: Path

    @classmethod
    def from_root(cls, root: Optional[Union[str, Path]] = None) -> "StoragePaths":
        if root is None:
            return cls(default_root())
        return cls(Path(root).expanduser().absolute())

    @property
    def registry_path(self) -> Path:
        return self.root / REGISTRY_FILENAME

    @property
    def transcripts_dir(self) -> Path:
        return self.root / TRANSCRIPTS_DIRNAME

    def blob_path(self, video_id: str) -> Path:
        """Absolute blob path for a validated video ID."""
        assert_valid_video_id(video_id)
        return self.transcripts_dir / f"{video_id}{BLOB_SUFFIX}"


def link_path(project_dir: Union[str, Path], video_id: str, link_dirname: str = TRANSCRIPTS_DIRNAME) -> Path:
    """Canonical location of a project's link to a blob.

    Args:
        project_dir: Absolute project directory
        video_id: Validated video ID
        link_dirname: Project-local directory that holds the links

    Returns:
        ``<project_dir>/<link_dirname>/<video_id>.md``
    """
    assert_valid_video_id(video_id)
    return Path(project_dir) / link_dirname / f"{video_id}{BLOB_SUFFIX}"


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write a file so that readers see either the old or the new content.

    The content is written to a temporary file in the destination directory,
    flushed to disk, and renamed over ``path`` in a single ``os.replace``.
    The temporary file is removed if anything fails before the rename.

    Propagates OSError/PermissionError to caller for handling.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        except OSError as cleanup_error:
            logger.warning(f"Failed to cleanup temp file {tmp_name}: {cleanup_error}")
        raise


def safe_write_json(path: Path, data: Any, *, encoding: str = "utf-8", indent: int = 2) -> None:
    """Atomically write JSON to file with parent creation.

    Propagates OSError/PermissionError to caller for handling.
    """
    atomic_write_text(path, json.dumps(data, indent=indent, ensure_ascii=False) + "\n", encoding=encoding)
