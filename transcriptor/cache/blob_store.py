"""Central storage of transcript blobs, one markdown file per video ID."""
from __future__ import annotations

from pathlib import Path

from ..errors import BlobNotFoundError, StorageAccessError
from ..utils.logging_factory import DEFAULT_LOG_CONTEXT, LogContext
from ..utils.paths import StoragePaths, atomic_write_text


class BlobStore:
    """Reads and writes transcript files under ``<root>/transcripts``.

    Writes are atomic: a reader sees either the previous blob or the new
    one. Paths are always derived from a validated video ID.
    """

    def __init__(self, paths: StoragePaths, log_context: LogContext = DEFAULT_LOG_CONTEXT) -> None:
        self.paths = paths
        self.logger = log_context.get_logger(__name__)

    def path_for(self, video_id: str) -> Path:
        """Absolute path of a blob (whether or not it exists)."""
        return self.paths.blob_path(video_id)

    def exists(self, video_id: str) -> bool:
        return self.path_for(video_id).is_file()

    def read(self, video_id: str) -> str:
        """Return blob content.

        Raises:
            BlobNotFoundError: If the blob does not exist
        """
        path = self.path_for(video_id)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise BlobNotFoundError(video_id, str(path)) from e

    def write(self, video_id: str, content: str) -> Path:
        """Create or overwrite a blob.

        Raises:
            StorageAccessError: If the file cannot be written
        """
        path = self.path_for(video_id)
        try:
            atomic_write_text(path, content)
        except OSError as e:
            raise StorageAccessError(f"Failed to write transcript {video_id}: {e}", path=str(path)) from e
        self.logger.debug(f"Saved transcript {video_id} ({len(content)} chars)")
        return path

    def delete(self, video_id: str) -> None:
        """Delete a blob.

        Raises:
            BlobNotFoundError: If the blob does not exist
        """
        path = self.path_for(video_id)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise BlobNotFoundError(video_id, str(path)) from e
        self.logger.debug(f"Deleted transcript {video_id}")

    def size_of(self, video_id: str) -> int:
        """Blob size in bytes, read from file metadata.

        Raises:
            BlobNotFoundError: If the blob does not exist
        """
        path = self.path_for(video_id)
        try:
            return path.stat().st_size
        except FileNotFoundError as e:
            raise BlobNotFoundError(video_id, str(path)) from e

