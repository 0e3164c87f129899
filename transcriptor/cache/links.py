"""Project-side symbolic links to central transcript blobs.

A link lives at ``<project>/transcripts/<video_id>.md`` and always points at
the absolute blob path. The registry entry's ``links`` list records which
project directories hold a link; ``attach`` is the only place that appends
to it, and it appends only if the directory is not already present.
"""
from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import Optional, Union

from ..errors import BlobNotFoundError, EntryNotFoundError, LinkConflictError
from ..models import AttachResult, DetachResult, OperationError, Registry
from ..utils.logging_factory import DEFAULT_LOG_CONTEXT, LogContext
from ..utils.paths import TRANSCRIPTS_DIRNAME, link_path
from ..utils.validation import assert_valid_video_id, normalize_project_dir
from .blob_store import BlobStore
from .registry_store import RegistryStore


class LinkManager:
    """Creates and removes project links and keeps ``RegistryEntry.links`` in step.

    Methods that take an optional ``registry`` mutate it in place when one is
    given and leave saving to the caller. Without one they load the registry
    themselves and save it if anything changed.
    """

    def __init__(
        self,
        registry_store: RegistryStore,
        blob_store: BlobStore,
        link_dirname: str = TRANSCRIPTS_DIRNAME,
        log_context: LogContext = DEFAULT_LOG_CONTEXT,
    ) -> None:
        self.registry_store = registry_store
        self.blob_store = blob_store
        self.link_dirname = link_dirname
        self.logger = log_context.get_logger(__name__)

    def link_path(self, project_dir: Union[str, Path], video_id: str) -> Path:
        return link_path(project_dir, video_id, self.link_dirname)

    def attach(
        self,
        video_id: str,
        project_dir: Union[str, Path],
        registry: Optional[Registry] = None,
    ) -> AttachResult:
        """Link a blob into a project and record the project on the entry.

        Args:
            video_id: Registered video ID
            project_dir: Project directory (normalized to an absolute path)
            registry: Registry to update in place; loaded and saved if omitted

        Returns:
            AttachResult; ``replaced`` is True when a link pointing elsewhere
            was swapped out

        Raises:
            EntryNotFoundError: If the ID is not registered
            BlobNotFoundError: If the blob is missing
            LinkConflictError: If a regular file or directory occupies the link path
            OSError: If the link cannot be created
        """
        assert_valid_video_id(video_id)
        project = normalize_project_dir(project_dir)

        owns_registry = registry is None
        if registry is None:
            registry = self.registry_store.load()

        entry = registry.get(video_id)
        if entry is None:
            raise EntryNotFoundError(video_id)

        blob_path = self.blob_store.path_for(video_id)
        if not blob_path.is_file():
            raise BlobNotFoundError(video_id, str(blob_path))

        target = self.link_path(project, video_id)
        target.parent.mkdir(parents=True, exist_ok=True)

        replaced = False
        needs_link = True
        if os.path.lexists(target):
            if not target.is_symlink():
                raise LinkConflictError(str(target))
            if os.readlink(target) == str(blob_path):
                needs_link = False
            else:
                replaced = True
                self.logger.info(f"Replacing existing link: {target}")

        if needs_link:
            self._create_symlink(blob_path, target)

        link_added = entry.add_link(project)
        if link_added:
            self.logger.debug(f"Tracked link for {video_id}: {project}")
            if owns_registry:
                self.registry_store.save(registry)
        else:
            self.logger.debug(f"Link already tracked for {video_id}: {project}")

        return AttachResult(
            video_id=video_id,
            link_path=str(target),
            project_dir=project,
            replaced=replaced,
            link_added=link_added,
        )

    def detach_all(self, video_id: str, registry: Optional[Registry] = None) -> DetachResult:
        """Remove every project link of an entry.

        Failures on one path do not stop the others. Paths whose link was
        removed or was already missing are dropped from ``links``; paths that
        failed stay so a later pass can retry them.

        Args:
            video_id: Registered video ID
            registry: Registry to update in place; loaded and saved if omitted

        Returns:
            DetachResult with removed/skipped counts and per-path errors
        """
        assert_valid_video_id(video_id)

        owns_registry = registry is None
        if registry is None:
            registry = self.registry_store.load()

        result = DetachResult()
        entry = registry.get(video_id)
        if entry is None or not entry.links:
            return result

        failed = []
        for project in entry.links:
            path = self.link_path(project, video_id)
            try:
                if self.remove_link(path):
                    result.removed += 1
                else:
                    result.skipped += 1
            except (OSError, LinkConflictError) as e:
                failed.append(project)
                result.errors.append(OperationError(target=str(path), message=str(e), video_id=video_id))
                self.logger.warning(f"Failed to remove link {path}: {e}")

        entry.links = failed

        if owns_registry and (result.removed or result.skipped):
            self.registry_store.save(registry)

        return result

    def remove_link(self, path: Union[str, Path]) -> bool:
        """Unlink one project link.

        Returns:
            True if a link was removed, False if nothing was there

        Raises:
            LinkConflictError: If the path is not a symbolic link
            OSError: If the unlink fails
        """
        path = Path(path)
        if not os.path.lexists(path):
            return False
        if not path.is_symlink():
            raise LinkConflictError(str(path))
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        self.logger.debug(f"Removed link {path}")
        return True

    def is_link_valid(self, project_dir: Union[str, Path], video_id: str) -> bool:
        """True when the project's link exists and resolves to this ID's blob."""
        path = self.link_path(project_dir, video_id)
        if not path.is_symlink():
            return False
        blob_path = self.blob_store.path_for(video_id)
        if not blob_path.is_file():
            return False
        return os.path.realpath(path) == os.path.realpath(blob_path)

    def _create_symlink(self, source: Path, target: Path) -> None:
        # Build the link beside the target and rename it into place
        temp = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
        try:
            os.symlink(str(source), temp)
            os.replace(temp, target)
        except OSError:
            if os.path.lexists(temp):
                os.unlink(temp)
            raise
        self.logger.debug(f"Linked {target} -> {source}")
