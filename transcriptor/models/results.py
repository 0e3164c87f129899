"""Result records returned by storage, maintenance, and pipeline operations."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass
class OperationError:
    """A per-item failure collected instead of raised."""

    target: str
    message: str
    video_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AttachResult:
    """Outcome of linking a blob into a project."""

    video_id: str
    link_path: str
    project_dir: str
    replaced: bool = False
    link_added: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DetachResult:
    """Outcome of removing every project link of one entry."""

    removed: int = 0
    skipped: int = 0
    errors: List[OperationError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "removed": self.removed,
            "skipped": self.skipped,
            "errors": [error.to_dict() for error in self.errors],
        }


@dataclass
class MaintenanceResult:
    """Summary of one integrity reconciliation pass."""

    checked: int = 0
    orphaned: int = 0
    links_removed: int = 0
    links_failed: int = 0
    errors: List[OperationError] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.orphaned or self.links_removed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checked": self.checked,
            "orphaned": self.orphaned,
            "links_removed": self.links_removed,
            "links_failed": self.links_failed,
            "errors": [error.to_dict() for error in self.errors],
        }


class ItemStatus(Enum):
    CACHED = "cached"
    FETCHED = "fetched"
    FAILED = "failed"


@dataclass
class ItemResult:
    """Per-video outcome of the processing pipeline."""

    video_id: str
    status: ItemStatus
    linked: bool = False
    title: Optional[str] = None
    channel: Optional[str] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class BatchSummary:
    """Per-run counts reported at the end of ``process``."""

    total: int = 0
    cached: int = 0
    fetched: int = 0
    linked: int = 0
    failed: int = 0
    items: List[ItemResult] = field(default_factory=list)
    maintenance: Optional[MaintenanceResult] = None

    def record(self, item: ItemResult) -> None:
        self.items.append(item)
        self.total += 1
        if item.status is ItemStatus.CACHED:
            self.cached += 1
        elif item.status is ItemStatus.FETCHED:
            self.fetched += 1
        else:
            self.failed += 1
        if item.linked:
            self.linked += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "cached": self.cached,
            "fetched": self.fetched,
            "linked": self.linked,
            "failed": self.failed,
            "items": [item.to_dict() for item in self.items],
            "maintenance": self.maintenance.to_dict() if self.maintenance else None,
        }


@dataclass
class CleanupResult:
    """Summary of a ``clean`` run."""

    deleted: int = 0
    failed: int = 0
    links_removed: int = 0
    links_skipped: int = 0
    deleted_ids: List[str] = field(default_factory=list)
    errors: List[OperationError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deleted": self.deleted,
            "failed": self.failed,
            "links_removed": self.links_removed,
            "links_skipped": self.links_skipped,
            "deleted_ids": list(self.deleted_ids),
            "errors": [error.to_dict() for error in self.errors],
        }
