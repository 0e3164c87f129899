"""Registry statistics for the ``data`` command."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import BlobNotFoundError
from .blob_store import BlobStore
from .registry_store import EntryMetadata, RegistryStore

logger = logging.getLogger(__name__)

_SIZE_UNITS = ["B", "KB", "MB", "GB"]


def format_size(num_bytes: Any) -> str:
    """Format a byte count as ``B``/``KB``/``MB``/``GB`` with two decimals above bytes."""
    if not isinstance(num_bytes, (int, float)) or isinstance(num_bytes, bool) or num_bytes < 0:
        return "0 B"
    if num_bytes != num_bytes:
        return "0 B"

    size = float(num_bytes)
    unit = 0
    while size >= 1024 and unit < len(_SIZE_UNITS) - 1:
        size /= 1024
        unit += 1

    if unit == 0:
        return f"{int(size)} B"
    return f"{size:.2f} {_SIZE_UNITS[unit]}"


@dataclass
class EntryStatistics:
    video_id: str
    date_added: str
    channel: str
    title: str
    link_count: int
    size_bytes: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "video_id": self.video_id,
            "date_added": self.date_added,
            "channel": self.channel,
            "title": self.title,
            "link_count": self.link_count,
            "size_bytes": self.size_bytes,
        }


@dataclass
class RegistryStatistics:
    """Totals and date range of the registry."""

    total: int = 0
    size_bytes: int = 0
    oldest: Optional[str] = None
    newest: Optional[str] = None
    missing_blobs: int = 0
    entries: List[EntryStatistics] = field(default_factory=list)

    @property
    def size_display(self) -> str:
        return format_size(self.size_bytes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "size_bytes": self.size_bytes,
            "size": self.size_display,
            "oldest": self.oldest,
            "newest": self.newest,
            "missing_blobs": self.missing_blobs,
            "entries": [entry.to_dict() for entry in self.entries],
        }


def calculate_statistics(registry_store: RegistryStore, blob_store: BlobStore) -> RegistryStatistics:
    """Compute statistics from registry metadata and blob file sizes.

    Blob contents are never read; sizes come from file metadata.
    """
    metadata: List[EntryMetadata] = registry_store.load_metadata_only()
    stats = RegistryStatistics(total=len(metadata))
    if not metadata:
        return stats

    dates = sorted(item.date_added for item in metadata if item.date_added)
    stats.oldest = dates[0] if dates else None
    stats.newest = dates[-1] if dates else None

    for item in sorted(metadata, key=lambda m: (m.date_added, m.video_id)):
        try:
            size: Optional[int] = blob_store.size_of(item.video_id)
        except BlobNotFoundError:
            size = None
            stats.missing_blobs += 1
            logger.debug(f"Blob missing for {item.video_id}")
        else:
            stats.size_bytes += size

        stats.entries.append(
            EntryStatistics(
                video_id=item.video_id,
                date_added=item.date_added,
                channel=item.channel,
                title=item.title,
                link_count=item.link_count,
                size_bytes=size,
            )
        )

    return stats
