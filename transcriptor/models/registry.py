"""Data models for registry entries."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

UNKNOWN = "unknown"


@dataclass
class RegistryEntry:
    """One cache record, keyed by video ID in the registry.

    Attributes:
        date_added: ``YYMMDDTHHMM`` creation timestamp, never updated
        channel: Channel name, or ``unknown``
        title: Video title, or ``unknown``
        links: Absolute project directories that hold a link to the blob
    """

    date_added: str
    channel: str = UNKNOWN
    title: str = UNKNOWN
    links: List[str] = field(default_factory=list)

    def add_link(self, project_dir: str) -> bool:
        """Append a project directory if absent.

        Returns:
            True if the list changed
        """
        if project_dir in self.links:
            return False
        self.links.append(project_dir)
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "date_added": self.date_added,
            "channel": self.channel,
            "title": self.title,
            "links": list(self.links),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegistryEntry":
        """Create from an already-migrated dictionary."""
        return cls(
            date_added=data["date_added"],
            channel=data.get("channel", UNKNOWN),
            title=data.get("title", UNKNOWN),
            links=list(data.get("links", [])),
        )

    def copy(self) -> "RegistryEntry":
        return RegistryEntry(self.date_added, self.channel, self.title, list(self.links))


Registry = Dict[str, RegistryEntry]


def registry_to_dict(registry: Registry) -> Dict[str, Dict[str, Any]]:
    """Serialize a registry to the on-disk document shape."""
    return {video_id: entry.to_dict() for video_id, entry in registry.items()}


def copy_registry(registry: Registry) -> Registry:
    return {video_id: entry.copy() for video_id, entry in registry.items()}
