"""Registry document schema and load-time migration.

The on-disk document maps video IDs to entries with the keys
``date_added``, ``channel``, ``title`` and ``links``. Older releases wrote
``date_added`` as ``YYYY-MM-DD`` and sometimes omitted ``channel`` and
``title``. ``migrate_document`` validates the raw JSON with pydantic and
normalizes every entry to the current shape in one pass, so code past the
load path only ever sees ``YYMMDDTHHMM`` timestamps and complete entries.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from ..errors import CorruptRegistryError
from ..models import Registry, RegistryEntry
from ..utils.dates import is_valid_date_added, is_valid_legacy_date, is_valid_timestamp, migrate_legacy_date
from ..utils.validation import is_absolute_path, is_valid_video_id

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


class StoredEntry(BaseModel):
    """Schema of one entry as found on disk, in either format."""

    model_config = ConfigDict(extra="allow")

    date_added: StrictStr
    channel: Optional[StrictStr] = None
    title: Optional[StrictStr] = None
    links: List[StrictStr] = Field(default_factory=list)

    @field_validator("date_added")
    @classmethod
    def _check_date(cls, value: str) -> str:
        if not is_valid_date_added(value):
            raise ValueError(f"unrecognized date_added value {value!r}")
        return value


_DOCUMENT_ADAPTER = TypeAdapter(Dict[str, StoredEntry])


@dataclass
class MigrationReport:
    """Counts of the changes made while normalizing a document."""

    total: int = 0
    dates_converted: int = 0
    fields_filled: int = 0
    links_dropped: int = 0
    keys_dropped: int = 0

    @property
    def changed(self) -> bool:
        return bool(
            self.dates_converted or self.fields_filled or self.links_dropped or self.keys_dropped
        )

    def summary(self) -> str:
        return (
            f"{self.total} entries: {self.dates_converted} dates converted, "
            f"{self.fields_filled} fields filled, {self.links_dropped} links dropped, "
            f"{self.keys_dropped} unknown keys dropped"
        )


def migrate_document(raw: Any, source: Optional[str] = None) -> Tuple[Registry, MigrationReport]:
    """Validate a parsed registry document and normalize it to the current format.

    Args:
        raw: Result of ``json.loads`` on the registry file
        source: Path used in error messages

    Returns:
        The normalized registry and a report of what changed

    Raises:
        CorruptRegistryError: If the document or any entry violates the schema
    """
    if not isinstance(raw, dict):
        raise CorruptRegistryError(
            f"Registry must be a JSON object, got {type(raw).__name__}", path=source
        )

    for video_id in raw:
        if not is_valid_video_id(video_id):
            raise CorruptRegistryError(f"Invalid video ID in registry: {video_id!r}", path=source)

    try:
        parsed = _DOCUMENT_ADAPTER.validate_python(raw)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise CorruptRegistryError(
            f"Registry schema violation at {location}: {first['msg']}", path=source
        ) from e

    report = MigrationReport(total=len(parsed))
    registry: Registry = {}
    for video_id, stored in parsed.items():
        registry[video_id] = _migrate_entry(video_id, stored, report)

    if report.changed:
        logger.info(f"Registry migrated ({report.summary()})")
    return registry, report


def validate_registry(registry: Registry) -> None:
    """Check an in-memory registry before it is written.

    Raises:
        ValueError: Describing the first violation
    """
    for video_id, entry in registry.items():
        if not is_valid_video_id(video_id):
            raise ValueError(f"Invalid video ID: {video_id!r}")
        if not isinstance(entry, RegistryEntry):
            raise ValueError(f"{video_id}: entry is not a RegistryEntry")
        if not is_valid_timestamp(entry.date_added):
            raise ValueError(f"{video_id}: invalid date_added {entry.date_added!r}")
        if len(set(entry.links)) != len(entry.links):
            raise ValueError(f"{video_id}: duplicate links")
        for link in entry.links:
            if not is_absolute_path(link):
                raise ValueError(f"{video_id}: link is not an absolute path: {link!r}")


def _migrate_entry(video_id: str, stored: StoredEntry, report: MigrationReport) -> RegistryEntry:
    date_added = stored.date_added
    if is_valid_legacy_date(date_added):
        date_added = migrate_legacy_date(date_added)
        report.dates_converted += 1
        logger.debug(f"{video_id}: date converted to {date_added}")

    channel = stored.channel
    if not channel or not channel.strip():
        channel = UNKNOWN
        report.fields_filled += 1

    title = stored.title
    if not title or not title.strip():
        title = UNKNOWN
        report.fields_filled += 1

    links: List[str] = []
    for link in stored.links:
        if not is_absolute_path(link) or link in links:
            report.links_dropped += 1
            logger.debug(f"{video_id}: dropped link {link!r}")
            continue
        links.append(link)

    if stored.model_extra:
        report.keys_dropped += len(stored.model_extra)
        logger.debug(f"{video_id}: dropped keys {sorted(stored.model_extra)}")

    return RegistryEntry(date_added=date_added, channel=channel, title=title, links=links)
