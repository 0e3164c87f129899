"""Global pytest fixtures and configuration.

This module provides shared fixtures for all tests including:
- An isolated home directory and central storage root per test
- Wired storage components (registry store, blob store, link manager, maintenance)
- A scripted fake fetcher so pipeline tests never touch the network
- A recording sleep function so retry tests never wait
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest

from transcriptor.cache import BlobStore, LinkManager, MaintenanceService, RegistryStore
from transcriptor.errors import FetchError
from transcriptor.models import RegistryEntry
from transcriptor.services.fetcher import FetchedTranscript
from transcriptor.utils.paths import StoragePaths

VIDEO_A = "dQw4w9WgXcQ"
VIDEO_B = "jNQXAC9IVRw"
VIDEO_C = "9bZkp7q19f0"

_ENV_KEYS = [
    "SCRAPE_CREATORS_API_KEY",
    "TRANSCRIPTOR_HOME",
    "TRANSCRIPTOR_API_BASE_URL",
    "TRANSCRIPTOR_INPUT_FILE",
    "TRANSCRIPTOR_LINK_DIR",
    "TRANSCRIPTOR_REQUEST_TIMEOUT",
    "TRANSCRIPTOR_METADATA_TIMEOUT",
    "TRANSCRIPTOR_RETRY_MAX_ATTEMPTS",
    "TRANSCRIPTOR_RETRY_INITIAL_DELAY",
    "TRANSCRIPTOR_RETRY_MULTIPLIER",
    "TRANSCRIPTOR_RETRY_MAX_DELAY",
    "TRANSCRIPTOR_RETRY_JITTER",
    "TRANSCRIPTOR_RETRY_MIN_DELAY",
    "TRANSCRIPTOR_RETRY_BUDGET",
    "TRANSCRIPTOR_RETRY_MAX_RETRY_AFTER",
    "TRANSCRIPTOR_TITLE_RETRIES",
    "TRANSCRIPTOR_TITLE_RETRY_DELAY",
    "LOG_LEVEL",
    "LOG_FILE",
    "NO_COLOR",
    "SHOW_PROGRESS",
]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path: Path) -> Path:
    """Point HOME at a temporary directory and clear transcriptor variables.

    Guarantees no test reads a developer's ``~/.env`` or touches the real
    ``~/.transcriptor``.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return home


@pytest.fixture
def storage_paths(tmp_path: Path) -> StoragePaths:
    return StoragePaths.from_root(tmp_path / "store")


@pytest.fixture
def registry_store(storage_paths: StoragePaths) -> RegistryStore:
    store = RegistryStore(storage_paths)
    store.initialize()
    return store


@pytest.fixture
def blob_store(storage_paths: StoragePaths) -> BlobStore:
    return BlobStore(storage_paths)


@pytest.fixture
def link_manager(registry_store: RegistryStore, blob_store: BlobStore) -> LinkManager:
    return LinkManager(registry_store, blob_store)


@pytest.fixture
def maintenance(registry_store, blob_store, link_manager) -> MaintenanceService:
    return MaintenanceService(registry_store, blob_store, link_manager)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def add_cached(registry_store: RegistryStore, blob_store: BlobStore):
    """Register a video with a blob, as if it had been fetched earlier."""

    def _add(
        video_id: str,
        date_added: str = "251101T1200",
        title: str = "cached title",
        links: Optional[List[str]] = None,
        content: str = "cached transcript",
    ) -> RegistryEntry:
        blob_store.write(video_id, content)
        registry = registry_store.load()
        entry = RegistryEntry(date_added=date_added, channel="Channel", title=title, links=list(links or []))
        registry[video_id] = entry
        registry_store.save(registry)
        return entry

    return _add


class FakeFetcher:
    """Scripted fetcher: returns canned transcripts or raises canned errors.

    Attributes:
        calls: Video IDs in the order they were fetched
    """

    def __init__(self, responses: Optional[Dict[str, Union[FetchedTranscript, FetchError]]] = None):
        self.responses = dict(responses or {})
        self.calls: List[str] = []
        self.closed = False

    def fetch(self, video_id: str) -> FetchedTranscript:
        self.calls.append(video_id)
        response = self.responses.get(video_id)
        if isinstance(response, FetchError):
            raise response
        if response is None:
            return FetchedTranscript(
                content=f"transcript of {video_id}", title=f"Title {video_id}", channel="Some Channel"
            )
        return response

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


class RecordingSleep:
    """Sleep replacement that records requested delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.delays)


@pytest.fixture
def no_sleep() -> RecordingSleep:
    return RecordingSleep()


def no_jitter(low: float, high: float) -> float:
    """Uniform replacement that always returns the midpoint (zero jitter)."""
    return (low + high) / 2
