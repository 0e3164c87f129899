"""Tests for BlobStore."""
from __future__ import annotations

import pytest

from conftest import VIDEO_A
from transcriptor.cache import BlobStore
from transcriptor.errors import BlobNotFoundError, InvalidVideoIdError


class TestBlobStore:
    def test_write_read_roundtrip(self, blob_store: BlobStore):
        path = blob_store.write(VIDEO_A, "# Transcript\n\nhello")
        assert path == blob_store.paths.transcripts_dir / f"{VIDEO_A}.md"
        assert blob_store.exists(VIDEO_A)
        assert blob_store.read(VIDEO_A) == "# Transcript\n\nhello"

    def test_overwrite(self, blob_store: BlobStore):
        blob_store.write(VIDEO_A, "old")
        blob_store.write(VIDEO_A, "new")
        assert blob_store.read(VIDEO_A) == "new"

    def test_size_from_metadata(self, blob_store: BlobStore):
        blob_store.write(VIDEO_A, "héllo")
        assert blob_store.size_of(VIDEO_A) == len("héllo".encode("utf-8"))

    def test_missing_blob_errors(self, blob_store: BlobStore):
        assert not blob_store.exists(VIDEO_A)
        with pytest.raises(BlobNotFoundError):
            blob_store.read(VIDEO_A)
        with pytest.raises(BlobNotFoundError):
            blob_store.delete(VIDEO_A)
        with pytest.raises(BlobNotFoundError):
            blob_store.size_of(VIDEO_A)

    def test_delete(self, blob_store: BlobStore):
        blob_store.write(VIDEO_A, "x")
        blob_store.delete(VIDEO_A)
        assert not blob_store.exists(VIDEO_A)

    def test_rejects_invalid_ids(self, blob_store: BlobStore):
        with pytest.raises(InvalidVideoIdError):
            blob_store.write("../escape", "x")
