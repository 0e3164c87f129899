"""Unit tests for registry timestamp helpers."""
from __future__ import annotations

from datetime import date, datetime

import pytest

from transcriptor.utils.dates import (
    convert_date_to_prefix,
    extract_date_prefix,
    generate_date_added,
    is_valid_date_added,
    is_valid_legacy_date,
    is_valid_timestamp,
    migrate_legacy_date,
    parse_cutoff,
)


class TestGenerateDateAdded:
    def test_format(self):
        assert generate_date_added(datetime(2025, 11, 22, 14, 30)) == "251122T1430"

    def test_current_time_is_valid(self):
        assert is_valid_timestamp(generate_date_added())


class TestValidation:
    """Tests for both on-disk date formats."""

    @pytest.mark.parametrize("value", ["251122T1430", "000101T0000", "240229T2359"])
    def test_valid_timestamps(self, value):
        assert is_valid_timestamp(value)

    @pytest.mark.parametrize(
        "value",
        ["251322T1430", "250230T0000", "251122T2400", "251122T1260", "2511221430", "251122t1430", None, 251122],
    )
    def test_invalid_timestamps(self, value):
        assert not is_valid_timestamp(value)

    def test_legacy_dates(self):
        assert is_valid_legacy_date("2025-11-01")
        assert not is_valid_legacy_date("1999-12-31")
        assert not is_valid_legacy_date("2025-02-30")
        assert not is_valid_legacy_date("2025-1-01")

    def test_either_format_accepted_on_disk(self):
        assert is_valid_date_added("2025-11-01")
        assert is_valid_date_added("251101T0900")
        assert not is_valid_date_added("Nov 1 2025")


class TestMigration:
    def test_legacy_becomes_midnight(self):
        assert migrate_legacy_date("2025-11-01") == "251101T0000"

    def test_invalid_legacy_rejected(self):
        with pytest.raises(ValueError):
            migrate_legacy_date("2025-13-01")


class TestCutoff:
    """Tests for the clean command's date boundary helpers."""

    def test_prefix_conversion(self):
        assert convert_date_to_prefix("2025-11-01") == "251101"

    def test_invalid_cutoff_message(self):
        with pytest.raises(ValueError, match="Expected YYYY-MM-DD"):
            convert_date_to_prefix("11/01/2025")

    def test_prefix_comparison_is_exclusive(self):
        prefix = convert_date_to_prefix("2025-11-01")
        assert extract_date_prefix("251031T2359") < prefix
        assert not extract_date_prefix("251101T0000") < prefix

    def test_parse_cutoff(self):
        assert parse_cutoff("2025-11-01") == date(2025, 11, 1)
