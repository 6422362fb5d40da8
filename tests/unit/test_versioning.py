"""
Unit tests for version and timestamp ordering.
"""
from datetime import datetime, timedelta, timezone

import pytest

from examdeck.core.versioning import (
    compare_versions,
    format_timestamp,
    is_newer,
    parse_timestamp,
)

T1 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestCompareVersions:
    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ("1.0", "1.0", 0),
            ("2", "2.0", 0),
            ("v1.2", "1.2", 0),
            ("1.10", "1.9", 1),
            ("10.0", "2.0", 1),
            ("1.0", "1.0.1", -1),
            ("2.0-rc1", "2.0-rc2", -1),
            ("2.0.1", "2.0-beta", -1),
        ],
    )
    def test_ordering(self, a, b, expected):
        assert compare_versions(a, b) == expected

    def test_is_antisymmetric(self):
        assert compare_versions("1.2", "1.3") == -compare_versions("1.3", "1.2")


class TestIsNewer:
    def test_greater_version_wins_regardless_of_timestamp(self):
        assert is_newer("1.1", T1 - timedelta(days=10), "1.0", T1)

    def test_lower_version_never_wins(self):
        assert not is_newer("0.9", T1 + timedelta(days=10), "1.0", T1)

    def test_equal_version_needs_strictly_newer_timestamp(self):
        assert is_newer("1.0", T1 + timedelta(seconds=1), "1.0", T1)
        assert not is_newer("1.0", T1, "1.0", T1)
        assert not is_newer("1.0", T1 - timedelta(seconds=1), "1.0", T1)

    def test_naive_timestamps_are_treated_as_utc(self):
        naive = datetime(2024, 1, 1, 0, 0, 1)
        assert is_newer("1.0", naive, "1.0", T1)


class TestTimestamps:
    def test_trailing_z_is_utc(self):
        assert parse_timestamp("2024-01-01T00:00:00Z") == T1

    def test_offsets_are_normalized(self):
        assert parse_timestamp("2024-01-01T02:00:00+02:00") == T1

    def test_format_round_trips(self):
        assert parse_timestamp(format_timestamp(T1)) == T1

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")
