"""Unit tests for metric point construction."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from dirsize_reporter.core.errors import PointError
from dirsize_reporter.core.points import (
    MAX_FIELD_VALUE,
    build_point,
    derive_path_tags,
    merge_tag_sets,
)
from dirsize_reporter.types.models import MEASUREMENT_NAME, DirectoryMapping, SizeSample

OBSERVED = datetime(2024, 1, 1, tzinfo=UTC)


def _sample(label: str = "/data/a", size: int = 10, set_name: str | None = None) -> SizeSample:
    return SizeSample(
        mapping=DirectoryMapping(label=label, path="/mnt/scan", set_name=set_name),
        bytes=size,
        observed_at=OBSERVED,
    )


class TestDerivePathTags:
    """Test tags derived from a mapping label."""

    @pytest.mark.parametrize(
        ("label", "directory_path", "base_path"),
        [
            ("/data/media/movies", "/data/media", "movies"),
            ("/data", "/", "data"),
            ("/", "/", "/"),
            ("relative", ".", "relative"),
        ],
    )
    def test_derived_tags(self, label: str, directory_path: str, base_path: str) -> None:
        """Test dirname and basename are taken from the label."""
        assert derive_path_tags(label) == {
            "absolute_path": label,
            "directory_path": directory_path,
            "base_path": base_path,
        }


class TestMergeTagSets:
    """Test tag merging precedence."""

    def test_later_sets_win(self) -> None:
        """Test later tag sets overwrite earlier keys."""
        assert merge_tag_sets({"a": "1", "b": "1"}, {"b": "2"}, {"c": "3"}) == {"a": "1", "b": "2", "c": "3"}

    def test_inputs_not_mutated(self) -> None:
        """Test merging returns a new mapping."""
        static = {"env": "prod"}
        _ = merge_tag_sets(static, {"env": "dev"})
        assert static == {"env": "prod"}


class TestBuildPoint:
    """Test build_point behaviour."""

    def test_point_contents(self) -> None:
        """Test measurement, tags, field and timestamp of a point."""
        point = build_point(_sample(), {"env": "prod"})
        assert point.measurement == MEASUREMENT_NAME
        assert point.tags == {
            "env": "prod",
            "absolute_path": "/data/a",
            "directory_path": "/data",
            "base_path": "a",
        }
        assert point.fields == {"value": 10}
        assert point.timestamp == OBSERVED

    def test_label_drives_tags_not_path(self) -> None:
        """Test the scanned path never leaks into the tags."""
        point = build_point(_sample(label="/external/share"), {})
        assert "/mnt/scan" not in point.tags.values()
        assert point.tags["absolute_path"] == "/external/share"

    def test_derived_tags_override_static(self) -> None:
        """Test a static tag cannot shadow a derived tag."""
        point = build_point(_sample(), {"absolute_path": "/spoofed", "env": "prod"})
        assert point.tags["absolute_path"] == "/data/a"
        assert point.tags["env"] == "prod"

    def test_set_tag_added(self) -> None:
        """Test mappings from a set carry the set tag, overriding a static one."""
        point = build_point(_sample(set_name="media"), {"set": "static"})
        assert point.tags["set"] == "media"

    def test_no_set_tag_without_set(self) -> None:
        """Test ungrouped mappings have no set tag."""
        assert "set" not in build_point(_sample(), {}).tags

    def test_explicit_timestamp_used(self) -> None:
        """Test the cycle timestamp overrides the sample time."""
        cycle_time = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)
        assert build_point(_sample(), {}, timestamp=cycle_time).timestamp == cycle_time

    def test_zero_size_allowed(self) -> None:
        """Test empty directories produce a zero-valued point."""
        assert build_point(_sample(size=0), {}).fields == {"value": 0}

    def test_max_size_allowed(self) -> None:
        """Test the largest signed 64-bit value is accepted."""
        assert build_point(_sample(size=MAX_FIELD_VALUE), {}).fields == {"value": MAX_FIELD_VALUE}

    @pytest.mark.parametrize("size", [-1, MAX_FIELD_VALUE + 1])
    def test_out_of_range_size_rejected(self, size: int) -> None:
        """Test sizes outside the field range raise PointError."""
        with pytest.raises(PointError, match="out of range"):
            _ = build_point(_sample(size=size), {})

    def test_non_integer_size_rejected(self) -> None:
        """Test non-integer sizes raise PointError."""
        with pytest.raises(PointError, match="not an integer"):
            _ = build_point(_sample(size=True), {})
        with pytest.raises(PointError, match="not an integer"):
            _ = build_point(_sample(size=1.5), {})  # pyright: ignore[reportArgumentType]

    def test_empty_label_rejected(self) -> None:
        """Test an empty label raises PointError."""
        with pytest.raises(PointError, match="empty label"):
            _ = build_point(_sample(label=""), {})

    def test_undecodable_label_rejected(self) -> None:
        """Test a label carrying surrogate escapes from an undecodable file name is rejected."""
        with pytest.raises(PointError, match="not valid UTF-8"):
            _ = build_point(_sample(label="/data/caf\udce9"), {})

    def test_undecodable_static_tag_rejected(self) -> None:
        """Test static tags must be encodable as UTF-8."""
        with pytest.raises(PointError, match="not valid UTF-8"):
            _ = build_point(_sample(), {"host": "caf\udce9"})

    def test_invalid_static_tags_rejected(self) -> None:
        """Test empty tag keys and newlines raise PointError."""
        with pytest.raises(PointError, match="must not be empty"):
            _ = build_point(_sample(), {"": "x"})
        with pytest.raises(PointError, match="newline"):
            _ = build_point(_sample(), {"env": "a\nb"})
