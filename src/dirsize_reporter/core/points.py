"""Construction of metric points from size samples.

Tags are merged in a fixed order: statically configured tags first, then the
``set`` tag, then the tags derived from the mapping label. Later merges win,
so derived tags always override a static tag with the same key.
"""

import posixpath
from collections.abc import Mapping
from datetime import datetime
from typing import Final

from dirsize_reporter.core.errors import PointError
from dirsize_reporter.types.models import MEASUREMENT_NAME, MetricPoint, SizeSample

SET_TAG: Final[str] = "set"
VALUE_FIELD: Final[str] = "value"

# Integer fields are stored as signed 64-bit values by the sink
MAX_FIELD_VALUE: Final[int] = 2**63 - 1


def merge_tag_sets(*tag_sets: Mapping[str, str]) -> dict[str, str]:
    """Merge tag sets left to right; later sets overwrite earlier keys.

    Examples:
        >>> merge_tag_sets({"env": "prod", "host": "a"}, {"host": "b"})
        {'env': 'prod', 'host': 'b'}
    """
    merged: dict[str, str] = {}
    for tag_set in tag_sets:
        merged.update(tag_set)
    return merged


def derive_path_tags(label: str) -> dict[str, str]:
    """Derive the path tags reported for a mapping label.

    Examples:
        >>> derive_path_tags("/data/media/movies")
        {'absolute_path': '/data/media/movies', 'directory_path': '/data/media', 'base_path': 'movies'}
    """
    return {
        "absolute_path": label,
        "directory_path": posixpath.dirname(label) or ".",
        "base_path": posixpath.basename(label) or label,
    }


def _validate_tags(tags: Mapping[str, str]) -> None:
    for key, value in tags.items():
        if not key:
            msg = "Tag keys must not be empty"
            raise PointError(msg)
        if "\n" in key or "\n" in value:
            msg = f"Tag {key!r} contains a newline"
            raise PointError(msg)
        try:
            _ = key.encode("utf-8")
            _ = value.encode("utf-8")
        except UnicodeEncodeError as exc:
            # Undecodable file names surface as lone surrogates
            msg = f"Tag {key!r} is not valid UTF-8: {value!r}"
            raise PointError(msg) from exc


def build_point(
    sample: SizeSample,
    static_tags: Mapping[str, str],
    *,
    timestamp: datetime | None = None,
) -> MetricPoint:
    """Build the metric point for one size sample.

    Args:
        sample: Measured size of a mapping
        static_tags: Tags configured for every point
        timestamp: Cycle-wide capture instant (defaults to the sample time)

    Returns:
        Point with measurement ``directory_size_in_bytes`` and field ``value``

    Raises:
        PointError: If the label, tags or size cannot form a valid point
    """
    mapping = sample.mapping
    if not mapping.label:
        msg = f"Mapping for {mapping.path} has an empty label"
        raise PointError(msg)

    # bool is an int subclass; reject it explicitly
    if isinstance(sample.bytes, bool) or not isinstance(sample.bytes, int):
        msg = f"Size for {mapping.label} is not an integer: {sample.bytes!r}"
        raise PointError(msg)
    if not 0 <= sample.bytes <= MAX_FIELD_VALUE:
        msg = f"Size for {mapping.label} is out of range: {sample.bytes}"
        raise PointError(msg)

    set_tags = {SET_TAG: mapping.set_name} if mapping.set_name else {}
    tags = merge_tag_sets(static_tags, set_tags, derive_path_tags(mapping.label))
    _validate_tags(tags)

    return MetricPoint(
        measurement=MEASUREMENT_NAME,
        tags=tags,
        fields={VALUE_FIELD: sample.bytes},
        timestamp=timestamp if timestamp is not None else sample.observed_at,
    )
