"""InfluxDB line protocol encoding for metric points.

Examples:
    >>> from datetime import UTC, datetime
    >>> point = MetricPoint(
    ...     tags={"base_path": "my dir", "env": "prod"},
    ...     fields={"value": 10},
    ...     timestamp=datetime(2024, 1, 1, tzinfo=UTC),
    ... )
    >>> encode_point(point, precision="s")
    'directory_size_in_bytes,base_path=my\\\\ dir,env=prod value=10i 1704067200'
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Final, Literal

from dirsize_reporter.types.models import MetricPoint

type Precision = Literal["ns", "u", "ms", "s"]

_EPOCH: Final[datetime] = datetime(1970, 1, 1, tzinfo=UTC)

_NANOS_PER_UNIT: Final[dict[str, int]] = {
    "ns": 1,
    "u": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
}

_MEASUREMENT_ESCAPES: Final[dict[int, str]] = str.maketrans({",": r"\,", " ": r"\ "})
_KEY_ESCAPES: Final[dict[int, str]] = str.maketrans({",": r"\,", "=": r"\=", " ": r"\ "})


def escape_measurement(name: str) -> str:
    """Escape a measurement name."""
    return name.translate(_MEASUREMENT_ESCAPES)


def escape_key(value: str) -> str:
    """Escape a tag key, tag value or field key."""
    return value.translate(_KEY_ESCAPES)


def timestamp_to_epoch(timestamp: datetime, precision: Precision = "ns") -> int:
    """Convert a datetime to an integer epoch offset in the given precision.

    Naive datetimes are interpreted as local time.
    """
    delta = timestamp.astimezone(UTC) - _EPOCH
    nanos = (delta.days * 86_400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1_000
    return nanos // _NANOS_PER_UNIT[precision]


def _format_field(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(value)
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def encode_point(point: MetricPoint, *, precision: Precision = "ns") -> str:
    """Render one point as a line of line protocol.

    Tags are sorted by key and tags with empty values are dropped.
    """
    head = escape_measurement(point.measurement)
    tags = ",".join(f"{escape_key(key)}={escape_key(value)}" for key, value in sorted(point.tags.items()) if value)
    if tags:
        head = f"{head},{tags}"
    fields = ",".join(f"{escape_key(key)}={_format_field(value)}" for key, value in sorted(point.fields.items()))
    return f"{head} {fields} {timestamp_to_epoch(point.timestamp, precision)}"


def encode_points(points: Iterable[MetricPoint], *, precision: Precision = "ns") -> str:
    """Render a batch of points, one per line."""
    return "\n".join(encode_point(point, precision=precision) for point in points)
