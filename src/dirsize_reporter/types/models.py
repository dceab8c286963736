"""Data models for dirsize-reporter.

This module defines immutable dataclasses used throughout the application
for type-safe data transfer between components.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Final

MEASUREMENT_NAME: Final[str] = "directory_size_in_bytes"


@dataclass(slots=True, frozen=True)
class DirectoryMapping:
    """A single scan target and the identity it is reported under.

    ``label`` is what ends up in the emitted tags; ``path`` is the concrete
    filesystem location that is traversed. The two differ when the scanned
    location is a mounted alias of some externally meaningful path.
    """

    label: str
    path: str
    set_name: str | None = None


@dataclass(slots=True, frozen=True)
class DirectorySet:
    """Named group of mappings sharing one expansion depth."""

    name: str
    mappings: tuple[DirectoryMapping, ...]
    depth: int = 0


@dataclass(slots=True, frozen=True)
class SizeSample:
    """Size of one mapping observed during a cycle."""

    mapping: DirectoryMapping
    bytes: int
    observed_at: datetime


@dataclass(slots=True, frozen=True)
class MetricPoint:
    """Immutable metric point ready to be written to the sink."""

    tags: Mapping[str, str]
    fields: Mapping[str, int]
    timestamp: datetime
    measurement: str = MEASUREMENT_NAME


@dataclass(slots=True, frozen=True)
class CycleReport:
    """Outcome of one scan-and-report cycle.

    ``sent`` counts points accepted by the sink, so it stays zero for dry runs
    and for cycles whose batch write failed.
    """

    sent: int
    skipped: int
    sink_error: Exception | None = None
    points: tuple[MetricPoint, ...] = field(default=())
