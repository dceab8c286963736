"""Type definitions and protocols for dirsize-reporter.

This package provides:
- Data models (immutable dataclasses)
- Protocol definitions (structural subtyping interfaces)
"""

from dirsize_reporter.types.models import (
    MEASUREMENT_NAME,
    CycleReport,
    DirectoryMapping,
    DirectorySet,
    MetricPoint,
    SizeSample,
)
from dirsize_reporter.types.protocols import MetricSink, SizeScanner

__all__ = [
    "MEASUREMENT_NAME",
    # Data models
    "CycleReport",
    "DirectoryMapping",
    "DirectorySet",
    "MetricPoint",
    "SizeSample",
    # Protocols
    "MetricSink",
    "SizeScanner",
]
