"""Protocol definitions for component interfaces.

This module defines structural subtyping protocols that establish
contracts for core application components without requiring inheritance.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from dirsize_reporter.types.models import MetricPoint


@runtime_checkable
class MetricSink(Protocol):
    """Protocol for time-series stores receiving metric batches."""

    async def write_batch(self, database: str, points: Sequence[MetricPoint]) -> None:
        """Write one batch of points to the given database.

        Args:
            database: Target database name
            points: Points produced within a single cycle

        Raises:
            SinkError: If the batch could not be written
        """
        ...


class SizeScanner(Protocol):
    """Callable protocol for asynchronous subtree size scanning."""

    async def __call__(self, path: str) -> int: ...
