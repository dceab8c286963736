"""One scan-and-report pass over every configured mapping.

A cycle scans each mapping, turns the successful samples into metric points
sharing a single timestamp, and hands the whole batch to the sink in one
write. A failure is contained at the smallest scope it affects:

- a mapping that cannot be scanned or turned into a point is logged, counted
  as skipped and the cycle moves on;
- a failed batch write is logged and reported, never retried within the
  cycle; the next tick is an independent attempt.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from uuid import uuid4

from dirsize_reporter.core.errors import PointError, ScanError
from dirsize_reporter.core.points import build_point
from dirsize_reporter.core.scanner import scan_size_async
from dirsize_reporter.types import CycleReport, DirectoryMapping, MetricPoint, MetricSink, SizeSample, SizeScanner
from dirsize_reporter.utils.formatting import format_size
from dirsize_reporter.utils.logging import reset_correlation_id, set_correlation_id

__all__ = ["ScanCycle"]

type Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class ScanCycle:
    """Run scan cycles against a sink."""

    def __init__(
        self,
        sink: MetricSink,
        database: str,
        *,
        scanner: SizeScanner = scan_size_async,
        clock: Clock = _utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self.sink: MetricSink = sink
        self.database: str = database
        self.scanner: SizeScanner = scanner
        self.clock: Clock = clock
        self._logger: logging.Logger = logger or logging.getLogger(__name__)

    async def run_once(
        self,
        mappings: Sequence[DirectoryMapping],
        static_tags: Mapping[str, str],
        dry_run: bool,
    ) -> CycleReport:
        """Scan every mapping once and report the batch.

        Args:
            mappings: Expanded mappings to scan, in reporting order
            static_tags: Tags added to every point
            dry_run: Build the batch but never contact the sink

        Returns:
            Report with sent/skipped counters and the sink error, if any
        """
        token = set_correlation_id(uuid4().hex[:12])
        try:
            return await self._run(mappings, static_tags, dry_run)
        finally:
            reset_correlation_id(token)

    async def _run(
        self,
        mappings: Sequence[DirectoryMapping],
        static_tags: Mapping[str, str],
        dry_run: bool,
    ) -> CycleReport:
        captured_at = self.clock()
        self._logger.debug(
            "Starting scan cycle",
            extra={"directories": len(mappings), "captured_at": captured_at.isoformat()},
        )

        samples, skipped = await self._collect_samples(mappings, captured_at)

        batch: list[MetricPoint] = []
        for sample in samples:
            try:
                point = build_point(sample, static_tags, timestamp=captured_at)
            except PointError as exc:
                self._logger.error(
                    "Error creating point, skipping",
                    extra={"directory": sample.mapping.label, "error": str(exc)},
                )
                skipped += 1
                continue
            self._logger.debug(
                "Adding point",
                extra={"tags": dict(point.tags), "value": sample.bytes, "human_size": format_size(sample.bytes)},
            )
            batch.append(point)

        points = tuple(batch)

        if dry_run:
            self._logger.info(
                "Dry run: skipping reporting",
                extra={"points": len(points), "skipped": skipped},
            )
            return CycleReport(sent=0, skipped=skipped, points=points)

        if not points:
            self._logger.warning("No points produced this cycle, nothing to send", extra={"skipped": skipped})
            return CycleReport(sent=0, skipped=skipped, points=points)

        self._logger.info("Sending points to sink", extra={"points": len(points), "database": self.database})
        try:
            await self.sink.write_batch(self.database, points)
        except Exception as exc:
            self._logger.error(
                "Error writing points to sink",
                extra={"points": len(points), "error": str(exc)},
            )
            return CycleReport(sent=0, skipped=skipped, sink_error=exc, points=points)

        return CycleReport(sent=len(points), skipped=skipped, points=points)

    async def _collect_samples(
        self,
        mappings: Sequence[DirectoryMapping],
        captured_at: datetime,
    ) -> tuple[list[SizeSample], int]:
        samples: list[SizeSample] = []
        skipped = 0
        for mapping in mappings:
            try:
                size = await self.scanner(mapping.path)
            except ScanError as exc:
                self._logger.error(
                    "Error getting directory size, skipping",
                    extra={"directory": mapping.label, "path": mapping.path, "error": str(exc)},
                )
                skipped += 1
                continue

            self._logger.debug(
                "Found directory size",
                extra={"directory": mapping.label, "size": size},
            )
            samples.append(SizeSample(mapping=mapping, bytes=size, observed_at=captured_at))
        return samples, skipped
