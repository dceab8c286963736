"""Application runner wiring configuration, scanning and reporting together."""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path

from dirsize_reporter.core.config import MainConfig, load_main_config
from dirsize_reporter.core.cycle import ScanCycle
from dirsize_reporter.core.scheduler import Scheduler, SchedulerState
from dirsize_reporter.core.targets import build_mappings
from dirsize_reporter.sink.influx import InfluxDBSink
from dirsize_reporter.types import CycleReport, DirectoryMapping, MetricSink
from dirsize_reporter.utils.logging import configure_logging
from dirsize_reporter.utils.sanitization import sanitize_mapping

__all__ = ["ApplicationRunner"]

_SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


class ApplicationRunner:
    """Main application runner that coordinates all components.

    Startup (configuration, logging, path resolution, depth expansion, sink
    client) either completes fully or raises; after that the runner either
    performs a single cycle or hands control to the scheduler until a
    shutdown signal arrives.
    """

    def __init__(
        self,
        config_path: Path,
        dry_run: bool = False,
        log_level: str | None = None,
        run_once: bool = False,
    ) -> None:
        """Initialize the application runner.

        Args:
            config_path: Path to the configuration file
            dry_run: Scan without writing to the sink (overrides config)
            log_level: Logging level (overrides config)
            run_once: Run a single cycle and exit instead of ticking forever
        """
        self.config_path: Path = config_path
        self.dry_run: bool = dry_run
        self.log_level: str | None = log_level
        self.run_once: bool = run_once
        self._logger: logging.Logger = logging.getLogger(__name__)
        self._scheduler: Scheduler | None = None

    def run(self) -> CycleReport | None:
        """Run the application until it finishes or is shut down."""
        return asyncio.run(self.run_async())

    async def run_async(self) -> CycleReport | None:
        """Async application lifecycle.

        Returns:
            The cycle report in run-once mode, otherwise None

        Raises:
            ConfigurationError: If configuration is invalid
            PathError: If a directory reference cannot be resolved
            ExpansionError: If a directory cannot be listed during expansion
            ValueError: If the sink address is unusable
        """
        config = load_main_config(self.config_path)
        dry_run = self.dry_run or config.is_dry

        configure_logging(
            log_level=self.log_level or config.logging.level,
            enable_syslog=config.logging.syslog,
        )
        self._logger.info("Starting dirsize-reporter", extra={"config_path": str(self.config_path)})
        self._log_settings(config)

        mappings = build_mappings(config)

        self._logger.info("Initializing sink client", extra={"address": config.influx.address})
        async with InfluxDBSink(
            config.influx.address,
            username=config.influx.username,
            password=config.influx.password,
            timeout_seconds=config.influx.timeout,
            precision=config.influx.precision,
        ) as sink:
            if dry_run:
                self._logger.info("Dry-run mode enabled: points will be computed but not sent")
            if self.run_once:
                return await self._run_single_cycle(sink, config, mappings, dry_run)
            await self._run_scheduler(sink, config, mappings, dry_run)
        return None

    def request_shutdown(self) -> None:
        """Ask the running scheduler to stop after its current cycle."""
        if self._scheduler is not None:
            self._scheduler.request_shutdown()

    def _log_settings(self, config: MainConfig) -> None:
        if not self._logger.isEnabledFor(logging.DEBUG):
            return
        self._logger.debug("Logging detected config below:")
        for key, value in sanitize_mapping(config.model_dump(mode="json")).items():
            self._logger.debug("%s = %s", key, value)

    async def _run_single_cycle(
        self,
        sink: MetricSink,
        config: MainConfig,
        mappings: tuple[DirectoryMapping, ...],
        dry_run: bool,
    ) -> CycleReport:
        cycle = ScanCycle(sink, config.influx.database)
        report = await cycle.run_once(mappings, config.reporting.tags, dry_run)
        self._logger.info(
            "Single cycle complete",
            extra={"sent": report.sent, "skipped": report.skipped, "sink_error": str(report.sink_error or "")},
        )
        return report

    async def _run_scheduler(
        self,
        sink: MetricSink,
        config: MainConfig,
        mappings: tuple[DirectoryMapping, ...],
        dry_run: bool,
    ) -> None:
        cycle = ScanCycle(sink, config.influx.database)
        tags = dict(config.reporting.tags)

        async def run_cycle() -> CycleReport:
            return await cycle.run_once(mappings, tags, dry_run)

        scheduler = Scheduler(run_cycle, config.reporting.interval)
        self._scheduler = scheduler
        scheduler_task = asyncio.create_task(scheduler.run(), name="scheduler")

        def handle_signal() -> None:
            if scheduler.state in (SchedulerState.SHUTTING_DOWN, SchedulerState.STOPPED):
                # Second signal: stop waiting for the in-flight cycle
                self._logger.warning("Second shutdown signal received, cancelling in-flight cycle")
                _ = scheduler_task.cancel()
                return
            self._logger.info("Shutdown signal received, shutting down...")
            scheduler.request_shutdown()

        loop = asyncio.get_running_loop()
        for sig in _SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, handle_signal)

        self._logger.info("Waiting for shutdown signal...")
        try:
            await scheduler_task
        except asyncio.CancelledError:
            if not scheduler_task.cancelled():
                raise
            self._logger.warning("Scheduler cancelled before its cycle finished")
        finally:
            for sig in _SHUTDOWN_SIGNALS:
                _ = loop.remove_signal_handler(sig)
            self._scheduler = None
            self._logger.info("dirsize-reporter shutdown complete")
