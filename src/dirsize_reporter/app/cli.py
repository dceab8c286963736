"""Command-line interface for dirsize-reporter."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import click

from dirsize_reporter.core.config import ConfigurationError
from dirsize_reporter.core.errors import ExpansionError, PathError
from dirsize_reporter.utils.logging import LEVEL_ALIASES, VALID_LOG_LEVELS

EXIT_SUCCESS = 0
EXIT_STARTUP_ERROR = 1

# Configuration file discovery paths in order of precedence
CURRENT_DIR_CONFIG_FILES = [
    "config.yaml",
    "config.yml",
]

HOME_CONFIG_FILES = [
    ".dirsize-reporter.yaml",
    ".dirsize-reporter.yml",
]

SYSTEM_CONFIG_PATHS = [
    Path("/etc/dirsize-reporter/config.yaml"),
    Path("/etc/dirsize-reporter.yaml"),
]


def discover_config_file() -> Path | None:
    """Discover a configuration file in standard locations.

    Searches the current directory, then the user's home directory, then the
    system configuration directories.

    Returns:
        The first configuration file found, or None
    """
    for config_file in CURRENT_DIR_CONFIG_FILES:
        config_path = Path(config_file)
        if config_path.is_file():
            return config_path

    try:
        home_dir = Path.home()
    except (OSError, RuntimeError):
        home_dir = None
    if home_dir is not None:
        for config_file in HOME_CONFIG_FILES:
            config_path = home_dir / config_file
            if config_path.is_file():
                return config_path

    for config_path in SYSTEM_CONFIG_PATHS:
        if config_path.is_file():
            return config_path

    return None


def validate_config_path(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    value: Path | None,
) -> Path | None:
    """Validate a configuration file path.

    Raises:
        click.BadParameter: If the path is a directory or not a YAML file
    """
    if value is None:
        return value

    if value.is_dir():
        raise click.BadParameter("Configuration path must be a file, not a directory")

    if value.suffix.lower() not in {".yaml", ".yml"}:
        raise click.BadParameter("Invalid configuration file extension. Supported extensions: .yaml, .yml")

    return value


def validate_log_level(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    value: str | None,
) -> str | None:
    """Validate and normalize a log level to a standard level name.

    Accepts the standard names case-insensitively plus the aliases TRACE,
    WARN, FATAL and PANIC.
    """
    if value is None:
        return value

    normalized_value = value.upper().strip()
    normalized_value = LEVEL_ALIASES.get(normalized_value, normalized_value)
    if normalized_value not in VALID_LOG_LEVELS:
        raise click.BadParameter(f'Invalid log level "{value}". Valid options: {", ".join(sorted(VALID_LOG_LEVELS))}')
    return normalized_value


try:
    __version__ = version("dirsize-reporter")
except PackageNotFoundError:
    __version__ = "unknown"


@click.command()
@click.argument(
    "config_file",
    required=False,
    type=click.Path(path_type=Path),
    callback=validate_config_path,
)
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    default=None,
    callback=validate_config_path,
    help="Configuration file path (.yaml/.yml). If not specified, searches standard locations.",
)
@click.option("--dry-run", "-d", is_flag=True, help="Scan directories without writing to the sink")
@click.option(
    "--log-level",
    "-l",
    type=str,
    default=None,
    callback=validate_log_level,
    help="Override the configured log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
)
@click.option("--once", "-o", is_flag=True, help="Run a single scan cycle and exit")
@click.version_option(version=__version__, prog_name="dirsize-reporter")
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    config: Path | None,
    dry_run: bool,
    log_level: str | None,
    once: bool,
) -> None:
    """dirsize-reporter - Report directory sizes to InfluxDB.

    Periodically measures the size of the configured directory trees and
    writes one point per directory to the configured database.

    Examples:

        # Use a config file
        dirsize-reporter /etc/dirsize-reporter.yaml

        # Scan once without writing anything
        dirsize-reporter -c config.yaml --dry-run --once

        # Enable debug logging
        dirsize-reporter --log-level DEBUG
    """
    from dirsize_reporter.app.runner import ApplicationRunner

    config_path = config or config_file or discover_config_file()
    if config_path is None:
        click.echo("Error: no configuration file given and none found in standard locations", err=True)
        ctx.exit(EXIT_STARTUP_ERROR)

    runner = ApplicationRunner(
        config_path=config_path,
        dry_run=dry_run,
        log_level=log_level,
        run_once=once,
    )

    try:
        runner.run()
    except ConfigurationError as exc:
        click.echo(f"Configuration error:\n{exc}", err=True)
        ctx.exit(EXIT_STARTUP_ERROR)
    except (PathError, ExpansionError) as exc:
        click.echo(f"Directory error: {exc}", err=True)
        ctx.exit(EXIT_STARTUP_ERROR)
    except ValueError as exc:
        click.echo(f"Startup error: {exc}", err=True)
        ctx.exit(EXIT_STARTUP_ERROR)
    except KeyboardInterrupt:
        click.echo("\nShutting down gracefully...")

    ctx.exit(EXIT_SUCCESS)
