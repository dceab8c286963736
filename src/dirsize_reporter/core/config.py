"""Configuration system for dirsize-reporter.

This module implements the configuration schema using Pydantic for
validation, with support for environment variable resolution and fail-fast
validation with actionable error messages.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Final, Literal, Self

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from dirsize_reporter.sink.influx import DEFAULT_TIMEOUT_SECONDS, validate_address

# Matches ${VARIABLE_NAME} syntax where VARIABLE_NAME can contain letters, digits, and underscores
ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{([A-Za-z0-9_]+)\}")

DEFAULT_INTERVAL_SECONDS: Final[float] = 10.0

_DURATION_PART: Final[re.Pattern[str]] = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_DURATION_UNITS: Final[dict[str, float]] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str | int | float) -> float:
    """Parse an interval given as seconds or as a duration string.

    Duration strings use unit suffixes and may combine several parts.

    Args:
        value: Seconds as a number, or a string such as "10s" or "1m30s"

    Returns:
        Duration in seconds

    Raises:
        ValueError: If the value cannot be parsed

    Examples:
        >>> parse_duration("1m30s")
        90.0
        >>> parse_duration(15)
        15.0
        >>> parse_duration("250ms")
        0.25
    """
    if isinstance(value, bool):
        msg = f"Invalid duration: {value!r}"
        raise ValueError(msg)
    if isinstance(value, (int, float)):
        return float(value)

    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        msg = f"Invalid duration: {value!r} (expected seconds or a value like '10s', '1m30s')"
        raise ValueError(msg)
    return total


class InfluxConfig(BaseModel):
    """Connection settings for the InfluxDB sink."""

    address: Annotated[str, Field(description="Base URL of the InfluxDB HTTP API")]
    database: Annotated[str, Field(min_length=1, description="Database receiving the points")]
    username: Annotated[str | None, Field(description="Optional InfluxDB user")] = None
    password: Annotated[str | None, Field(description="Optional InfluxDB password")] = None
    timeout: Annotated[
        float,
        Field(gt=0, description="Write request timeout in seconds"),
    ] = DEFAULT_TIMEOUT_SECONDS
    precision: Annotated[
        Literal["ns", "u", "ms", "s"],
        Field(description="Timestamp precision used on the wire"),
    ] = "ns"

    @field_validator("address", mode="after")
    @classmethod
    def validate_http_address(cls, v: str) -> str:
        """Validate the sink address is an http(s) URL."""
        return validate_address(v)


class DirectoryEntry(BaseModel):
    """A directory whose reported label differs from the scanned path."""

    path: Annotated[str, Field(min_length=1, description="Filesystem location to scan")]
    label: Annotated[
        str | None,
        Field(description="Reported path (defaults to the resolved path)"),
    ] = None


type DirectoryReference = str | DirectoryEntry


class DirectorySetConfig(BaseModel):
    """Independently tagged group of directories."""

    name: Annotated[str, Field(min_length=1, description="Value of the set tag")]
    directories: Annotated[
        list[DirectoryReference],
        Field(min_length=1, description="Directories belonging to the set"),
    ]
    depth: Annotated[
        int | None,
        Field(ge=0, description="Expansion depth (defaults to reporting.depth)"),
    ] = None


class ReportingConfig(BaseModel):
    """Reporting cadence, expansion depth and static tags."""

    interval: Annotated[
        float,
        Field(gt=0, description="Seconds between scan cycles"),
    ] = DEFAULT_INTERVAL_SECONDS
    depth: Annotated[
        int,
        Field(ge=0, description="Directory expansion depth"),
    ] = 0
    tags: Annotated[
        dict[str, str],
        Field(description="Tags added to every point"),
    ] = {}

    @field_validator("interval", mode="before")
    @classmethod
    def parse_interval(cls, v: object) -> object:
        """Accept duration strings such as '10s' or '1m30s'."""
        if isinstance(v, (str, int, float)):
            return parse_duration(v)
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def stringify_tag_values(cls, v: object) -> object:
        """Render scalar tag values (numbers, booleans) as strings."""
        if isinstance(v, Mapping):
            return {
                str(key): str(value).lower() if isinstance(value, bool) else str(value)
                for key, value in v.items()  # pyright: ignore[reportUnknownVariableType]  # YAML boundary
                if value is not None
            }
        return v


class LoggingConfig(BaseModel):
    """Logging behaviour."""

    level: Annotated[str, Field(description="Logging level name")] = "info"
    syslog: Annotated[bool, Field(description="Also log to the local syslog socket")] = False


class MainConfig(BaseModel):
    """Main application configuration schema.

    Top-level configuration container aggregating all configuration sections:
    - influx: Sink connection settings
    - directories / sets: What to scan
    - reporting: Interval, depth and static tags
    - logging: Log level and syslog integration
    - is_dry: Dry-run switch
    """

    influx: Annotated[InfluxConfig, Field(description="InfluxDB sink configuration")]
    directories: Annotated[
        list[DirectoryReference] | None,
        Field(description="Directories reported without a set tag"),
    ] = None
    sets: Annotated[
        list[DirectorySetConfig],
        Field(description="Directory sets reported with a set tag"),
    ] = []
    reporting: Annotated[ReportingConfig, Field(description="Reporting configuration")] = ReportingConfig()
    logging: Annotated[LoggingConfig, Field(description="Logging configuration")] = LoggingConfig()
    is_dry: Annotated[bool, Field(description="Dry-run mode: scan but never write to the sink")] = False

    @model_validator(mode="after")
    def require_directories(self) -> Self:
        """Require at least one directory source."""
        if not self.directories and not self.sets:
            msg = "At least one of 'directories' or 'sets' must be configured"
            raise ValueError(msg)
        return self


class EnvironmentVariableError(Exception):
    """Exception raised when environment variable resolution fails."""


def resolve_env_var(value: str) -> str:
    """Resolve ${VARIABLE_NAME} references in a string value.

    Raises:
        EnvironmentVariableError: If a referenced variable is not set

    Examples:
        >>> os.environ["INFLUX_DB"] = "metrics"
        >>> resolve_env_var("${INFLUX_DB}")
        'metrics'
        >>> resolve_env_var("no variables here")
        'no variables here'
    """

    def replace_match(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            msg = (
                f"Required environment variable '{var_name}' is not set. "
                f"Please set this variable before starting the application."
            )
            raise EnvironmentVariableError(msg)
        return env_value

    return ENV_VAR_PATTERN.sub(replace_match, value)


def _resolve_env_vars_in_value(value: object) -> object:
    if isinstance(value, str):
        return resolve_env_var(value)
    if isinstance(value, dict):
        return resolve_env_vars_in_dict(value)  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
    if isinstance(value, list):
        return [_resolve_env_vars_in_value(item) for item in value]  # pyright: ignore[reportUnknownVariableType]  # YAML boundary
    return value


def resolve_env_vars_in_dict(data: Mapping[str, object]) -> dict[str, object]:
    """Recursively resolve environment variables in a dictionary.

    Traverses nested dictionaries and lists, resolving environment variable
    references in string values. Non-string values are preserved as-is.

    Examples:
        >>> os.environ["SECRET"] = "my_secret"
        >>> resolve_env_vars_in_dict({"nested": {"key": "${SECRET}"}, "n": 1})
        {'nested': {'key': 'my_secret'}, 'n': 1}
    """
    return {key: _resolve_env_vars_in_value(value) for key, value in data.items()}


class ConfigurationError(Exception):
    """Exception raised when configuration loading or validation fails."""


def format_validation_error(error: ValidationError, config_path: Path) -> str:
    """Format pydantic validation errors with field-level diagnostics."""
    error_lines = ["Configuration validation failed:", ""]
    for detail in error.errors():
        field_path = " → ".join(str(loc) for loc in detail["loc"]) or "(root)"
        error_lines.append(f"  Field: {field_path}")
        error_lines.append(f"  Error: {detail['msg']}")
        error_lines.append(f"  Type: {detail['type']}")
        error_lines.append("")

    error_lines.append(f"Configuration file: {config_path}")
    error_lines.append("Please fix the above errors and try again.")
    return "\n".join(error_lines)


def load_main_config(config_path: Path) -> MainConfig:
    """Load and validate the application configuration from a YAML file.

    Args:
        config_path: Path to the configuration YAML file

    Returns:
        Validated MainConfig instance

    Raises:
        ConfigurationError: If the file cannot be loaded, references an unset
            environment variable, or fails validation
    """
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}\nPlease create a configuration file at this location."
        raise ConfigurationError(msg)

    try:
        with config_path.open("r") as f:
            raw_data: object = yaml.safe_load(f)  # pyright: ignore[reportAny]  # YAML boundary
    except yaml.YAMLError as e:
        msg = (
            f"Failed to parse YAML configuration file: {config_path}\n"
            f"YAML parsing error: {e}\n"
            f"Please check the file for syntax errors."
        )
        raise ConfigurationError(msg) from e
    except OSError as e:
        msg = f"Failed to read configuration file: {config_path}\nError: {e}\nPlease check file permissions."
        raise ConfigurationError(msg) from e

    if not isinstance(raw_data, dict):
        msg = (
            f"Invalid configuration file format: {config_path}\n"
            f"Expected YAML dictionary at root level, got: {type(raw_data).__name__}\n"
            f"Configuration file must contain key-value pairs."
        )
        raise ConfigurationError(msg)

    try:
        resolved_data = resolve_env_vars_in_dict(raw_data)  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
    except EnvironmentVariableError as e:
        msg = (
            f"Environment variable resolution failed in: {config_path}\n"
            f"{e}\n"
            f"Set the required environment variable before starting the application."
        )
        raise ConfigurationError(msg) from e

    try:
        return MainConfig.model_validate(resolved_data)
    except ValidationError as e:
        raise ConfigurationError(format_validation_error(e, config_path)) from e
