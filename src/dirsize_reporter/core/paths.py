"""Normalization of configured directory references into concrete paths."""

import logging
import os
from pathlib import Path
from typing import Final

from dirsize_reporter.core.errors import PathError

logger = logging.getLogger(__name__)

HOME_MARKER: Final[str] = "~"


def current_home_directory() -> str:
    """Return the home directory of the user running the process.

    Raises:
        PathError: If the home directory cannot be determined
    """
    try:
        return str(Path.home())
    except (RuntimeError, KeyError, OSError) as exc:
        msg = f"Cannot determine the current user's home directory: {exc}"
        raise PathError(msg) from exc


def resolve_path(raw: str) -> str:
    """Turn a configured directory reference into an absolute path.

    Every home marker in the string is substituted with the current user's
    home directory (anywhere in the string, not just as a prefix), then the
    result is made absolute. Symlinks are left untouched.

    Args:
        raw: Directory reference as written in the configuration

    Returns:
        Absolute, normalized path

    Raises:
        PathError: If the reference is empty, contains a NUL character or the
            home directory is unknown

    Examples:
        >>> resolve_path("/srv/data/../media")
        '/srv/media'
    """
    candidate = raw.strip()
    if not candidate:
        msg = f"Directory reference is empty: {raw!r}"
        raise PathError(msg)

    if "\x00" in candidate:
        msg = f"Directory reference contains a NUL character: {raw!r}"
        raise PathError(msg)

    if HOME_MARKER in candidate:
        home = current_home_directory()
        candidate = candidate.replace(HOME_MARKER, home)

    try:
        resolved = os.path.abspath(candidate)
    except (OSError, ValueError) as exc:
        msg = f"Cannot make path absolute: {candidate}: {exc}"
        raise PathError(msg) from exc

    if resolved != raw:
        logger.debug("Resolved directory reference", extra={"raw": raw, "resolved": resolved})
    return resolved
