"""Application module for the directory size reporter."""

from __future__ import annotations

from dirsize_reporter.app.cli import cli
from dirsize_reporter.app.runner import ApplicationRunner

__all__ = [
    "cli",
    "ApplicationRunner",
]
