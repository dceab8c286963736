"""dirsize-reporter - Periodically report directory sizes to InfluxDB.

This package resolves a configured set of directories, expands them to a
configured depth, measures the total size of each tree on a fixed interval
and writes one point per directory to an InfluxDB database.
"""

from dirsize_reporter.__main__ import main

__all__ = ["main"]
