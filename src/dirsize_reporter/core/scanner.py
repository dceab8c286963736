"""Recursive size scanning of a single directory subtree.

A scan either walks the whole tree or fails: traversal errors (permission
denied, entries vanishing mid-walk) abort the scan with ``ScanError`` and the
partial total is thrown away, so every reported size is internally
consistent.

The synchronous walk is offloaded with ``asyncio.to_thread`` by
``scan_size_async`` so the event loop stays responsive to shutdown signals.
"""

import asyncio
import logging
import os
import stat

from dirsize_reporter.core.errors import ScanError

logger = logging.getLogger(__name__)


def _entry_size(entry: os.DirEntry[str]) -> tuple[int, bool]:
    """Return ``(size, is_directory)`` for an entry without following symlinks."""
    st = entry.stat(follow_symlinks=False)
    if stat.S_ISDIR(st.st_mode):
        return 0, True
    return st.st_size, False


def _walk_size(root: str) -> int:
    root_stat = os.lstat(root)
    if not stat.S_ISDIR(root_stat.st_mode):
        return root_stat.st_size

    total_bytes = 0
    pending: list[str] = [root]
    while pending:
        directory = pending.pop()
        with os.scandir(directory) as entries:
            for entry in entries:
                size, is_directory = _entry_size(entry)
                if is_directory:
                    pending.append(entry.path)
                else:
                    total_bytes += size
    return total_bytes


def scan_size(path: str) -> int:
    """Compute the logical byte size of the subtree rooted at ``path``.

    Every non-directory entry (regular files, symlinks, sockets, ...) counts
    with its own ``st_size``; symlinks are never followed and directories
    contribute nothing themselves.

    Args:
        path: Absolute path of the subtree root

    Returns:
        Total size in bytes

    Raises:
        ScanError: If any part of the traversal fails, or the path itself is
            unusable (for example an embedded NUL character)

    Examples:
        >>> scan_size("/srv/empty")  # doctest: +SKIP
        0
    """
    logger.debug("Starting directory scan", extra={"directory": path})
    try:
        total_bytes = _walk_size(path)
    except (OSError, ValueError) as exc:
        raise ScanError(path, exc) from exc
    logger.debug(
        "Finished directory scan",
        extra={"directory": path, "bytes": total_bytes},
    )
    return total_bytes


async def scan_size_async(path: str) -> int:
    """Async wrapper for ``scan_size`` using ``asyncio.to_thread``.

    Context variables (such as the cycle correlation id) are copied into the
    worker thread.
    """
    return await asyncio.to_thread(scan_size, path)
