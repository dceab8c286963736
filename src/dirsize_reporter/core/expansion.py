"""Depth expansion of directory mappings into the leaf mappings that get scanned.

Expansion happens exactly once at startup. Each round replaces every mapping
with its immediate child directories, so only the deepest generation survives.
A directory that cannot be listed is a startup failure: it points at a
misconfigured source tree and there is no reporting state to protect yet.
"""

import logging
import os
import posixpath
from collections.abc import Sequence

from dirsize_reporter.core.errors import ExpansionError
from dirsize_reporter.types.models import DirectoryMapping, DirectorySet

logger = logging.getLogger(__name__)


def list_child_directories(path: str) -> list[str]:
    """List names of the immediate subdirectories of ``path``.

    Symlinks are not followed and non-directory entries are ignored. Names are
    returned sorted so that expansion is deterministic.

    Raises:
        ExpansionError: If the directory cannot be listed
    """
    try:
        with os.scandir(path) as entries:
            return sorted(entry.name for entry in entries if entry.is_dir(follow_symlinks=False))
    except OSError as exc:
        raise ExpansionError(path, exc) from exc


def _child_mapping(parent: DirectoryMapping, name: str) -> DirectoryMapping:
    return DirectoryMapping(
        label=posixpath.join(parent.label, name),
        path=os.path.join(parent.path, name),
        set_name=parent.set_name,
    )


def expand_mappings(
    mappings: Sequence[DirectoryMapping],
    depth: int,
    *,
    log: logging.Logger | None = None,
) -> tuple[DirectoryMapping, ...]:
    """Expand mappings into their descendants ``depth`` levels down.

    Args:
        mappings: Base mappings, already resolved to absolute paths
        depth: Number of "list immediate children" rounds (0 is identity)
        log: Logger to report progress to (defaults to the module logger)

    Returns:
        The mappings of the deepest generation, in a deterministic order

    Raises:
        ValueError: If depth is negative
        ExpansionError: If any directory in the working set cannot be listed

    Examples:
        >>> expand_mappings([DirectoryMapping(label="/a", path="/a")], 0)
        (DirectoryMapping(label='/a', path='/a', set_name=None),)
    """
    if depth < 0:
        msg = f"Expansion depth must be non-negative, got: {depth}"
        raise ValueError(msg)

    log = log or logger
    working: list[DirectoryMapping] = list(mappings)

    for level in range(1, depth + 1):
        next_generation: list[DirectoryMapping] = []
        for mapping in working:
            for name in list_child_directories(mapping.path):
                next_generation.append(_child_mapping(mapping, name))
        working = next_generation
        log.debug(
            "Expanded directories one level",
            extra={"level": level, "directories": len(working)},
        )

    return tuple(working)


def expand_directory_set(
    directory_set: DirectorySet,
    *,
    log: logging.Logger | None = None,
) -> tuple[DirectoryMapping, ...]:
    """Expand a directory set to its configured depth, tagging mappings with the set name."""
    tagged = [
        DirectoryMapping(label=mapping.label, path=mapping.path, set_name=directory_set.name)
        for mapping in directory_set.mappings
    ]
    return expand_mappings(tagged, directory_set.depth, log=log)
