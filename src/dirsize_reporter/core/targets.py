"""Startup assembly of the fixed list of mappings scanned every cycle.

Configured directory references are resolved to absolute paths and expanded
to their configured depth exactly once. The resulting tuple is read-only for
the rest of the process lifetime.
"""

import logging
from collections.abc import Sequence

from dirsize_reporter.core.config import DirectoryEntry, DirectoryReference, MainConfig
from dirsize_reporter.core.expansion import expand_directory_set, expand_mappings
from dirsize_reporter.core.paths import resolve_path
from dirsize_reporter.types.models import DirectoryMapping, DirectorySet

logger = logging.getLogger(__name__)


def mapping_from_reference(reference: DirectoryReference) -> DirectoryMapping:
    """Resolve one configured directory reference into a mapping.

    A plain string is both the scanned path and the reported label. An entry
    with an explicit label keeps that label (stripped) and resolves only the
    path.

    Raises:
        PathError: If the path cannot be resolved
    """
    if isinstance(reference, DirectoryEntry):
        path = resolve_path(reference.path)
        label = reference.label.strip() if reference.label and reference.label.strip() else path
        return DirectoryMapping(label=label, path=path)

    path = resolve_path(reference)
    return DirectoryMapping(label=path, path=path)


def directory_sets_from_config(config: MainConfig) -> list[DirectorySet]:
    """Build the directory sets named in the configuration."""
    default_depth = config.reporting.depth
    return [
        DirectorySet(
            name=set_config.name,
            mappings=tuple(mapping_from_reference(ref) for ref in set_config.directories),
            depth=set_config.depth if set_config.depth is not None else default_depth,
        )
        for set_config in config.sets
    ]


def build_mappings(
    config: MainConfig,
    *,
    log: logging.Logger | None = None,
) -> tuple[DirectoryMapping, ...]:
    """Resolve and expand every configured directory.

    Ungrouped ``directories`` come first (expanded to ``reporting.depth``),
    followed by each set in configuration order.

    Raises:
        PathError: If a directory reference cannot be resolved
        ExpansionError: If a directory cannot be listed during expansion
    """
    log = log or logger
    mappings: list[DirectoryMapping] = []

    base: Sequence[DirectoryReference] = config.directories or []
    if base:
        resolved = [mapping_from_reference(ref) for ref in base]
        log.info(
            "Expanding directories to desired depth",
            extra={"directories": len(resolved), "depth": config.reporting.depth},
        )
        mappings.extend(expand_mappings(resolved, config.reporting.depth, log=log))

    for directory_set in directory_sets_from_config(config):
        log.info(
            "Expanding directory set to desired depth",
            extra={"set": directory_set.name, "directories": len(directory_set.mappings), "depth": directory_set.depth},
        )
        mappings.extend(expand_directory_set(directory_set, log=log))

    log.info("Directory mappings ready", extra={"mappings": len(mappings)})
    return tuple(mappings)
