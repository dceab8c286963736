"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path

import pytest

type TreeSpec = Mapping[str, "int | TreeSpec"]
type TreeFactory = Callable[[TreeSpec], Path]


def _build_tree(root: Path, spec: TreeSpec) -> None:
    for name, content in spec.items():
        target = root / name
        if isinstance(content, int):
            target.parent.mkdir(parents=True, exist_ok=True)
            _ = target.write_bytes(b"x" * content)
        else:
            target.mkdir(parents=True, exist_ok=True)
            _build_tree(target, content)


@pytest.fixture
def make_tree(tmp_path: Path) -> TreeFactory:
    """Create a directory tree under tmp_path from a nested mapping.

    Integer values become files of that many bytes, mappings become
    directories. Returns the root of the created tree.

    Example:
        make_tree({"a": {"f1": 100, "sub": {"f2": 250}}, "empty": {}})
    """

    def factory(spec: TreeSpec) -> Path:
        root = tmp_path / "tree"
        root.mkdir(exist_ok=True)
        _build_tree(root, spec)
        return root

    return factory


@pytest.fixture
def config_file(tmp_path: Path) -> Callable[[str], Path]:
    """Write YAML text to a config file and return its path."""

    def factory(content: str) -> Path:
        path = tmp_path / "config.yaml"
        _ = path.write_text(content)
        return path

    return factory


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[logging.Logger]:
    """Restore root logger handlers and level after code under test reconfigures them."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
