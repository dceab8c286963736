"""Unit tests for directory reference resolution."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from dirsize_reporter.core.errors import PathError
from dirsize_reporter.core.paths import current_home_directory, resolve_path


@pytest.fixture
def fake_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point the current user's home directory at a temporary path."""
    home = tmp_path / "home" / "alice"
    monkeypatch.setenv("HOME", str(home))
    return home


class TestResolvePath:
    """Test resolve_path behaviour."""

    def test_absolute_path_unchanged(self) -> None:
        """Test absolute paths are returned as-is."""
        assert resolve_path("/srv/data") == "/srv/data"

    def test_home_prefix_expanded(self, fake_home: Path) -> None:
        """Test a leading home marker is substituted."""
        assert resolve_path("~/data") == f"{fake_home}/data"

    def test_every_home_marker_substituted(self, fake_home: Path) -> None:
        """Test markers anywhere in the string are substituted."""
        assert resolve_path("/mnt/~/x") == os.path.abspath(f"/mnt/{fake_home}/x")

    def test_relative_path_made_absolute(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Test relative references are resolved against the working directory."""
        monkeypatch.chdir(tmp_path)
        assert resolve_path("data") == str(tmp_path / "data")

    def test_path_normalized(self) -> None:
        """Test dot segments and duplicate separators are collapsed."""
        assert resolve_path("/srv//data/./a/..") == "/srv/data"

    def test_surrounding_whitespace_stripped(self) -> None:
        """Test whitespace around the reference is ignored."""
        assert resolve_path("  /srv/data  ") == "/srv/data"

    @pytest.mark.parametrize("raw", ["", "   "])
    def test_empty_reference_rejected(self, raw: str) -> None:
        """Test empty references raise PathError."""
        with pytest.raises(PathError, match="empty"):
            _ = resolve_path(raw)

    def test_symlink_not_resolved(self, tmp_path: Path) -> None:
        """Test symlinks are kept as written."""
        target = tmp_path / "target"
        target.mkdir()
        link = tmp_path / "link"
        link.symlink_to(target)
        assert resolve_path(str(link)) == str(link)

    def test_unknown_home_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a missing home directory surfaces as PathError."""

        def no_home() -> Path:
            raise RuntimeError("Could not determine home directory.")

        monkeypatch.setattr(Path, "home", staticmethod(no_home))
        with pytest.raises(PathError, match="home directory"):
            _ = resolve_path("~/data")

    def test_home_not_needed_without_marker(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test references without a marker never look up the home directory."""

        def no_home() -> Path:
            raise RuntimeError("Could not determine home directory.")

        monkeypatch.setattr(Path, "home", staticmethod(no_home))
        assert resolve_path("/srv/data") == "/srv/data"


def test_current_home_directory(fake_home: Path) -> None:
    """Test the home directory comes from the environment."""
    assert current_home_directory() == str(fake_home)


@pytest.mark.parametrize("raw", ["/data/a\x00b", "\x00"])
def test_nul_character_rejected(raw: str) -> None:
    """Test references with an embedded NUL fail resolution instead of reaching the scanner."""
    with pytest.raises(PathError, match="NUL character"):
        _ = resolve_path(raw)
