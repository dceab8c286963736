"""Entry point for ``python -m dirsize_reporter``."""

from __future__ import annotations

from dirsize_reporter.app.cli import cli

__all__ = ["main"]


def main() -> None:
    """Run the command-line interface."""
    cli()


if __name__ == "__main__":
    main()
