"""Shared utilities: logging setup, secret sanitization and formatting."""
