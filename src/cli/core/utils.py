"""Shared helpers for CLI commands."""

EXIT_SUCCESS = 0
EXIT_ERROR = 2
