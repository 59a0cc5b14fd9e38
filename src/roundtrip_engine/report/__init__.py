"""Run reporting (console output)."""

from .console import ConsoleReporter, describe_range, format_progress

__all__ = ["ConsoleReporter", "describe_range", "format_progress"]
