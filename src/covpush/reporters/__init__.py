"""Output reporters."""

from covpush.reporters.terminal import CLIReporter, reporter

__all__ = ["CLIReporter", "reporter"]
