"""Shared utility functions for tree-reaper."""

from .error_handling import attempt, attempt_async
from .rich_logging import ReaperLogFormatter, setup_rich_logging
from .subprocess_utils import (
    SubprocessError,
    run_command,
    run_command_async,
    check_command_exists,
)

__all__ = [
    # Error handling
    "attempt",
    "attempt_async",
    # Logging
    "ReaperLogFormatter",
    "setup_rich_logging",
    # Subprocess utilities
    "SubprocessError",
    "run_command",
    "run_command_async",
    "check_command_exists",
]
