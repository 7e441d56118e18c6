"""Polling helpers for callers that need to confirm a process is gone."""

import asyncio
import logging
import os
import platform
import time

from ..utils.subprocess_utils import run_command

logger = logging.getLogger(__name__)


def _is_running_windows(pid: int) -> bool:
    # os.kill on Windows terminates the process for any signal other than
    # CTRL_C_EVENT/CTRL_BREAK_EVENT, so existence is read from tasklist
    result = run_command(
        ["tasklist", "/FI", f"PID eq {pid}", "/NH", "/FO", "CSV"],
        check=False,
    )
    return f'"{pid}"' in result.stdout


def is_process_running(pid: int) -> bool:
    """Check if a process exists without disturbing it.

    A pid we are not allowed to signal still exists, so PermissionError
    counts as running.

    Raises:
        FileNotFoundError: On Windows, if tasklist is not available
    """
    if pid <= 0:
        return False
    if platform.system() == "Windows":
        return _is_running_windows(pid)
    try:
        os.kill(pid, 0)  # Signal 0 = check existence
        return True
    except ProcessLookupError:
        return False
    except PermissionError:
        return True


def wait_for_exit(pid: int, timeout: float, interval: float = 0.1) -> bool:
    """Poll until ``pid`` is gone or ``timeout`` seconds pass.

    Returns:
        True if the process is gone
    """
    deadline = time.monotonic() + timeout
    while is_process_running(pid):
        if time.monotonic() >= deadline:
            logger.debug(f"Still running after {timeout}s", extra={"pid": pid})
            return False
        time.sleep(interval)
    return True


async def wait_for_exit_async(pid: int, timeout: float, interval: float = 0.1) -> bool:
    """Async version of wait_for_exit; sleeps with ``asyncio.sleep``."""
    deadline = time.monotonic() + timeout
    while is_process_running(pid):
        if time.monotonic() >= deadline:
            logger.debug(f"Still running after {timeout}s", extra={"pid": pid})
            return False
        await asyncio.sleep(interval)
    return True
