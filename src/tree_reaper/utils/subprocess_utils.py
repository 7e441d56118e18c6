"""Standardized subprocess utilities for the external process-table tools."""

import asyncio
import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class SubprocessError(Exception):
    """Exception raised when a subprocess command fails or times out."""

    def __init__(
        self,
        cmd: str,
        returncode: Optional[int],
        stderr: str,
        stdout: str = "",
        cwd: Optional[Path] = None,
        timed_out: bool = False,
    ):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        self.cwd = cwd
        self.timed_out = timed_out

        if timed_out:
            message = f"Command timed out: {cmd}"
        else:
            message = f"Command failed with exit code {returncode}: {cmd}"
        if cwd is not None:
            message += f" (cwd: {cwd})"
        if stderr:
            message += f"\nstderr: {stderr}"
        super().__init__(message)


def _cmd_str(cmd: Sequence[str]) -> str:
    return " ".join(str(part) for part in cmd)


def _as_text(output) -> str:
    # TimeoutExpired carries bytes even when text=True was requested
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode(errors="replace")
    return output


def run_command(
    cmd: List[str],
    *,
    cwd: Optional[Path] = None,
    check: bool = True,
    timeout: Optional[float] = None,
    env: Optional[dict] = None,
) -> subprocess.CompletedProcess:
    """
    Run a command and capture its text output.

    Args:
        cmd: Command and arguments
        cwd: Working directory
        check: Raise SubprocessError on non-zero exit
        timeout: Timeout in seconds (None waits indefinitely)
        env: Environment variables

    Returns:
        CompletedProcess with stdout, stderr, returncode

    Raises:
        SubprocessError: If check=True and command fails, or on timeout
        FileNotFoundError: If the executable does not exist
    """
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            check=False,  # We handle check ourselves for better error messages
        )
    except subprocess.TimeoutExpired as e:
        logger.debug(f"Command timed out after {timeout}s: {_cmd_str(cmd)}")
        raise SubprocessError(
            cmd=_cmd_str(cmd),
            returncode=None,
            stderr=_as_text(e.stderr),
            stdout=_as_text(e.stdout),
            cwd=cwd,
            timed_out=True,
        ) from e

    if check and result.returncode != 0:
        raise SubprocessError(
            cmd=_cmd_str(cmd),
            returncode=result.returncode,
            stderr=result.stderr,
            stdout=result.stdout,
            cwd=cwd,
        )

    return result


async def run_command_async(
    cmd: List[str],
    *,
    cwd: Optional[Path] = None,
    check: bool = True,
    timeout: Optional[float] = None,
    env: Optional[dict] = None,
) -> subprocess.CompletedProcess:
    """
    Async version of run_command backed by an asyncio subprocess.

    The event loop keeps running other tasks while the command executes.
    On timeout the child is killed and reaped before SubprocessError is raised.
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
        env=env,
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        logger.debug(f"Command timed out after {timeout}s: {_cmd_str(cmd)}")
        raise SubprocessError(
            cmd=_cmd_str(cmd),
            returncode=None,
            stderr="",
            cwd=cwd,
            timed_out=True,
        )

    result = subprocess.CompletedProcess(
        args=list(cmd),
        returncode=process.returncode,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )

    if check and result.returncode != 0:
        raise SubprocessError(
            cmd=_cmd_str(cmd),
            returncode=result.returncode,
            stderr=result.stderr,
            stdout=result.stdout,
            cwd=cwd,
        )

    return result


def check_command_exists(command: str) -> bool:
    """
    Check if a command exists in PATH.

    Args:
        command: Command name to check

    Returns:
        True if command exists, False otherwise
    """
    return shutil.which(command) is not None
