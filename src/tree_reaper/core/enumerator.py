"""Descendant discovery over the live POSIX process table.

Two facilities back the two sweep algorithms:

* :func:`list_children` asks ``pgrep -P`` for the *direct* children of one
  pid. The synchronous sweep calls it once per node.
* :func:`list_descendants` takes a single ``ps`` snapshot of the whole table
  and returns every transitive descendant of a root in depth-first pre-order,
  so each process appears before all of its own descendants.

Both raise on failure; the sweep decides what a failure means.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..utils.subprocess_utils import SubprocessError, run_command, run_command_async

logger = logging.getLogger(__name__)

# pgrep exits 1 when nothing matched
PGREP_NO_MATCH = 1


def parse_pid_lines(output: str) -> List[int]:
    """Parse whitespace-separated pids (pgrep prints one per line).

    Raises:
        ValueError: If a non-blank line is not an integer
    """
    return [int(token) for token in output.split()]


def list_children(
    pid: int,
    *,
    pgrep_executable: str = "pgrep",
    timeout: Optional[float] = None,
) -> List[int]:
    """Return the direct children of ``pid``.

    Raises:
        FileNotFoundError: If pgrep is not installed
        SubprocessError: If pgrep fails for a reason other than "no match"
        ValueError: If pgrep output is malformed
    """
    cmd = [pgrep_executable, "-P", str(pid)]
    result = run_command(cmd, check=False, timeout=timeout)

    if result.returncode == PGREP_NO_MATCH:
        return []
    if result.returncode != 0:
        raise SubprocessError(
            cmd=" ".join(cmd),
            returncode=result.returncode,
            stderr=result.stderr,
            stdout=result.stdout,
        )

    return parse_pid_lines(result.stdout)


@dataclass
class ProcessTable:
    """Snapshot of parent/child relationships at one instant."""
    pids: Set[int] = field(default_factory=set)
    children: Dict[int, List[int]] = field(default_factory=dict)
    parents: Dict[int, int] = field(default_factory=dict)

    def add(self, ppid: int, pid: int) -> None:
        self.pids.add(pid)
        self.parents[pid] = ppid
        self.children.setdefault(ppid, []).append(pid)

    def descendants(self, root: int) -> List[int]:
        """Transitive descendants of ``root`` in depth-first pre-order.

        Raises:
            ProcessLookupError: If root is not in the snapshot
        """
        if root not in self.pids:
            raise ProcessLookupError(f"No process with pid {root} in process table")

        ordered: List[int] = []
        seen = {root}
        stack = list(reversed(self.children.get(root, [])))
        while stack:
            pid = stack.pop()
            if pid in seen:
                continue
            seen.add(pid)
            ordered.append(pid)
            stack.extend(reversed(self.children.get(pid, [])))
        return ordered


def parse_process_table(output: str) -> ProcessTable:
    """Parse ``ps -o ppid=,pid=`` output (one ``PPID PID`` pair per line).

    Raises:
        ValueError: If a non-blank line is not two integers
    """
    table = ProcessTable()
    for line in output.splitlines():
        fields = line.split()
        if not fields:
            continue
        if len(fields) != 2:
            raise ValueError(f"Unexpected process table line: {line!r}")
        ppid, pid = int(fields[0]), int(fields[1])
        table.add(ppid, pid)
    return table


async def read_process_table(
    *,
    ps_executable: str = "ps",
    timeout: Optional[float] = None,
) -> ProcessTable:
    """Snapshot the process table with one asyncio ``ps`` call.

    Raises:
        FileNotFoundError: If ps is not installed
        SubprocessError: If ps fails or times out
        ValueError: If ps output is malformed
    """
    result = await run_command_async(
        [ps_executable, "-A", "-o", "ppid=,pid="],
        check=True,
        timeout=timeout,
    )
    return parse_process_table(result.stdout)


async def list_descendants(
    pid: int,
    *,
    ps_executable: str = "ps",
    timeout: Optional[float] = None,
) -> List[int]:
    """All transitive descendants of ``pid``, each listed before its own children.

    Raises:
        ProcessLookupError: If pid is not running
        plus everything :func:`read_process_table` raises
    """
    table = await read_process_table(ps_executable=ps_executable, timeout=timeout)
    descendants = table.descendants(pid)
    logger.debug(
        f"Found {len(descendants)} descendants in a {len(table.pids)}-process snapshot",
        extra={"pid": pid},
    )
    return descendants
