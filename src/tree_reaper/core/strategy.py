"""Platform dispatch: how a resolved pid and its subtree get terminated.

The host decides the strategy once. Windows offers a native one-shot subtree
kill (``taskkill /t``); POSIX hosts have no such primitive, so descendants are
enumerated and signalled explicitly.
"""

import functools
import logging
import platform
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional

from ..utils.error_handling import attempt, attempt_async
from ..utils.subprocess_utils import run_command, run_command_async
from .config import ReaperConfig
from .enumerator import list_children, list_descendants
from .signals import send_signal, signal_name

logger = logging.getLogger(__name__)

ChildLister = Callable[[int], List[int]]
DescendantLister = Callable[[int], Awaitable[List[int]]]
SignalSender = Callable[[int, int], None]


class TerminationStrategy(ABC):
    """Terminates a pid together with its whole descendant subtree."""

    name: str = "abstract"

    @abstractmethod
    def kill_tree(self, pid: int, sig: int) -> None:
        """Blocking best-effort tree termination. Must not raise."""

    @abstractmethod
    async def kill_tree_async(self, pid: int, sig: int) -> None:
        """Suspending best-effort tree termination. Must not raise."""


class NativeTreeKillStrategy(TerminationStrategy):
    """Windows: ``taskkill /pid N /t /f`` kills the process and its tree.

    ``/f`` is unconditional, so the requested signal is not used.
    """

    name = "native"

    def __init__(
        self,
        taskkill_executable: str = "taskkill",
        timeout: Optional[float] = None,
    ):
        self.taskkill_executable = taskkill_executable
        self.timeout = timeout

    def _command(self, pid: int) -> List[str]:
        return [self.taskkill_executable, "/pid", str(pid), "/t", "/f"]

    def kill_tree(self, pid: int, sig: int) -> None:
        result = attempt(
            run_command,
            self._command(pid),
            check=False,
            timeout=self.timeout,
            operation=f"taskkill of pid {pid}",
        )
        if result is not None and result.returncode != 0:
            logger.debug(
                f"taskkill exited {result.returncode}: {result.stderr.strip()}",
                extra={"pid": pid},
            )

    async def kill_tree_async(self, pid: int, sig: int) -> None:
        result = await attempt_async(
            run_command_async,
            self._command(pid),
            check=False,
            timeout=self.timeout,
            operation=f"taskkill of pid {pid}",
        )
        if result is not None and result.returncode != 0:
            logger.debug(
                f"taskkill exited {result.returncode}: {result.stderr.strip()}",
                extra={"pid": pid},
            )


class EnumeratingStrategy(TerminationStrategy):
    """POSIX: discover descendants, signal them before their ancestors.

    The blocking and the suspending sweeps are different algorithms:

    * ``kill_tree`` sweeps each direct child's subtree before signalling the
      node itself (true post-order, one ``pgrep`` per node). It walks an
      explicit stack, so tree depth is not bounded by the recursion limit,
      and lists each pid at most once, so a cyclic table still terminates.
    * ``kill_tree_async`` takes one flat snapshot of all descendants and
      signals it in reverse. The snapshot lists every process before its own
      descendants, so the reversed order still reaches leaves first.
    """

    name = "enumerating"

    def __init__(
        self,
        child_lister: Optional[ChildLister] = None,
        descendant_lister: Optional[DescendantLister] = None,
        signal_sender: SignalSender = send_signal,
        *,
        pgrep_executable: str = "pgrep",
        ps_executable: str = "ps",
        timeout: Optional[float] = None,
    ):
        if child_lister is None:
            child_lister = functools.partial(
                list_children, pgrep_executable=pgrep_executable, timeout=timeout
            )
        if descendant_lister is None:
            descendant_lister = functools.partial(
                list_descendants, ps_executable=ps_executable, timeout=timeout
            )
        self.child_lister = child_lister
        self.descendant_lister = descendant_lister
        self.signal_sender = signal_sender

    def _signal(self, pid: int, sig: int) -> None:
        attempt(
            self.signal_sender,
            pid,
            sig,
            operation=f"sending {signal_name(sig)} to pid {pid}",
        )

    def kill_tree(self, pid: int, sig: int) -> None:
        # (pid, expanded): a node is signalled on its second pop, after its subtree
        stack = [(pid, False)]
        visited = {pid}
        while stack:
            current, expanded = stack.pop()
            if expanded:
                self._signal(current, sig)
                continue

            stack.append((current, True))
            children = attempt(
                self.child_lister,
                current,
                default=[],
                operation=f"listing children of pid {current}",
            )
            for child in reversed(children):
                if child not in visited:
                    visited.add(child)
                    stack.append((child, False))

    async def kill_tree_async(self, pid: int, sig: int) -> None:
        descendants = await attempt_async(
            self.descendant_lister,
            pid,
            default=[],
            operation=f"listing descendants of pid {pid}",
        )
        for descendant in reversed([d for d in descendants if d != pid]):
            self._signal(descendant, sig)
        self._signal(pid, sig)


def select_strategy(
    system: Optional[str] = None,
    config: Optional[ReaperConfig] = None,
) -> TerminationStrategy:
    """Pick the termination strategy for a host.

    Args:
        system: ``platform.system()`` value; detected when None
        config: Tool locations and command timeout; defaults when None
    """
    system = system or platform.system()
    config = config or ReaperConfig()

    if system == "Windows":
        strategy: TerminationStrategy = NativeTreeKillStrategy(
            taskkill_executable=config.taskkill_executable,
            timeout=config.command_timeout,
        )
    else:
        strategy = EnumeratingStrategy(
            pgrep_executable=config.pgrep_executable,
            ps_executable=config.ps_executable,
            timeout=config.command_timeout,
        )

    logger.debug(f"Selected {strategy.name} termination strategy for {system}")
    return strategy


@functools.lru_cache(maxsize=None)
def default_strategy() -> TerminationStrategy:
    """Strategy for the running host, chosen on first use and reused afterwards."""
    return select_strategy()
