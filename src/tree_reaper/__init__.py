"""tree-reaper: best-effort termination of a process and all of its descendants."""

from .core.liveness import is_process_running, wait_for_exit, wait_for_exit_async
from .core.reference import Handle, Pid, ProcessReference, resolve_pid
from .core.signals import default_kill_signal, parse_signal
from .core.strategy import (
    EnumeratingStrategy,
    NativeTreeKillStrategy,
    TerminationStrategy,
    default_strategy,
    select_strategy,
)
from .core.terminator import kill_process_tree, kill_process_tree_async

__version__ = "0.1.0"

__all__ = [
    # Terminators
    "kill_process_tree",
    "kill_process_tree_async",
    # References
    "Pid",
    "Handle",
    "ProcessReference",
    "resolve_pid",
    # Signals
    "default_kill_signal",
    "parse_signal",
    # Platform dispatch
    "TerminationStrategy",
    "NativeTreeKillStrategy",
    "EnumeratingStrategy",
    "select_strategy",
    "default_strategy",
    # Liveness
    "is_process_running",
    "wait_for_exit",
    "wait_for_exit_async",
]
