"""Public tree terminators.

``kill_process_tree`` blocks until the sweep is done; ``kill_process_tree_async``
suspends instead. Both are best effort: they never report whether anything was
actually terminated and never raise for processes that are already gone. Use
:func:`tree_reaper.core.liveness.wait_for_exit` when confirmation matters.
"""

import logging
from typing import Optional, Union

from ..utils.error_handling import attempt
from .reference import Handle, Pid, ProcessReference, as_reference, resolve_pid
from .signals import default_kill_signal, signal_name
from .strategy import TerminationStrategy, default_strategy

logger = logging.getLogger(__name__)


def _terminate_handle(ref: Union[Pid, Handle], sig: int) -> None:
    """Fallback for references without a pid: use the handle's own capability."""
    if isinstance(ref, Handle):
        logger.debug(f"No pid available, terminating handle directly with {signal_name(sig)}")
        attempt(ref.terminate, sig, operation="direct handle termination")


def kill_process_tree(
    target: ProcessReference,
    sig: Optional[int] = None,
    *,
    strategy: Optional[TerminationStrategy] = None,
) -> None:
    """Kill a process and all of its descendants, blocking until done.

    On POSIX, children are discovered with ``pgrep -P`` and each child's own
    subtree is killed before the child, so the requested process dies last.
    On Windows, ``taskkill /t /f`` kills the tree in one call.

    Args:
        target: Pid (int or Pid) or Handle
        sig: Signal number (default: strongest kill signal of the host)
        strategy: Override the host's termination strategy

    Raises:
        TypeError: If target is not an int, Pid or Handle
    """
    sig = default_kill_signal() if sig is None else int(sig)
    ref = as_reference(target)
    pid = resolve_pid(ref)

    if pid is None:
        _terminate_handle(ref, sig)
        return

    strategy = strategy or default_strategy()
    logger.debug(f"Killing process tree with {signal_name(sig)}", extra={"pid": pid})
    strategy.kill_tree(pid, sig)


async def kill_process_tree_async(
    target: ProcessReference,
    sig: Optional[int] = None,
    *,
    strategy: Optional[TerminationStrategy] = None,
) -> None:
    """Kill a process and all of its descendants without blocking the event loop.

    On POSIX, all descendants are listed from one process-table snapshot and
    signalled in reverse of that listing, then the requested process.

    Args:
        target: Pid (int or Pid) or Handle
        sig: Signal number (default: strongest kill signal of the host)
        strategy: Override the host's termination strategy

    Raises:
        TypeError: If target is not an int, Pid or Handle
    """
    sig = default_kill_signal() if sig is None else int(sig)
    ref = as_reference(target)
    pid = resolve_pid(ref)

    if pid is None:
        _terminate_handle(ref, sig)
        return

    strategy = strategy or default_strategy()
    logger.debug(f"Killing process tree (async) with {signal_name(sig)}", extra={"pid": pid})
    await strategy.kill_tree_async(pid, sig)
