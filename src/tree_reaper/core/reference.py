"""Process references accepted by the tree terminators.

A reference is either a bare :class:`Pid` or a :class:`Handle` that carries a
direct termination capability and, optionally, the pid of the process it
wraps. Plain ``int`` values are accepted wherever a reference is expected and
are treated as ``Pid``.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union


@dataclass(frozen=True)
class Pid:
    """A bare numeric process identifier."""
    value: int


@dataclass(frozen=True)
class Handle:
    """A process handle with a single-process termination capability.

    ``terminate`` receives the signal number to deliver. ``pid`` may be None,
    e.g. for a handle whose process already exited and cleared its id.
    """
    terminate: Callable[[int], None]
    pid: Optional[int] = None

    @classmethod
    def from_process(cls, process: Any) -> "Handle":
        """Wrap a ``subprocess.Popen`` or ``asyncio.subprocess.Process``.

        Both expose ``pid`` and ``send_signal(sig)``.
        """
        return cls(terminate=process.send_signal, pid=process.pid)


ProcessReference = Union[int, Pid, Handle]


def as_reference(target: ProcessReference) -> Union[Pid, Handle]:
    """Coerce a plain int to :class:`Pid`; reject anything that isn't a reference.

    Raises:
        TypeError: If target is not an int, Pid or Handle
    """
    if isinstance(target, (Pid, Handle)):
        return target
    if isinstance(target, int) and not isinstance(target, bool):
        return Pid(target)
    raise TypeError(
        f"Expected int, Pid or Handle, got {type(target).__name__}. "
        "Wrap process objects with Handle.from_process()."
    )


def resolve_pid(target: ProcessReference) -> Optional[int]:
    """Extract a usable pid from a reference, or None when there is none.

    Non-positive values count as absent: 0 and negative pids address process
    groups in ``os.kill``, not a single tree root.
    """
    ref = as_reference(target)
    pid = ref.value if isinstance(ref, Pid) else ref.pid
    if pid is None or pid <= 0:
        return None
    return pid
