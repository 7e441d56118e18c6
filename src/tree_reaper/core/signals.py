"""Signal values and the single-process signal sender."""

import logging
import os
import signal
from typing import Union

logger = logging.getLogger(__name__)

SignalLike = Union[int, str, signal.Signals]


def default_kill_signal() -> int:
    """Strongest unconditional kill signal available on this host.

    Windows has no SIGKILL; there ``os.kill`` with SIGTERM calls
    TerminateProcess, which is unconditional as well.
    """
    return int(getattr(signal, "SIGKILL", signal.SIGTERM))


def parse_signal(value: SignalLike) -> int:
    """Resolve a signal number, ``signal.Signals`` member or name to an int.

    Accepts ``"SIGTERM"``, ``"term"``, ``"15"`` and ``15`` alike.
    ``"SIGKILL"`` always resolves, to :func:`default_kill_signal` on hosts
    without it.

    Raises:
        ValueError: If the name or number is not a signal on this host
    """
    if isinstance(value, signal.Signals):
        return int(value)

    if isinstance(value, int):
        try:
            return int(signal.Signals(value))
        except ValueError:
            raise ValueError(f"Unknown signal number: {value}") from None

    text = str(value).strip()
    if text.lstrip("-").isdigit():
        return parse_signal(int(text))

    name = text.upper()
    if not name.startswith("SIG"):
        name = f"SIG{name}"
    if name == "SIGKILL":
        # Windows has no SIGKILL
        return default_kill_signal()
    try:
        return int(signal.Signals[name])
    except KeyError:
        raise ValueError(f"Unknown signal name: {value!r}") from None


def signal_name(sig: int) -> str:
    """Human-readable name for a signal number (falls back to the number)."""
    try:
        return signal.Signals(sig).name
    except ValueError:
        return str(sig)


def send_signal(pid: int, sig: int) -> None:
    """Deliver ``sig`` to a single pid.

    Raises whatever ``os.kill`` raises (``ProcessLookupError`` for a pid that
    has exited, ``PermissionError`` for one we may not signal). Callers in the
    sweep wrap this in ``attempt``.
    """
    logger.debug(f"Sending {signal_name(sig)}", extra={"pid": pid})
    os.kill(pid, sig)
