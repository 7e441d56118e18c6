"""Best-effort call wrappers.

Every failure that the tree sweep tolerates (a child lister that is missing,
a pid that exited between discovery and signalling, a handle whose process is
already gone) goes through :func:`attempt` or :func:`attempt_async`, so the
swallow-and-continue policy lives in exactly one place.
"""

import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


def attempt(
    func: Callable[..., T],
    *args: Any,
    default: Optional[T] = None,
    operation: str = "best-effort call",
    logger_instance: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
    **kwargs: Any,
) -> Optional[T]:
    """
    Call a function and discard any ``Exception`` it raises.

    ``KeyboardInterrupt``, ``SystemExit`` and task cancellation are not
    ``Exception`` subclasses and still propagate.

    Args:
        func: Function to call
        *args: Positional arguments for func
        default: Value returned when func raises
        operation: Short description used in the log line
        logger_instance: Logger to use (defaults to module logger)
        level: Log level for the discarded error (default: DEBUG)
        **kwargs: Keyword arguments for func

    Returns:
        Function result on success, default on error
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        log = logger_instance or logger
        log.log(level, f"Ignored failure during {operation}: {e!r}")
        return default


async def attempt_async(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    default: Optional[T] = None,
    operation: str = "best-effort call",
    logger_instance: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
    **kwargs: Any,
) -> Optional[T]:
    """Coroutine counterpart of :func:`attempt`; awaits ``func(*args, **kwargs)``."""
    try:
        return await func(*args, **kwargs)
    except Exception as e:
        log = logger_instance or logger
        log.log(level, f"Ignored failure during {operation}: {e!r}")
        return default
