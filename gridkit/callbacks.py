"""Invocation helpers for externally supplied feature callbacks.

Callbacks may be plain functions or coroutine functions. Exceptions they
raise are logged and then re-raised so the caller can surface the failure
and decide on rollback.
"""

from __future__ import annotations

import asyncio
import inspect

from collections.abc import Awaitable, Callable
from typing import Any

from .log import debug, log_callback_error, warn


# Type alias for callback functions (sync or async)
CallbackFunc = Callable[..., Any] | Callable[..., Awaitable[Any]]


async def invoke(
    callback: CallbackFunc | None,
    *args: Any,
    feature: str,
    action: str,
) -> Any:
    """Call a delegate and await its result when it is awaitable.

    Parameters
    ----------
    callback : CallbackFunc or None
        The delegate. None is an idle no-op.
    *args : Any
        Positional arguments for the delegate.
    feature : str
        Owning feature name (for logging).
    action : str
        Action that triggered the call (for logging).

    Returns
    -------
    Any
        Whatever the delegate returned, or None when no delegate is set.
    """
    if callback is None:
        debug(f"No callback for '{feature}.{action}', skipping")
        return None
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        log_callback_error(feature, action, e)
        raise
    return result


def notify(
    callback: CallbackFunc | None,
    *args: Any,
    feature: str,
    action: str,
) -> asyncio.Task[Any] | None:
    """Call a fire-and-forget listener from synchronous code.

    Coroutines returned by async listeners are scheduled on the running
    event loop and the task is returned. Without a running loop they are
    closed and a warning is logged.
    """
    if callback is None:
        return None
    try:
        result = callback(*args)
    except Exception as e:
        log_callback_error(feature, action, e)
        raise

    if inspect.iscoroutine(result):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            result.close()
            warn(f"Async listener for '{feature}.{action}' needs a running event loop")
            return None
        return loop.create_task(result)
    return None
