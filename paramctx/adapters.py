"""
Future adapters backing ``Context.promise``.

Three shapes of callable are normalized onto ``asyncio.Future``:
callback-style (settled through an injected ``(error, result)`` callback),
direct return (value or returned exception instance) and awaitable return.
"""

from typing import Any, Awaitable, Callable, Set
import asyncio
import inspect
import logging

from .errors import CallbackError

logger = logging.getLogger("paramctx.adapters")

# Tasks scheduled by watch_awaitable, held until they finish
_pending_tasks: Set["asyncio.Future[Any]"] = set()


def as_exception(error: Any) -> BaseException:
    """Exception to reject a future with for a callback error value."""
    if isinstance(error, BaseException):
        return error
    return CallbackError(error)


def settle_callback(future: "asyncio.Future[Any]") -> Callable[..., None]:
    """
    Build an ``(error, result)`` callback that settles ``future``.

    A truthy ``error`` rejects, anything else resolves with ``result``.
    Only the first call settles the future; later calls are logged and
    ignored.
    """
    def callback(error: Any = None, result: Any = None) -> None:
        if future.done():
            logger.debug("Callback invoked after future settled; ignoring")
            return

        if error:
            future.set_exception(as_exception(error))
        else:
            future.set_result(result)

    return callback


def to_future(value: Any, loop: asyncio.AbstractEventLoop) -> "asyncio.Future[Any]":
    """
    Wrap a direct return value in a future.

    Futures pass through untouched, other awaitables are scheduled, exception
    instances become rejections and everything else a resolution.
    """
    if asyncio.isfuture(value):
        return value

    if inspect.isawaitable(value):
        return asyncio.ensure_future(value)

    future = loop.create_future()
    if isinstance(value, BaseException):
        future.set_exception(value)
    else:
        future.set_result(value)
    return future


def watch_awaitable(awaitable: Awaitable[Any], future: "asyncio.Future[Any]") -> "asyncio.Future[Any]":
    """
    Schedule an awaitable returned by a callback-style callable.

    The callback still settles ``future``; the awaitable can only reject it
    (or cancel it) when it fails before the callback fired.
    """
    task = asyncio.ensure_future(awaitable)
    _pending_tasks.add(task)
    task.add_done_callback(_pending_tasks.discard)

    def _done(finished: "asyncio.Future[Any]") -> None:
        if finished.cancelled():
            if not future.done():
                future.cancel()
            return

        error = finished.exception()
        if error is None:
            return
        if future.done():
            logger.error(f"Awaitable failed after callback settled: {error!r}")
            return
        future.set_exception(error)

    task.add_done_callback(_done)
    return task
