"""
Bridge between synchronous dramatiq actors and the async service layer.

Dramatiq runs actors on plain worker threads. Every thread keeps one event
loop for its whole life so asyncpg connections never cross loops.
"""

import asyncio
import threading
from collections.abc import Awaitable
from typing import TypeVar

from loguru import logger

T = TypeVar("T")

_local = threading.local()


def _thread_loop() -> asyncio.AbstractEventLoop:
    loop: asyncio.AbstractEventLoop | None = getattr(_local, "loop", None)
    if loop is not None and not loop.is_closed():
        return loop

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    _local.loop = loop
    logger.debug(
        "Event loop opened for worker thread",
        extra={"thread": threading.current_thread().name},
    )
    return loop


def run_async(awaitable: Awaitable[T]) -> T:
    """
    Block the calling worker thread until ``awaitable`` finishes.

    Exceptions propagate unchanged so dramatiq's Retries middleware sees
    them.

    Args:
        awaitable: Coroutine produced by an actor

    Returns:
        Whatever the coroutine returns
    """
    loop = _thread_loop()
    try:
        return loop.run_until_complete(awaitable)
    except Exception:
        logger.opt(exception=True).warning(
            "Actor coroutine raised",
            extra={"thread": threading.current_thread().name},
        )
        raise


def close_thread_loop() -> None:
    """Close this thread's loop, if one was opened."""
    loop: asyncio.AbstractEventLoop | None = getattr(_local, "loop", None)
    if loop is None or loop.is_closed():
        return
    loop.run_until_complete(loop.shutdown_asyncgens())
    loop.close()
    _local.loop = None
