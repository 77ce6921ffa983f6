"""Caller-initiated cancellation through an abort signal."""

from __future__ import annotations

import asyncio
import contextlib
import threading
from collections.abc import AsyncIterator

from glm_bridge._exceptions import RequestCancelledError

_MESSAGE = "Request aborted by caller"


def check_abort(signal: threading.Event | None) -> None:
    if signal is not None and signal.is_set():
        raise RequestCancelledError(_MESSAGE)


@contextlib.asynccontextmanager
async def abort_scope(signal: asyncio.Event | None) -> AsyncIterator[None]:
    """Cancel the running task if ``signal`` fires while the block is awaiting.

    The block must not hand control back to a consumer (no ``yield`` of an
    async generator inside it): the cancellation targets the current task.
    """
    if signal is None:
        yield
        return
    if signal.is_set():
        raise RequestCancelledError(_MESSAGE)

    task = asyncio.current_task()
    if task is None:
        raise RuntimeError("abort_scope must be used inside a task")
    fired = False

    async def _watch() -> None:
        nonlocal fired
        await signal.wait()
        fired = True
        task.cancel()

    watcher = asyncio.create_task(_watch())
    try:
        yield
    except asyncio.CancelledError:
        if not fired:
            raise
        task.uncancel()
        raise RequestCancelledError(_MESSAGE) from None
    finally:
        watcher.cancel()
    if fired:
        task.uncancel()
        raise RequestCancelledError(_MESSAGE)
