"""Detached asyncio tasks whose result is dropped but whose failure is logged."""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

import structlog

logger = structlog.get_logger()


def fire_and_forget(
    coro: Coroutine[Any, Any, Any],
    tasks: set[asyncio.Task],
    event: str,
) -> asyncio.Task:
    """Schedule ``coro`` without awaiting it.

    The task is kept in ``tasks`` until it finishes so it is not collected
    mid-flight. A failure is logged under ``event``; nothing is re-raised.
    """
    task = asyncio.get_running_loop().create_task(coro)
    tasks.add(task)

    def _done(t: asyncio.Task) -> None:
        tasks.discard(t)
        if t.cancelled():
            logger.debug(f"{event}_cancelled")
            return
        exc = t.exception()
        if exc is not None:
            logger.warning(event, error=str(exc), error_type=type(exc).__name__)

    task.add_done_callback(_done)
    return task


async def wait_for_tasks(tasks: set[asyncio.Task]) -> None:
    """Wait until every task in ``tasks`` (including ones spawned meanwhile) is done."""
    while tasks:
        await asyncio.gather(*list(tasks), return_exceptions=True)
