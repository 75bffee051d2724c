"""Cancellation tokens for in-flight router requests.

Each token belongs to exactly one request. Firing it aborts that request's
HTTP call and resolves the caller with ``CancelledError``.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Optional, TypeVar

from suiroute.errors import CancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelToken:
    """Caller-owned signal that aborts a single request.

    Example:
        token = CancelToken()
        task = asyncio.create_task(client.get_supported_coins(cancel_token=token))
        token.cancel("user navigated away")
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        """Fire the token. Repeated calls keep the first reason."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def cancel_after(self, delay: float) -> asyncio.TimerHandle:
        """Fire the token after ``delay`` seconds."""
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, self.cancel, f"timed out after {delay}s")

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise CancelledError(self.reason or "Request cancelled")


async def run_cancellable(
    awaitable: Awaitable[T],
    cancel_token: Optional[CancelToken] = None,
) -> T:
    """Await ``awaitable`` unless ``cancel_token`` fires first.

    On cancellation the underlying task is cancelled and awaited so that no
    connection or task is left behind, then ``CancelledError`` is raised.
    """
    if cancel_token is None:
        return await awaitable

    if cancel_token.cancelled:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        cancel_token.raise_if_cancelled()

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel_token.wait())

    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        waiter.cancel()
        raise

    # A token fired before the response was consumed wins over the response
    if waiter not in done and not cancel_token.cancelled:
        waiter.cancel()
        return task.result()

    waiter.cancel()
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    logger.debug(f"Request cancelled: {cancel_token.reason or 'no reason given'}")
    raise CancelledError(cancel_token.reason or "Request cancelled")
