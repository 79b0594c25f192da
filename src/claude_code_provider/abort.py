"""Cancellation token and abort-aware iteration of the upstream stream."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any, TypeVar

from .errors import AbortError

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = ["AbortSignal", "iterate_with_abort"]


class AbortSignal:
    """A one-shot cancellation token.

    Calling ``abort()`` sets the signal and records the reason that callers
    will observe; the reason defaults to ``AbortError``.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: BaseException | None = None

    @classmethod
    def aborted_with(cls, reason: BaseException | None = None) -> "AbortSignal":
        """Create a signal that is already aborted."""
        signal = cls()
        signal.abort(reason)
        return signal

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> BaseException | None:
        return self._reason

    def abort(self, reason: BaseException | None = None) -> None:
        if self._event.is_set():
            return
        self._reason = reason if reason is not None else AbortError()
        self._event.set()

    def throw_if_aborted(self) -> None:
        if self.aborted:
            raise self._reason

    async def wait(self) -> bool:
        return await self._event.wait()


async def _close(iterator: Any) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except RuntimeError as e:
        # aclose() on a generator that is still running
        logger.debug(f"[claude-code] Could not close upstream iterator: {e}")


async def iterate_with_abort(
    source: AsyncIterable[T],
    signal: AbortSignal | None,
) -> AsyncIterator[T]:
    """Yield from ``source`` until it ends or ``signal`` fires.

    Each pending ``__anext__`` is raced against the signal. On abort the
    pending read is cancelled, the source is closed (which tears down the
    agent process) and the signal's reason is raised unchanged.

    Args:
        source: The upstream async iterable.
        signal: Optional cancellation token.

    Yields:
        Items of ``source``, in order.

    Raises:
        BaseException: ``signal.reason`` when the signal fires.
    """
    iterator = source.__aiter__()

    if signal is None:
        try:
            async for item in iterator:
                yield item
        finally:
            await _close(iterator)
        return

    signal.throw_if_aborted()

    abort_task: asyncio.Future[bool] = asyncio.ensure_future(signal.wait())
    next_task: asyncio.Future[T] | None = None
    try:
        while True:
            signal.throw_if_aborted()
            next_task = asyncio.ensure_future(iterator.__anext__())
            done, _pending = await asyncio.wait(
                {next_task, abort_task},
                return_when=asyncio.FIRST_COMPLETED,
            )

            if next_task in done:
                try:
                    item = next_task.result()
                except StopAsyncIteration:
                    next_task = None
                    return
                next_task = None
                yield item
                continue

            logger.debug("[claude-code] Abort signal fired, closing upstream")
            next_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration, Exception):
                await next_task
            next_task = None
            raise signal.reason
    finally:
        if next_task is not None and not next_task.done():
            next_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration, Exception):
                await next_task
        abort_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await abort_task
        await _close(iterator)
