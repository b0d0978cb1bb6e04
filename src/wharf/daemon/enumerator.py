# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Cancellable enumeration of engine resources.

:func:`enumerate_resources` starts one producer task under an
:class:`~.scope.ExecutionScope` and hands back an :class:`Enumeration`,
an async iterator over the resource summaries in the order the engine
returned them.  A failed run ends the iteration by raising a single
:class:`~.errors.EnumerationError`; a successful one simply stops.
Because the failure is the terminal element of the same stream there is
nothing else for the consumer to drain.

The producer's whole run, including hand-off to a slow consumer, is
bound by the scope's deadline, and leaving the scope reaps it.  A
consumer that stops reading therefore never leaks the producer.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Any, Generic, TypeVar, Union

from .errors import DeadlineExceeded, EnumerationError
from .scope import ExecutionScope

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Engine-style filters, e.g. {"dangling": ["true"]}
ResourceFilter = Mapping[str, Sequence[str]]

Lister = Callable[[ResourceFilter], Union[Awaitable[Iterable[T]], AsyncIterable[T]]]


class Enumeration(Generic[T]):
    """The lazy, single-use result of one enumeration run."""

    def __init__(
        self,
        scope: ExecutionScope,
        lister: Lister[T],
        filters: ResourceFilter,
        *,
        buffer: int = 1,
    ):
        self._scope = scope
        self._lister = lister
        self._filters = filters
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=buffer)
        self._error: EnumerationError | None = None
        self._finished = False
        self._producer = scope.spawn(self._produce(), name=f"{scope.name}-producer")

    # -------------------------------------------------------------------------
    # Producer side
    # -------------------------------------------------------------------------

    async def _relay(self) -> None:
        listing = self._lister(self._filters)
        if isinstance(listing, AsyncIterable):
            async for item in listing:
                await self._queue.put(item)
        else:
            for item in await listing:
                await self._queue.put(item)

    async def _produce(self) -> None:
        try:
            async with self._scope.deadline():
                await self._relay()
        except EnumerationError as e:
            self._error = e
        except Exception as e:
            self._error = EnumerationError(str(e) or type(e).__name__, cause=e)
        if self._error is not None:
            logger.warning("Enumeration in %s failed: %s", self._scope.name, self._error.detail)

    # -------------------------------------------------------------------------
    # Consumer side
    # -------------------------------------------------------------------------

    @property
    def producer(self) -> asyncio.Task[None]:
        return self._producer

    def _terminal_error(self) -> EnumerationError | None:
        if self._error is not None:
            return self._error
        if self._producer.cancelled():
            cause = DeadlineExceeded(f"{self._scope.name} was cancelled")
            return EnumerationError(cause.message, cause=cause)
        return None

    def __aiter__(self) -> Enumeration[T]:
        if self._finished:
            raise RuntimeError("enumeration already consumed; start a new one")
        return self

    async def __anext__(self) -> T:
        if self._finished:
            raise StopAsyncIteration

        while True:
            if not self._queue.empty():
                return self._queue.get_nowait()

            if self._producer.done():
                self._finished = True
                error = self._terminal_error()
                if error is not None:
                    raise error
                raise StopAsyncIteration

            getter = asyncio.ensure_future(self._queue.get())
            try:
                await asyncio.wait({getter, self._producer}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                if not getter.done():
                    getter.cancel()
            if getter.done() and not getter.cancelled():
                return getter.result()


def enumerate_resources(
    scope: ExecutionScope,
    lister: Lister[T],
    filters: ResourceFilter | None = None,
    *,
    buffer: int = 1,
) -> Enumeration[T]:
    """Start enumerating resources from *lister* under *scope*.

    Args:
        scope: Active scope bounding the run.
        lister: The engine's listing call.  Either a coroutine function
            returning the whole listing, or a function returning an async
            iterable for engines that stream results.
        filters: Engine filters passed through to *lister* unchanged.
        buffer: Hand-off slots between producer and consumer.

    Returns:
        An :class:`Enumeration`; the producer is already running.
    """
    return Enumeration(scope, lister, filters or {}, buffer=buffer)


async def collect(enumeration: Enumeration[T]) -> list[T]:
    """Drain *enumeration* into a list.

    A failed run is a failed listing: whatever was received before the
    error is dropped and the :class:`EnumerationError` propagates.
    """
    items: list[T] = []
    async for item in enumeration:
        items.append(item)
    return items


async def list_all(
    scope: ExecutionScope,
    lister: Callable[[ResourceFilter], Any],
    filters: ResourceFilter | None = None,
) -> list[Any]:
    """Convenience wrapper: enumerate and collect in one call."""
    return await collect(enumerate_resources(scope, lister, filters))
