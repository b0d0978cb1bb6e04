# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Deadline-bound execution scopes.

An :class:`ExecutionScope` owns the lifetime of one enumeration or
mutation.  It carries a deadline and a cancellation flag, tracks every
task started under it, and on exit cancels and awaits whatever is still
running — so nothing started inside a scope outlives it.

Example::

    async with ExecutionScope(timeout=100) as scope:
        report = await scope.run(engine.prune_images())
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from collections.abc import AsyncIterator, Awaitable, Coroutine
from types import TracebackType
from typing import Any, TypeVar

from .errors import DeadlineExceeded

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Seconds allowed for one engine round trip unless configured otherwise.
DEFAULT_TIMEOUT = 100.0


class ScopeState(enum.Enum):
    """Lifecycle of an execution scope."""

    CREATED = "created"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (ScopeState.COMPLETED, ScopeState.FAILED, ScopeState.CANCELLED)


class ExecutionScope:
    """An owned deadline/cancellation context for one core invocation.

    Use as an async context manager.  The deadline starts counting when
    the scope is entered.  Leaving the scope releases it exactly once,
    whatever the exit path, and moves it to a terminal state:

    - ``COMPLETED`` when the body finished normally
    - ``CANCELLED`` when the body was cancelled or :meth:`cancel` was called
    - ``FAILED`` for any other exception
    """

    def __init__(self, timeout: float | None = DEFAULT_TIMEOUT, *, name: str = "scope"):
        self.timeout = timeout
        self.name = name
        self.state = ScopeState.CREATED
        self._deadline: float | None = None
        self._cancelled = False
        self._cancel_event = asyncio.Event()
        self._tasks: set[asyncio.Future[Any]] = set()

    def __repr__(self) -> str:
        return f"ExecutionScope({self.name!r}, state={self.state.value})"

    async def __aenter__(self) -> ExecutionScope:
        if self.state is not ScopeState.CREATED:
            raise RuntimeError(f"{self!r} cannot be entered twice")
        if self.timeout is not None:
            self._deadline = asyncio.get_running_loop().time() + self.timeout
        self.state = ScopeState.ACTIVE
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._cancelled or (exc_type is not None and issubclass(exc_type, asyncio.CancelledError)):
            final = ScopeState.CANCELLED
        elif exc_type is None:
            final = ScopeState.COMPLETED
        else:
            final = ScopeState.FAILED
        await self.release(final)

    # -------------------------------------------------------------------------
    # Deadline and cancellation
    # -------------------------------------------------------------------------

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - asyncio.get_running_loop().time())

    def cancel(self) -> None:
        """Cancel the scope and every task running under it.

        Work waiting in :meth:`run` observes this as
        :class:`DeadlineExceeded`.
        """
        if self._cancelled or self.state.terminal:
            return
        self._cancelled = True
        self._cancel_event.set()
        for task in list(self._tasks):
            task.cancel()

    def _interrupted(self) -> DeadlineExceeded:
        if self._cancelled or self.timeout is None:
            return DeadlineExceeded(f"{self.name} was cancelled")
        return DeadlineExceeded(f"{self.name} exceeded its {self.timeout:g}s deadline")

    def _ensure_active(self) -> None:
        if self.state is not ScopeState.ACTIVE:
            raise RuntimeError(f"{self!r} is not active")
        if self._cancelled or self.expired:
            raise self._interrupted()

    # -------------------------------------------------------------------------
    # Task ownership
    # -------------------------------------------------------------------------

    def _track(self, fut: asyncio.Future[T]) -> asyncio.Future[T]:
        self._tasks.add(fut)
        fut.add_done_callback(self._tasks.discard)
        return fut

    def spawn(self, coro: Coroutine[Any, Any, T], *, name: str | None = None) -> asyncio.Task[T]:
        """Start *coro* as a task owned by this scope."""
        if self.state is not ScopeState.ACTIVE:
            coro.close()
            raise RuntimeError(f"{self!r} is not active")
        task = asyncio.create_task(coro, name=name)
        self._track(task)
        return task

    async def run(self, aw: Awaitable[T]) -> T:
        """Await *aw* under this scope's deadline and cancellation.

        Raises:
            DeadlineExceeded: The deadline elapsed or the scope was
                cancelled before *aw* finished.  *aw* is cancelled and
                has stopped by the time this is raised.
        """
        try:
            self._ensure_active()
        except (DeadlineExceeded, RuntimeError):
            if asyncio.iscoroutine(aw):
                aw.close()
            raise

        fut = self._track(asyncio.ensure_future(aw))
        waiter = asyncio.ensure_future(self._cancel_event.wait())
        try:
            done, _pending = await asyncio.wait(
                {fut, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            waiter.cancel()
            if not fut.done():
                fut.cancel()

        if fut in done and not fut.cancelled():
            return fut.result()

        await asyncio.gather(fut, return_exceptions=True)
        if fut in done and not (self._cancelled or self.state.terminal):
            # Cancelled by something other than this scope
            raise asyncio.CancelledError()
        raise self._interrupted()

    @contextlib.asynccontextmanager
    async def deadline(self) -> AsyncIterator[None]:
        """Bound the enclosed block by this scope's deadline.

        Unlike :meth:`run` this starts no task: the block is cancelled in
        place when the deadline elapses and :class:`DeadlineExceeded` is
        raised instead.  :meth:`cancel` reaches the block only when the
        current task is owned by this scope.
        """
        self._ensure_active()
        try:
            async with asyncio.timeout_at(self._deadline):
                yield
        except TimeoutError:
            raise self._interrupted() from None

    async def release(self, final: ScopeState = ScopeState.COMPLETED) -> None:
        """Release the scope, cancelling and awaiting its remaining tasks.

        Only the first call has any effect.
        """
        if self.state.terminal:
            return
        self.state = final
        self._cancel_event.set()

        pending = [t for t in self._tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.debug("%s released as %s (%d task(s) reaped)", self.name, final.value, len(pending))
