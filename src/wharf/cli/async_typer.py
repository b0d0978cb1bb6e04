"""Typer app that accepts ``async def`` commands."""

import asyncio
import inspect
from functools import wraps
from typing import Any, Callable

import typer


class AsyncTyper(typer.Typer):
    """A :class:`typer.Typer` whose commands may be coroutines.

    Each coroutine command runs in its own event loop via
    :func:`asyncio.run`.
    """

    def command(self, *args: Any, **kwargs: Any) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        decorator = super().command(*args, **kwargs)

        def add(fn: Callable[..., Any]) -> Callable[..., Any]:
            if inspect.iscoroutinefunction(fn):
                @wraps(fn)
                def sync(*a: Any, **kw: Any) -> Any:
                    return asyncio.run(fn(*a, **kw))
                decorator(sync)
            else:
                decorator(fn)
            return fn

        return add
