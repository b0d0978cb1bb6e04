"""Decorators for CLI commands."""

from functools import wraps
from typing import Callable, Coroutine, TypeVar

import typer

from .client import close_client, get_client, get_config
from .output import out

R = TypeVar("R")


def require_engine(func: Callable[..., Coroutine[None, None, R]]) -> Callable[..., Coroutine[None, None, R]]:
    """Decorator that checks engine availability and releases the client."""
    @wraps(func)
    async def wrapper(*args: object, **kwargs: object) -> R:
        try:
            client = get_client()
        except ValueError as e:
            out.error(f"Invalid configuration: {e}")
            raise typer.Exit(2)

        try:
            if not await client.is_available():
                out.error("Container engine is not available.")
                out.hint(f"Is the engine listening on [bold]{get_config().socket_path}[/bold]?")
                raise typer.Exit(1)
            return await func(*args, **kwargs)
        finally:
            await close_client()
    return wrapper
