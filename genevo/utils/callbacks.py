from __future__ import annotations

from collections.abc import Callable
import inspect
from typing import Any


async def maybe_await(x: Any) -> Any:
    """Await x if it's awaitable; otherwise return it."""
    return await x if inspect.isawaitable(x) else x


async def call(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async user function and wait for its result."""
    return await maybe_await(fn(*args))


async def fire(hook: Callable[..., Any] | None, *args: Any) -> None:
    """Invoke an optional hook; absent hooks are skipped."""
    if hook is None:
        return
    await maybe_await(hook(*args))
