"""Internal async helpers shared by async modules."""

from __future__ import annotations

import inspect
from typing import Any


async def _maybe_await(value: Any) -> Any:
    """Await awaitables and return non-awaitable values unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def _maybe_call(target: Any, method: str) -> Any:
    """Call an optional driver method, sync or coroutine; `None` when it is absent."""
    bound = getattr(target, method, None)
    if not callable(bound):
        return None
    return await _maybe_await(bound())
