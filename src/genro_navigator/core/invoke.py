"""Invoke helpers: call sync or async hooks uniformly.

Guards, payload loaders, fallbacks and render adapters can be ``def`` or
``async def``. Every call site that runs user code goes through ``invoke``
so the sync/async check lives in one place.

Usage::

    from genro_navigator.core.invoke import invoke

    result = await invoke(guard, to, from_)
"""

from __future__ import annotations

import inspect
from typing import Any

__all__ = ["invoke"]


async def invoke(hook: Any, *args: Any, **kwargs: Any) -> Any:
    """Call ``hook`` and await the result if it is awaitable."""
    result = hook(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
