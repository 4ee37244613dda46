from __future__ import annotations

"""
bootkit.core.utils
==================

Small helpers with no external dependencies.
"""

import inspect
from collections.abc import Callable
from typing import Any


async def call_maybe_async(fn: Callable[..., Any], *args: Any) -> Any:
    """Call `fn` and await the result if it is awaitable."""
    res = fn(*args)
    if inspect.isawaitable(res):
        return await res
    return res


def describe(obj: Any) -> str:
    """Short human label for diagnostics: the declared name or the type name."""
    name = getattr(obj, "name", None)
    if isinstance(name, str) and name:
        return repr(name)
    return f"<{type(obj).__name__} object>"
