"""Invoke helpers — call sync or async callables uniformly.

Transforms and guards can be ``def`` or ``async def`` and may accept
the claims argument or not. This module keeps both checks in one place.

Usage::

    from pico._internal.invoke import call_transform

    params = await call_transform(preprocess, params, claims)
"""

import inspect
from collections.abc import Callable
from typing import Any


async def invoke(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def positional_arity(func: Callable[..., Any]) -> int:
    """How many positional arguments *func* accepts, capped at two.

    ``*args`` counts as two. Callables whose signature cannot be
    introspected (some builtins) are assumed to take two.
    """
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return 2

    count = 0
    for param in sig.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return 2
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return min(count, 2)


async def call_transform(func: Callable[..., Any], value: Any, claims: Any) -> Any:
    """Call a transform with ``(value, claims)``, ``(value)``, or ``()``.

    Transforms may declare zero, one, or two positional parameters;
    they receive as many leading arguments as they accept.
    """
    args = (value, claims)[: positional_arity(func)]
    return await invoke(func, *args)
