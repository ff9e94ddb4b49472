"""Helpers for values that may be immediate or deferred.

A *deferred* value is anything the host can ``await``: coroutines,
:class:`asyncio.Future` and :class:`asyncio.Task` objects, or any object
implementing ``__await__``. Resolvers return either a plain value or a
deferred one, and callers branch with :func:`is_deferred` so that fully
synchronous wiring never pays for an event loop.
"""

import inspect
from typing import Any, Awaitable, Callable, TypeVar, Union

T = TypeVar("T")
R = TypeVar("R")

ValueOrDeferred = Union[T, Awaitable[T]]


def is_deferred(value: Any) -> bool:
    """Return ``True`` if *value* must be awaited to obtain the real value."""
    return inspect.isawaitable(value)


async def realize(value: ValueOrDeferred[T]) -> T:
    """Await *value* until it is no longer deferred.

    Immediate values are returned unchanged; a deferred value that realizes
    to another deferred value is awaited again, so the result is never
    nested.
    """
    while is_deferred(value):
        value = await value
    return value


def then(value: ValueOrDeferred[T], fn: Callable[[T], ValueOrDeferred[R]]) -> ValueOrDeferred[R]:
    """Apply *fn* to *value* now, or once it realizes.

    Args:
        value: An immediate or deferred value.
        fn: Callable applied to the realized value. It may itself return a
            deferred value.

    Returns:
        ``fn(value)`` for an immediate *value*, otherwise a coroutine that
        realizes *value*, applies *fn* and realizes its result.
    """
    if is_deferred(value):
        return _then_later(value, fn)
    return fn(value)


async def _then_later(value: Awaitable[T], fn: Callable[[T], ValueOrDeferred[R]]) -> R:
    return await realize(fn(await realize(value)))


def discard(value: Any) -> None:
    """Close *value* if it is a coroutine that will never be awaited."""
    if inspect.iscoroutine(value):
        value.close()
