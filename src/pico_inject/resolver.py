"""Dependency resolution engine.

Turns the injections declared on a function or class into concrete values.
Every operation returns an immediate result when all dependencies resolved
synchronously, and a deferred (awaitable) result as soon as one of them is
asynchronous; callers branch with :func:`~pico_inject.values.is_deferred`.

All injections of a call are validated before any of them is resolved, so a
:class:`~pico_inject.exceptions.MissingInjectionMetadataError` never leaves
asynchronous lookups running in the background.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple, Type, TypeVar, Union

from .exceptions import MissingInjectionMetadataError
from .injection import DEFAULT_PROVIDER, Injection, MetadataProvider
from .values import ValueOrDeferred, discard, is_deferred, realize

_logger = logging.getLogger(__name__)

T = TypeVar("T")
Assign = Callable[[Any, Any], None]
Pending = List[Tuple[Any, Awaitable[Any]]]


class ValueStore(Protocol):
    """Keyed store that injections are resolved against."""

    def get_value_or_deferred(self, key: str) -> Any: ...


def resolve(store: ValueStore, injection: Injection) -> ValueOrDeferred[Any]:
    """Resolve a single injection against *store*.

    A custom ``resolve`` function wins over ``binding_key``. The result is
    returned as-is, immediate or deferred.
    """
    if injection.resolve is not None:
        return injection.resolve(store, injection)
    return store.get_value_or_deferred(injection.binding_key)


def _argument_plan(fn: Callable[..., Any], provider: Optional[MetadataProvider]) -> List[Tuple[int, Injection]]:
    plan: List[Tuple[int, Injection]] = []
    for ix, injection in enumerate((provider or DEFAULT_PROVIDER).describe_injected_arguments(fn)):
        if injection is None or not injection.is_resolvable:
            raise MissingInjectionMetadataError(fn, position=ix + 1)
        plan.append((ix, injection))
    return plan


def _property_plan(cls: type, provider: Optional[MetadataProvider]) -> List[Tuple[str, Injection]]:
    plan: List[Tuple[str, Injection]] = []
    for name, injection in (provider or DEFAULT_PROVIDER).describe_injected_properties(cls).items():
        if injection is None or not injection.is_resolvable:
            raise MissingInjectionMetadataError(cls, property_name=name)
        plan.append((name, injection))
    return plan


def _discard_pending(pending: Pending) -> None:
    for _, value in pending:
        discard(value)


def _resolve_plan(store: ValueStore, plan: List[Tuple[Any, Injection]], binding: Any, assign: Assign) -> Pending:
    """Resolve every injection of *plan*, assigning immediate values now.

    Returns the ``(slot, deferred)`` pairs still to be awaited. If the store
    raises synchronously, deferred values collected so far are discarded
    before the error propagates.
    """
    pending: Pending = []
    try:
        for slot, injection in plan:
            value = resolve(store, injection.with_binding(binding))
            if is_deferred(value):
                pending.append((slot, value))
            else:
                assign(slot, value)
    except BaseException:
        _discard_pending(pending)
        raise
    return pending


async def _assign_later(slot: Any, value: Awaitable[Any], assign: Assign) -> None:
    assign(slot, await realize(value))


async def _join(pending: Pending, assign: Assign, result: T) -> T:
    _logger.debug("Waiting for %d deferred dependencies", len(pending))
    await asyncio.gather(*(_assign_later(slot, value, assign) for slot, value in pending))
    return result


def _settle(pending: Pending, assign: Assign, result: T) -> Union[T, Awaitable[T]]:
    if pending:
        return _join(pending, assign, result)
    return result


def resolve_injected_arguments(
    fn: Callable[..., Any],
    store: ValueStore,
    binding: Any = None,
    *,
    provider: Optional[MetadataProvider] = None,
) -> Union[List[Any], Awaitable[List[Any]]]:
    """Resolve the injected positional arguments of *fn*.

    Args:
        fn: The function or class whose arguments should be resolved.
        store: The store providing bound values.
        binding: The binding that owns the object being built, if any.
        provider: Metadata provider; defaults to annotation-based metadata.

    Returns:
        The argument list in declared order, or an awaitable of it if any
        dependency was deferred. The awaitable realizes only once every
        deferred dependency has realized.

    Raises:
        MissingInjectionMetadataError: If a declared argument has no usable
            injection.
    """
    plan = _argument_plan(fn, provider)
    args: List[Any] = [None] * len(plan)
    pending = _resolve_plan(store, plan, binding, args.__setitem__)
    return _settle(pending, args.__setitem__, args)


def resolve_injected_properties(
    cls: type,
    store: ValueStore,
    binding: Any = None,
    *,
    provider: Optional[MetadataProvider] = None,
) -> Union[Dict[str, Any], Awaitable[Dict[str, Any]]]:
    """Resolve the injected attributes of *cls* into a name/value mapping.

    Same contract as :func:`resolve_injected_arguments`, keyed by attribute
    name.

    Raises:
        MissingInjectionMetadataError: If an injected attribute names neither
            a binding key nor a resolve function.
    """
    plan = _property_plan(cls, provider)
    properties: Dict[str, Any] = {}
    pending = _resolve_plan(store, plan, binding, properties.__setitem__)
    return _settle(pending, properties.__setitem__, properties)


def _apply_properties(instance: T, properties: Dict[str, Any]) -> T:
    for name, value in properties.items():
        setattr(instance, name, value)
    return instance


async def _construct_later(cls: Type[T], args: Awaitable[List[Any]]) -> T:
    return cls(*await args)


async def _constructed(instance: T) -> T:
    return instance


async def _inject_later(construction: Awaitable[T], properties: ValueOrDeferred[Dict[str, Any]]) -> T:
    obj, props = await asyncio.gather(construction, realize(properties))
    return _apply_properties(obj, props)


def instantiate_class(
    cls: Type[T],
    store: ValueStore,
    binding: Any = None,
    *,
    provider: Optional[MetadataProvider] = None,
) -> Union[T, Awaitable[T]]:
    """Create an instance of *cls* with its injected arguments and attributes.

    Argument and attribute lookups are all started before anything is
    awaited. Construction happens as soon as the arguments are available,
    without waiting for attribute injection; resolved attributes are then set
    on the instance, replacing any value the constructor assigned.

    Args:
        cls: The class to instantiate.
        store: The store providing bound values.
        binding: The binding that owns the instance, if any.
        provider: Metadata provider; defaults to annotation-based metadata.

    Returns:
        The instance, or an awaitable of it if any dependency was deferred.

    Raises:
        MissingInjectionMetadataError: If an argument or attribute has no
            usable injection.
    """
    arg_plan = _argument_plan(cls, provider)
    prop_plan = _property_plan(cls, provider)

    args: List[Any] = [None] * len(arg_plan)
    properties: Dict[str, Any] = {}
    args_pending = _resolve_plan(store, arg_plan, binding, args.__setitem__)
    try:
        props_pending = _resolve_plan(store, prop_plan, binding, properties.__setitem__)
    except BaseException:
        _discard_pending(args_pending)
        raise

    if args_pending:
        _logger.debug("Deferring construction of %s until its arguments resolve", cls.__name__)
        construction = _construct_later(cls, _join(args_pending, args.__setitem__, args))
        return _inject_later(construction, _settle(props_pending, properties.__setitem__, properties))

    try:
        instance = cls(*args)
    except BaseException:
        _discard_pending(props_pending)
        raise

    if props_pending:
        _logger.debug("Deferring property injection of %s", cls.__name__)
        return _inject_later(_constructed(instance), _join(props_pending, properties.__setitem__, properties))
    return _apply_properties(instance, properties)
