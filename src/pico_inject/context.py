"""A flat, keyed value store for dependency resolution.

:class:`Context` maps string keys to :class:`Binding` objects and implements
the ``get_value_or_deferred`` operation the resolver consumes. Bindings are
evaluated on every lookup; caching and parent contexts are left to callers.
"""

import uuid
from typing import Any, Callable, Dict, List, Optional, Type

from .config_sources import TreeSource, flatten_tree, merge_trees
from .constants import BINDING_CLASS, BINDING_CONSTANT, BINDING_DYNAMIC, BINDING_PROVIDER, DEFAULT_CONFIG_PREFIX, LOGGER
from .exceptions import AsyncResolutionError, BindingNotFoundError, InvalidBindingError
from .resolver import instantiate_class
from .values import ValueOrDeferred, discard, is_deferred, realize, then

Getter = Callable[["Context"], Any]


class Binding:
    """Associates a key with a way to produce its value.

    Args:
        key: The non-empty binding key.

    Example:
        >>> ctx = Context()
        >>> ctx.bind("greeting").to("Hello")  # doctest: +ELLIPSIS
        <Binding ...>
    """

    def __init__(self, key: str) -> None:
        if not isinstance(key, str) or not key:
            raise InvalidBindingError(key, "binding keys must be non-empty strings")
        self.key = key
        self.type: Optional[str] = None
        self.source: Any = None
        self._getter: Optional[Getter] = None

    def __repr__(self) -> str:
        return f"<Binding key={self.key!r} type={self.type}>"

    def _set(self, kind: str, source: Any, getter: Getter) -> "Binding":
        self.type = kind
        self.source = source
        self._getter = getter
        return self

    def to(self, value: Any) -> "Binding":
        """Bind a constant value. An awaitable value is bound as-is."""
        return self._set(BINDING_CONSTANT, value, lambda ctx: value)

    def to_dynamic_value(self, factory: Callable[[], Any]) -> "Binding":
        """Bind a zero-argument callable evaluated on every lookup.

        The callable may be a coroutine function; its coroutine is returned
        as a deferred value.
        """
        return self._set(BINDING_DYNAMIC, factory, lambda ctx: factory())

    def to_class(self, cls: type) -> "Binding":
        """Bind a class, instantiated with injected dependencies on lookup."""
        return self._set(BINDING_CLASS, cls, lambda ctx: instantiate_class(cls, ctx, self))

    def to_provider(self, provider_cls: Type[Any]) -> "Binding":
        """Bind a provider class whose ``value()`` method produces the value.

        The provider itself is instantiated with injected dependencies.
        """
        def getter(ctx: "Context") -> Any:
            provider = instantiate_class(provider_cls, ctx, self)
            return then(provider, lambda p: p.value())

        return self._set(BINDING_PROVIDER, provider_cls, getter)

    def get_value(self, ctx: "Context") -> ValueOrDeferred[Any]:
        """Produce this binding's value (or deferred value) in *ctx*.

        Raises:
            InvalidBindingError: If no value has been bound.
        """
        if self._getter is None:
            raise InvalidBindingError(self.key, "no value was bound")
        return self._getter(ctx)


class Context:
    """Keyed store of bindings.

    Args:
        name: Optional context name used in error messages and logs.
    """

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name or f"ctx-{uuid.uuid4().hex[:8]}"
        self._registry: Dict[str, Binding] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._registry

    def bind(self, key: str) -> Binding:
        """Create a binding for *key*, replacing any existing one."""
        binding = Binding(key)
        if key in self._registry:
            LOGGER.debug("[%s] Replacing binding '%s'", self.name, key)
        self._registry[key] = binding
        return binding

    def unbind(self, key: str) -> bool:
        """Remove the binding for *key*. Returns ``False`` if it was not bound."""
        return self._registry.pop(key, None) is not None

    def keys(self) -> List[str]:
        return list(self._registry)

    def get_binding(self, key: str) -> Binding:
        """Return the binding for *key*.

        Raises:
            BindingNotFoundError: If *key* is not bound.
        """
        binding = self._registry.get(key)
        if binding is None:
            raise BindingNotFoundError(key, self.name)
        return binding

    def get_value_or_deferred(self, key: str) -> ValueOrDeferred[Any]:
        """Return the value bound to *key*, immediate or deferred."""
        return self.get_binding(key).get_value(self)

    def get_sync(self, key: str) -> Any:
        """Return the value bound to *key*, which must be synchronous.

        Raises:
            AsyncResolutionError: If the value (or one of its dependencies)
                is deferred.
        """
        value = self.get_value_or_deferred(key)
        if is_deferred(value):
            discard(value)
            raise AsyncResolutionError(key)
        return value

    async def get(self, key: str) -> Any:
        """Return the value bound to *key*, awaiting it if deferred."""
        return await realize(self.get_value_or_deferred(key))

    def load_config(self, *sources: TreeSource, prefix: str = DEFAULT_CONFIG_PREFIX) -> Dict[str, Any]:
        """Bind configuration trees as constants under *prefix*.

        Sources are merged in order, later sources overriding earlier ones.
        Every node of the merged tree is bound, so both ``"config.db"`` and
        ``"config.db.host"`` are available.

        Returns:
            The flattened key/value mapping that was bound.
        """
        tree: Dict[str, Any] = {}
        for source in sources:
            tree = merge_trees(tree, source.get_tree())
        flat = flatten_tree(tree, prefix)
        for key, value in flat.items():
            self.bind(key).to(value)
        LOGGER.debug("[%s] Bound %d configuration keys under '%s'", self.name, len(flat), prefix)
        return flat
