"""Injection descriptors and the metadata providers that read them.

An :class:`Injection` records that a parameter or attribute should be filled
from a value store, either by binding key or by a custom resolve function.
Injections are attached with :data:`typing.Annotated`::

    class Greeter:
        greeting: Annotated[str, inject("greeting")]

        def __init__(self, name: Annotated[str, inject("user.name")]):
            self.name = name

:class:`AnnotationMetadataProvider` turns those annotations into the ordered
(possibly sparse) argument descriptors and the attribute descriptor map the
resolver consumes.
"""

import builtins
import dataclasses
import inspect
import sys
from dataclasses import dataclass, field
from typing import Annotated, Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Union, get_args, get_origin

from .exceptions import UnresolvableAnnotationError

ResolveFn = Callable[[Any, "Injection"], Any]


@dataclass(frozen=True, eq=False)
class Injection:
    """Declared intent to fill a parameter or attribute from a value store.

    Attributes:
        binding_key: Key looked up in the store when no ``resolve`` is given.
        resolve: Custom ``(store, injection) -> value`` function; takes
            precedence over ``binding_key``.
        metadata: Free-form data for custom resolve functions.
        binding: The binding that owns the object being built. Only set on
            the per-call copy handed to ``resolve``.
    """
    binding_key: Optional[str] = None
    resolve: Optional[ResolveFn] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    binding: Any = None

    @property
    def is_resolvable(self) -> bool:
        return bool(self.binding_key) or self.resolve is not None

    def with_binding(self, binding: Any) -> "Injection":
        """Return a copy of this injection owned by *binding*."""
        return dataclasses.replace(self, binding=binding)


def inject(binding_key: Optional[str] = None, *, resolve: Optional[ResolveFn] = None, **metadata: Any) -> Injection:
    """Create an :class:`Injection` for use inside ``Annotated[...]``.

    Args:
        binding_key: Key to look up in the store.
        resolve: Optional custom resolve function ``(store, injection)``.
        **metadata: Extra data exposed as ``injection.metadata``.
    """
    return Injection(binding_key=binding_key, resolve=resolve, metadata=dict(metadata))


class MetadataProvider(Protocol):
    """Source of injection descriptors for callables and classes."""

    def describe_injected_arguments(self, fn: Callable[..., Any]) -> Sequence[Optional[Injection]]: ...

    def describe_injected_properties(self, cls: type) -> Mapping[str, Injection]: ...


def _check_optional(ann: Any) -> Any:
    if get_origin(ann) is Union:
        args = [a for a in get_args(ann) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return ann


def _extract_injection(ann: Any) -> Optional[Injection]:
    ann = _check_optional(ann)
    if get_origin(ann) is Annotated:
        for meta in get_args(ann)[1:]:
            if isinstance(meta, Injection):
                return meta
    return None


class _LenientNamespace(dict):
    """Evaluation locals where names missing everywhere evaluate to ``Any``."""

    def __init__(self, localns: Mapping[str, Any], globalns: Mapping[str, Any]) -> None:
        super().__init__(localns)
        self._globalns = globalns

    def __missing__(self, key: str) -> Any:
        if key in self._globalns:
            return self._globalns[key]
        if hasattr(builtins, key):
            return getattr(builtins, key)
        return Any


def _evaluate(ann: Any, globalns: Dict[str, Any], localns: Mapping[str, Any], target: Any, name: str) -> Any:
    """Evaluate a string annotation on its own.

    Names that cannot be found (e.g. function-local types under
    ``from __future__ import annotations``) evaluate to ``Any`` so that the
    ``Annotated`` metadata is still read. An ``Annotated`` annotation that
    cannot be evaluated even then raises instead of being skipped.
    """
    if not isinstance(ann, str):
        return ann
    try:
        return eval(ann, globalns, dict(localns))
    except Exception:
        pass
    try:
        return eval(ann, globalns, _LenientNamespace(localns, globalns))
    except Exception as e:
        if "Annotated" in ann:
            raise UnresolvableAnnotationError(target, name, ann, e) from e
        return ann


def _module_globals(obj: Any) -> Dict[str, Any]:
    module = sys.modules.get(getattr(obj, "__module__", None) or "")
    return vars(module) if module is not None else {}


def _function_globals(fn: Callable[..., Any]) -> Dict[str, Any]:
    target = fn.__init__ if isinstance(fn, type) else fn
    globalns = getattr(inspect.unwrap(target), "__globals__", None)
    return globalns if globalns is not None else _module_globals(fn)


def _signature(fn: Callable[..., Any]) -> Optional[inspect.Signature]:
    try:
        return inspect.signature(fn)
    except NameError:
        # annotations are evaluated lazily from 3.14 on
        import annotationlib
        return inspect.signature(fn, annotation_format=annotationlib.Format.STRING)
    except (ValueError, TypeError):
        return None


def _own_annotations(klass: type) -> Dict[str, Any]:
    try:
        return dict(inspect.get_annotations(klass))
    except NameError:
        import annotationlib
        return dict(annotationlib.get_annotations(klass, format=annotationlib.Format.STRING))


_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


class AnnotationMetadataProvider:
    """Reads injections from ``Annotated`` parameter and class annotations."""

    def describe_injected_arguments(self, fn: Callable[..., Any]) -> List[Optional[Injection]]:
        sig = _signature(fn)
        if sig is None:
            return []

        globalns = _function_globals(fn)
        localns = dict(vars(fn)) if isinstance(fn, type) else {}
        slots: List[Optional[Injection]] = []
        declared = 0
        for name, param in sig.parameters.items():
            if param.kind not in _POSITIONAL:
                continue
            injection = _extract_injection(_evaluate(param.annotation, globalns, localns, fn, name))
            slots.append(injection)
            if injection is not None or param.default is inspect.Parameter.empty:
                declared = len(slots)
        # trailing parameters with defaults keep their defaults
        return slots[:declared]

    def describe_injected_properties(self, cls: type) -> Dict[str, Injection]:
        props: Dict[str, Injection] = {}
        for klass in reversed(inspect.getmro(cls)):
            if klass is object:
                continue
            globalns = _module_globals(klass)
            localns = dict(vars(klass))
            for name, ann in _own_annotations(klass).items():
                injection = _extract_injection(_evaluate(ann, globalns, localns, cls, name))
                if injection is not None:
                    props[name] = injection
                else:
                    # redeclared without injection in a subclass
                    props.pop(name, None)
        return props


DEFAULT_PROVIDER = AnnotationMetadataProvider()


def describe_injected_arguments(fn: Callable[..., Any]) -> List[Optional[Injection]]:
    """Describe the argument injections of *fn* with the default provider."""
    return DEFAULT_PROVIDER.describe_injected_arguments(fn)


def describe_injected_properties(cls: type) -> Dict[str, Injection]:
    """Describe the attribute injections of *cls* with the default provider."""
    return DEFAULT_PROVIDER.describe_injected_properties(cls)
