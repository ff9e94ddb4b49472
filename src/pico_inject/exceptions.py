"""Exception hierarchy for pico-inject.

All runtime-specific exceptions inherit from :class:`PicoInjectError`, making
it easy to catch any pico-inject error with a single ``except PicoInjectError``
clause.
"""

from typing import Any


def _name_of(obj: Any) -> str:
    return getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None) or str(obj)


class PicoInjectError(Exception):
    """Base exception for all pico-inject errors."""

    pass


class MissingInjectionMetadataError(PicoInjectError):
    """Raised when a declared parameter or attribute has no usable injection.

    This is a programmer error: the parameter was not annotated with
    :func:`~pico_inject.injection.inject`, or the injection names neither a
    binding key nor a resolve function.

    Attributes:
        target: The function or class being resolved.
        position: The 1-based argument position, for constructor/function
            arguments.
        property_name: The attribute name, for property injections.
    """

    def __init__(self, target: Any, *, position: int | None = None, property_name: str | None = None):
        target_name = _name_of(target)
        if property_name is not None:
            msg = (
                f"Cannot resolve injected property for class {target_name}: "
                f"The property {property_name} was not decorated for dependency injection."
            )
        else:
            msg = (
                f"Cannot resolve injected arguments for function {target_name}: "
                f"The argument {position} was not decorated for dependency injection."
            )
        super().__init__(msg)
        self.target = target
        self.position = position
        self.property_name = property_name


class BindingNotFoundError(PicoInjectError):
    """Raised when a context has no binding for the requested key.

    Attributes:
        key: The binding key that was not found.
        context_name: Name of the context that was searched.
    """

    def __init__(self, key: str, context_name: str | None = None):
        where = f" in context '{context_name}'" if context_name else ""
        super().__init__(f"The key '{key}' is not bound to any value{where}")
        self.key = key
        self.context_name = context_name


class InvalidBindingError(PicoInjectError):
    """Raised for malformed bindings (empty key, binding without a value).

    Attributes:
        key: The offending binding key.
        reason: Human-readable description of the problem.
    """

    def __init__(self, key: Any, reason: str):
        super().__init__(f"Invalid binding '{key}': {reason}")
        self.key = key
        self.reason = reason


class AsyncResolutionError(PicoInjectError):
    """Raised when ``get_sync()`` encounters a deferred value.

    The binding depends on an asynchronous source; use
    ``await context.get(key)`` instead.

    Attributes:
        key: The binding key that produced a deferred value.
    """

    def __init__(self, key: str):
        super().__init__(
            f"Cannot get '{key}' synchronously: the value is asynchronous. Use 'await context.get()' instead."
        )
        self.key = key


class ConfigurationError(PicoInjectError):
    """Raised for configuration problems (unreadable sources, bad trees)."""

    def __init__(self, msg: str):
        super().__init__(msg)


class UnresolvableAnnotationError(PicoInjectError):
    """Raised when an ``Annotated`` annotation cannot be evaluated.

    The annotation may carry an injection, so it is never silently skipped.

    Attributes:
        target: The function or class owning the annotation.
        name: The parameter or attribute name.
        annotation: The annotation source text.
        cause: The error raised while evaluating it.
    """

    def __init__(self, target: Any, name: str, annotation: str, cause: Exception):
        super().__init__(
            f"Cannot evaluate the annotation of {name} on {_name_of(target)}: {annotation!r} "
            f"({cause.__class__.__name__}: {cause})"
        )
        self.target = target
        self.name = name
        self.annotation = annotation
        self.cause = cause
