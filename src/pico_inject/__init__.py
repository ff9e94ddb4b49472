# pico_inject/__init__.py
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pico-inject")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "uninstalled"

from .injection import (
    Injection, inject, MetadataProvider, AnnotationMetadataProvider,
    describe_injected_arguments, describe_injected_properties,
)
from .resolver import (
    ValueStore, resolve, resolve_injected_arguments,
    resolve_injected_properties, instantiate_class,
)
from .values import ValueOrDeferred, is_deferred, realize, then
from .context import Binding, Context
from .config_sources import DictSource, EnvTreeSource, JsonTreeSource, TreeSource, YamlTreeSource
from .exceptions import (
    PicoInjectError, MissingInjectionMetadataError, BindingNotFoundError,
    InvalidBindingError, AsyncResolutionError, ConfigurationError,
    UnresolvableAnnotationError,
)

__all__ = [
    "__version__",
    "Injection",
    "inject",
    "MetadataProvider",
    "AnnotationMetadataProvider",
    "describe_injected_arguments",
    "describe_injected_properties",
    "ValueStore",
    "resolve",
    "resolve_injected_arguments",
    "resolve_injected_properties",
    "instantiate_class",
    "ValueOrDeferred",
    "is_deferred",
    "realize",
    "then",
    "Binding",
    "Context",
    "TreeSource",
    "DictSource",
    "JsonTreeSource",
    "YamlTreeSource",
    "EnvTreeSource",
    "PicoInjectError",
    "MissingInjectionMetadataError",
    "BindingNotFoundError",
    "InvalidBindingError",
    "AsyncResolutionError",
    "ConfigurationError",
    "UnresolvableAnnotationError",
]
