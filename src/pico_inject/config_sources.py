"""Tree-based configuration sources.

Provides the :class:`TreeSource` base class and its concrete implementations:
:class:`DictSource`, :class:`JsonTreeSource`, :class:`YamlTreeSource` and
:class:`EnvTreeSource`, plus the helpers that merge trees and flatten them
into dotted binding keys.
"""

import json
import os
from typing import Any, Dict, Mapping, Optional

from .exceptions import ConfigurationError


class TreeSource:
    """Base class for tree-structured configuration sources.

    Subclasses must implement :meth:`get_tree` to return a nested mapping.
    """

    def get_tree(self) -> Mapping[str, Any]:
        """Return the configuration tree as a nested mapping.

        Raises:
            NotImplementedError: Always (must be overridden by subclasses).
        """
        raise NotImplementedError


class DictSource(TreeSource):
    """Tree source backed by an in-memory dictionary.

    Example:
        >>> src = DictSource({"db": {"host": "localhost", "port": 5432}})
        >>> src.get_tree()["db"]["host"]
        'localhost'
    """

    def __init__(self, data: Mapping[str, Any]):
        self._data = data

    def get_tree(self) -> Mapping[str, Any]:
        return self._data


class JsonTreeSource(TreeSource):
    """Tree source that reads configuration from a JSON file.

    Raises:
        ConfigurationError: If the file cannot be loaded or parsed.
    """

    def __init__(self, path: str):
        self._path = path

    def get_tree(self) -> Mapping[str, Any]:
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except Exception as e:
            raise ConfigurationError(f"Failed to load JSON config: {e}") from e
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"JSON config root must be an object: {self._path}")
        return data


class YamlTreeSource(TreeSource):
    """Tree source that reads configuration from a YAML file.

    Requires ``PyYAML`` to be installed (``pip install pico-inject[yaml]``).

    Raises:
        ConfigurationError: If PyYAML is not installed, or if the file
            cannot be loaded or parsed.
    """

    def __init__(self, path: str):
        self._path = path

    def get_tree(self) -> Mapping[str, Any]:
        try:
            import yaml
        except ImportError:
            raise ConfigurationError("PyYAML not installed")
        try:
            with open(self._path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except Exception as e:
            raise ConfigurationError(f"Failed to load YAML config: {e}") from e
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"YAML config root must be a mapping: {self._path}")
        return data


class EnvTreeSource(TreeSource):
    """Tree source built from prefixed environment variables.

    ``APP_DB__HOST=db`` with ``prefix="APP_"`` becomes
    ``{"db": {"host": "db"}}``. Names are lower-cased.

    Args:
        prefix: Only variables starting with this prefix are read.
        separator: Splits a variable name into tree levels.
        environ: Mapping to read instead of :data:`os.environ`.
    """

    def __init__(self, prefix: str, separator: str = "__", environ: Optional[Mapping[str, str]] = None):
        if not prefix:
            raise ConfigurationError("EnvTreeSource requires a non-empty prefix")
        self.prefix = prefix
        self.separator = separator
        self._environ = environ

    def get_tree(self) -> Mapping[str, Any]:
        environ = os.environ if self._environ is None else self._environ
        tree: Dict[str, Any] = {}
        for name, value in environ.items():
            if not name.startswith(self.prefix):
                continue
            parts = [p.lower() for p in name[len(self.prefix):].split(self.separator) if p]
            if not parts:
                continue
            node = tree
            for part in parts[:-1]:
                child = node.setdefault(part, {})
                if not isinstance(child, dict):
                    raise ConfigurationError(f"Environment variable {name} conflicts with a scalar value")
                node = child
            if isinstance(node.get(parts[-1]), dict):
                raise ConfigurationError(f"Environment variable {name} conflicts with nested values")
            node[parts[-1]] = value
        return tree


def merge_trees(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep-merge *override* into a copy of *base*."""
    out: Dict[str, Any] = dict(base)
    for k, v in override.items():
        if isinstance(v, Mapping) and isinstance(out.get(k), Mapping):
            out[k] = merge_trees(out[k], v)
        else:
            out[k] = v
    return out


def flatten_tree(tree: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flatten *tree* into dotted keys, keeping an entry for every subtree."""
    flat: Dict[str, Any] = {}
    for k, v in tree.items():
        key = f"{prefix}.{k}" if prefix else str(k)
        flat[key] = v
        if isinstance(v, Mapping):
            flat.update(flatten_tree(v, key))
    return flat
