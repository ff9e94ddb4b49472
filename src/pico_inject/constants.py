"""Constants used throughout the pico-inject runtime.

This module defines the framework logger and the names of the binding kinds
understood by :class:`~pico_inject.context.Binding`.
"""

import logging

LOGGER_NAME: str = "pico_inject"
"""Default logger name for the pico-inject runtime."""

LOGGER: logging.Logger = logging.getLogger(LOGGER_NAME)
"""Pre-configured logger instance for pico-inject internal diagnostics."""

BINDING_CONSTANT: str = "constant"
"""Binding kind: a fixed value set with ``to()``."""

BINDING_DYNAMIC: str = "dynamic"
"""Binding kind: a zero-argument callable evaluated on every lookup."""

BINDING_CLASS: str = "class"
"""Binding kind: a class instantiated with injected dependencies."""

BINDING_PROVIDER: str = "provider"
"""Binding kind: a provider class whose ``value()`` produces the bound value."""

DEFAULT_CONFIG_PREFIX: str = "config"
"""Key prefix under which configuration trees are bound."""
