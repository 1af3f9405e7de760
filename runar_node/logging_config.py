"""Logging configuration: a default level plus per-component overrides."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Union

TRACE = 5
"""Numeric level used for trace output, below ``logging.DEBUG``."""

_OFF = logging.CRITICAL + 1


class Component(Enum):
    """Parts of the system that produce log output."""

    NODE = "Node"
    REGISTRY = "Registry"
    SERVICE = "Service"
    DATABASE = "Database"
    NETWORK = "Network"
    SYSTEM = "System"
    NETWORK_DISCOVERY = "NetworkDiscovery"


class ComponentKey(Enum):
    """Keys under which component log levels are configured.

    Custom components are keyed by their plain string name.
    """

    NODE = "Node"
    REGISTRY = "Registry"
    SERVICE = "Service"
    DATABASE = "Database"
    NETWORK = "Network"
    SYSTEM = "System"


Key = Union[ComponentKey, str]

_COMPONENT_KEYS = {
    Component.NODE: ComponentKey.NODE,
    Component.REGISTRY: ComponentKey.REGISTRY,
    Component.SERVICE: ComponentKey.SERVICE,
    Component.DATABASE: ComponentKey.DATABASE,
    Component.NETWORK: ComponentKey.NETWORK,
    Component.SYSTEM: ComponentKey.SYSTEM,
    Component.NETWORK_DISCOVERY: ComponentKey.NETWORK,
}

_TARGETS = {
    ComponentKey.NODE: "runar_node",
    ComponentKey.REGISTRY: "runar_node.services.registry",
    ComponentKey.SERVICE: "runar_node.services",
    ComponentKey.DATABASE: "runar_node.database",
    ComponentKey.NETWORK: "runar_node.network",
    ComponentKey.SYSTEM: "runar_node.system",
}


def component_key(component: Component | str) -> Key:
    """Return the configuration key for a component; strings are custom components."""
    if isinstance(component, Component):
        return _COMPONENT_KEYS[component]
    if isinstance(component, str):
        return component
    raise TypeError(f"not a component: {component!r}")


def target_for(key: Key) -> str:
    """Return the logger name that a configuration key controls."""
    if isinstance(key, ComponentKey):
        return _TARGETS[key]
    if isinstance(key, str):
        return key
    raise TypeError(f"not a component key: {key!r}")


class LogLevel(Enum):
    """Log levels that can be configured."""

    ERROR = "Error"
    WARN = "Warn"
    INFO = "Info"
    DEBUG = "Debug"
    TRACE = "Trace"
    OFF = "Off"

    def to_level(self) -> int:
        """Return the numeric level understood by the logging module."""
        return _NUMERIC_LEVELS[self]


_NUMERIC_LEVELS = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.TRACE: TRACE,
    LogLevel.OFF: _OFF,
}


@dataclass
class LoggingConfig:
    """Default log level together with component-specific levels."""

    default_level: LogLevel = LogLevel.INFO
    component_levels: dict[Key, LogLevel] = field(default_factory=dict)

    @classmethod
    def default_info(cls) -> LoggingConfig:
        """Configuration with Info level for all components."""
        return cls()

    def with_default_level(self, level: LogLevel) -> LoggingConfig:
        """Return a copy with a different default level."""
        return replace(self, default_level=level, component_levels=dict(self.component_levels))

    def with_component_level(self, component: Component | str, level: LogLevel) -> LoggingConfig:
        """Return a copy with a level set for one component."""
        levels = dict(self.component_levels)
        levels[component_key(component)] = level
        return replace(self, component_levels=levels)

    def apply(self) -> None:
        """Configure the logging module from this configuration alone.

        A handler is attached to the root logger only if it has none yet, so
        applying a configuration more than once never duplicates output.
        """
        logging.addLevelName(TRACE, "TRACE")
        root = logging.getLogger()
        root.setLevel(self.default_level.to_level())
        if not root.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
            root.addHandler(handler)
        for key, level in self.component_levels.items():
            logging.getLogger(target_for(key)).setLevel(level.to_level())