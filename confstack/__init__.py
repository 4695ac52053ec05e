"""confstack - layered configuration store.

Accumulate typed values from defaults, prioritized sources and explicit
overrides into one tree, and read or write it through dotted/indexed paths.
"""

from .core.config import Config
from .core.environment import Environment
from .core.errors import (
    ConfigError,
    FrozenError,
    InvalidTypeError,
    NotFoundError,
    PathParseError,
    SourceError,
)
from .core.filters import Filter
from .core.path import Expression
from .core.source import RegisteredSource, Source
from .core.value import Value, ValueKind

__all__ = [
    "Config",
    "Environment",
    "ConfigError",
    "FrozenError",
    "InvalidTypeError",
    "NotFoundError",
    "PathParseError",
    "SourceError",
    "Filter",
    "Expression",
    "RegisteredSource",
    "Source",
    "Value",
    "ValueKind",
]
