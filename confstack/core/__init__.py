from .config import Config
from .environment import Environment
from .errors import (
    ConfigError,
    FrozenError,
    InvalidTypeError,
    NotFoundError,
    PathParseError,
    SourceError,
)
from .filters import Filter
from .path import Expression, Index, Key
from .source import RegisteredSource, Source
from .value import KeyedValue, Value, ValueKind

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
    "Index",
    "Key",
    "RegisteredSource",
    "Source",
    "KeyedValue",
    "Value",
    "ValueKind",
]
