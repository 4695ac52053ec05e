"""Dynamically typed configuration values and their coercion rules."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, NoReturn, Optional, TypeVar

from .errors import InvalidTypeError

if TYPE_CHECKING:
    from .config import Config

T = TypeVar("T")

INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1

_TRUE_WORDS = frozenset({"1", "true", "on", "yes"})
_FALSE_WORDS = frozenset({"0", "false", "off", "no"})
_INT_LITERAL = re.compile(r"[+-]?[0-9]+")


class ValueKind(Enum):
    """Variant tag of a :class:`Value`."""

    NIL = "nil"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    ARRAY = "array"
    TABLE = "table"


class Value:
    """A configuration datum: a scalar, an array or a table of values.

    A value owns its children outright, so copying one (``clone``) copies the
    whole subtree. ``origin`` describes where the value was read from (a file
    path, ``"the environment"``, a remote URI). It only shows up in error
    messages and plays no part in equality.

    Args:
        data: Native Python data (``None``, ``bool``, ``int``, ``float``,
            ``str``, a list/tuple, a mapping) or another ``Value``.
        origin: Optional provenance description, propagated to children
            built from ``data``.

    Raises:
        TypeError: If ``data`` (or anything nested in it) has no
            configuration equivalent.
    """

    __slots__ = ("kind", "_data", "origin")

    def __init__(self, data: Any = None, origin: Optional[str] = None):
        if isinstance(data, Value):
            copied = data.clone()
            self.kind = copied.kind
            self._data = copied._data
            self.origin = origin if origin is not None else copied.origin
            return
        self.kind, self._data = _convert(data, origin)
        self.origin = origin

    @property
    def data(self) -> Any:
        """The payload: a scalar, a ``list`` of values or a ``dict`` of values."""
        return self._data

    def is_nil(self) -> bool:
        return self.kind is ValueKind.NIL

    def clone(self) -> "Value":
        """Deep-copy this value and its subtree."""
        copied = Value.__new__(Value)
        copied.kind = self.kind
        copied.origin = self.origin
        if self.kind is ValueKind.ARRAY:
            copied._data = [item.clone() for item in self._data]
        elif self.kind is ValueKind.TABLE:
            copied._data = {k: v.clone() for k, v in self._data.items()}
        else:
            copied._data = self._data
        return copied

    def _assign(self, other: "Value") -> None:
        # Replace this node in place; ``other`` must not be used afterwards.
        self.kind = other.kind
        self._data = other._data
        self.origin = other.origin

    def to_native(self) -> Any:
        """Convert this value back into plain Python data."""
        if self.kind is ValueKind.ARRAY:
            return [item.to_native() for item in self._data]
        if self.kind is ValueKind.TABLE:
            return {k: v.to_native() for k, v in self._data.items()}
        return self._data

    # ---- coercion ----
    def into_bool(self) -> bool:
        kind = self.kind
        if kind is ValueKind.BOOLEAN:
            return self._data
        if kind is ValueKind.INTEGER:
            return self._data != 0
        if kind is ValueKind.FLOAT:
            return self._data != 0.0
        if kind is ValueKind.STRING:
            word = self._data.lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
        return self._fail("a boolean")

    def into_int(self) -> int:
        kind = self.kind
        if kind is ValueKind.INTEGER:
            return self._data
        if kind is ValueKind.BOOLEAN:
            return 1 if self._data else 0
        if kind is ValueKind.FLOAT:
            if math.isfinite(self._data):
                rounded = _round_half_away(self._data)
                if INT_MIN <= rounded <= INT_MAX:
                    return rounded
        elif kind is ValueKind.STRING:
            word = self._data.lower()
            if word in ("true", "on", "yes"):
                return 1
            if word in ("false", "off", "no"):
                return 0
            if _INT_LITERAL.fullmatch(self._data):
                parsed = int(self._data)
                if INT_MIN <= parsed <= INT_MAX:
                    return parsed
        return self._fail("an integer")

    def into_float(self) -> float:
        kind = self.kind
        if kind is ValueKind.FLOAT:
            return self._data
        if kind is ValueKind.INTEGER:
            return float(self._data)
        if kind is ValueKind.BOOLEAN:
            return 1.0 if self._data else 0.0
        if kind is ValueKind.STRING:
            text = self._data
            word = text.lower()
            if word in ("true", "on", "yes"):
                return 1.0
            if word in ("false", "off", "no"):
                return 0.0
            if text == text.strip() and "_" not in text:
                try:
                    return float(text)
                except ValueError:
                    pass
        return self._fail("a floating point")

    def into_str(self) -> str:
        if self.kind is ValueKind.STRING:
            return self._data
        if self.kind in (ValueKind.BOOLEAN, ValueKind.INTEGER, ValueKind.FLOAT):
            return self.as_string()
        return self._fail("a string")

    def into_array(self) -> List["Value"]:
        if self.kind is ValueKind.ARRAY:
            return [item.clone() for item in self._data]
        return self._fail("an array")

    def into_tree(self) -> "Config":
        """Wrap a table value as a standalone :class:`~confstack.Config`."""
        if self.kind is ValueKind.TABLE:
            from .config import Config

            return Config.from_table(self._data)
        return self._fail("a map")

    def _fail(self, expected: str) -> NoReturn:
        raise InvalidTypeError(self.origin, self.describe(), expected)

    def describe(self) -> str:
        """Describe the shape and content of this value for error messages."""
        kind = self.kind
        if kind is ValueKind.NIL:
            return "unit value"
        if kind is ValueKind.BOOLEAN:
            return f"boolean `{self.as_string()}`"
        if kind is ValueKind.INTEGER:
            return f"integer `{self._data}`"
        if kind is ValueKind.FLOAT:
            return f"floating point `{self.as_string()}`"
        if kind is ValueKind.STRING:
            return f'string "{self._data}"'
        if kind is ValueKind.ARRAY:
            return "sequence"
        return "map"

    def as_string(self) -> str:
        """Render the value for display. Lossy; not a serialization format."""
        kind = self.kind
        if kind is ValueKind.NIL:
            return ""
        if kind is ValueKind.BOOLEAN:
            return "true" if self._data else "false"
        if kind is ValueKind.INTEGER:
            return str(self._data)
        if kind is ValueKind.FLOAT:
            return repr(self._data)
        if kind is ValueKind.STRING:
            return self._data
        if kind is ValueKind.TABLE:
            entries = [f"{k}: {self._data[k].as_string()}" for k in sorted(self._data)]
            return "{ " + ", ".join(entries) + " }"
        return "[ " + ", ".join(item.as_string() for item in self._data) + " ]"

    def __str__(self) -> str:
        return self.as_string()

    def __repr__(self) -> str:
        return f"Value({self.to_native()!r}, origin={self.origin!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self.kind is other.kind and self._data == other._data

    __hash__ = None  # type: ignore[assignment]


class KeyedValue:
    """A value paired with the key that addressed it.

    Every conversion failure is re-raised with the key attached.
    """

    def __init__(self, value: Value, key: str):
        self.value = value
        self.key = key

    def _convert(self, convert: Callable[[Value], T]) -> T:
        try:
            return convert(self.value)
        except InvalidTypeError as exc:
            raise exc.with_key(self.key) from exc

    def into_bool(self) -> bool:
        return self._convert(Value.into_bool)

    def into_int(self) -> int:
        return self._convert(Value.into_int)

    def into_float(self) -> float:
        return self._convert(Value.into_float)

    def into_str(self) -> str:
        return self._convert(Value.into_str)

    def into_array(self) -> List[Value]:
        return self._convert(Value.into_array)

    def into_tree(self) -> "Config":
        return self._convert(Value.into_tree)


def _convert(data: Any, origin: Optional[str]) -> tuple:
    if data is None:
        return ValueKind.NIL, None
    if isinstance(data, bool):
        return ValueKind.BOOLEAN, data
    if isinstance(data, int):
        if not INT_MIN <= data <= INT_MAX:
            raise TypeError(f"integer {data} does not fit in 64 bits")
        return ValueKind.INTEGER, int(data)
    if isinstance(data, float):
        return ValueKind.FLOAT, data
    if isinstance(data, str):
        return ValueKind.STRING, data
    if isinstance(data, Mapping):
        table: Dict[str, Value] = {
            str(k): _child(v, origin) for k, v in data.items()
        }
        return ValueKind.TABLE, table
    if isinstance(data, (list, tuple)):
        return ValueKind.ARRAY, [_child(v, origin) for v in data]
    raise TypeError(f"unsupported configuration value of type {type(data).__name__}")


def _child(data: Any, origin: Optional[str]) -> Value:
    if isinstance(data, Value):
        return data.clone()
    return Value(data, origin)


def _round_half_away(number: float) -> int:
    whole = math.floor(number)
    fraction = number - whole
    if fraction > 0.5 or (fraction == 0.5 and number > 0):
        whole += 1
    return whole
