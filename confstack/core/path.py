"""Path expressions: parse ``a.b[0].c`` style keys and walk value trees."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from .errors import PathParseError
from .value import Value, ValueKind

_DIGITS = re.compile(r"[0-9]+")
_RESERVED = ".[]"


@dataclass(frozen=True)
class Key:
    """Select a field of a table by name."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Index:
    """Select an element of an array by position."""

    position: int

    def __str__(self) -> str:
        return f"[{self.position}]"


Step = Union[Key, Index]


@dataclass(frozen=True)
class Expression:
    """A parsed, reusable accessor into a value tree.

    Expressions compare and hash by their steps, so two keys that parse to the
    same steps address the same location no matter how they were written.
    """

    steps: Tuple[Step, ...]

    @classmethod
    def parse(cls, text: str) -> "Expression":
        """Parse ``text`` into an expression.

        Key segments are runs of any characters other than ``.``, ``[`` and
        ``]``; ``.`` separates key segments and ``[N]`` indexes into whatever
        the preceding steps resolved to. Case is preserved; callers that want
        case-insensitive keys lower-case ``text`` first.

        Raises:
            PathParseError: If ``text`` does not follow the grammar.
        """
        if not text:
            raise PathParseError(text, text, 0, "empty path")

        steps = []
        pos = 0
        end = len(text)
        while True:
            start = pos
            while pos < end and text[pos] not in _RESERVED:
                pos += 1
            if pos == start:
                fragment = text[pos:pos + 1] or text[pos - 1:]
                raise PathParseError(text, fragment, pos, "expected a key")
            steps.append(Key(text[start:pos]))

            while pos < end and text[pos] == "[":
                close = text.find("]", pos)
                if close == -1:
                    raise PathParseError(text, text[pos:], pos, "unbalanced bracket")
                digits = text[pos + 1:close]
                if not _DIGITS.fullmatch(digits):
                    raise PathParseError(text, text[pos:close + 1], pos, "invalid index")
                steps.append(Index(int(digits)))
                pos = close + 1

            if pos == end:
                break
            if text[pos] != ".":
                raise PathParseError(text, text[pos:], pos, "unexpected character")
            pos += 1
            if pos == end:
                raise PathParseError(text, ".", pos - 1, "trailing separator")

        return cls(tuple(steps))

    def child(self, name: str) -> "Expression":
        return Expression(self.steps + (Key(name),))

    def subscript(self, position: int) -> "Expression":
        return Expression(self.steps + (Index(position),))

    def get(self, root: Value) -> Optional[Value]:
        """Find the value this expression addresses in ``root``.

        Returns ``None`` on the first missing key, out-of-range index or shape
        mismatch. The returned value is part of ``root``, not a copy.
        """
        node = root
        for step in self.steps:
            if isinstance(step, Key):
                if node.kind is not ValueKind.TABLE:
                    return None
                found = node.data.get(step.name)
                if found is None:
                    return None
                node = found
            else:
                if node.kind is not ValueKind.ARRAY or step.position >= len(node.data):
                    return None
                node = node.data[step.position]
        return node

    def set(self, root: Value, value: Any) -> None:
        """Assign ``value`` at this location in ``root``, creating the way there.

        Missing tables are created, arrays are padded with nil values up to the
        index, and any node of the wrong shape is replaced. A copy of ``value``
        is stored.
        """
        assigned = value.clone() if isinstance(value, Value) else Value(value)
        node = root
        last = len(self.steps) - 1
        for i, step in enumerate(self.steps):
            if isinstance(step, Key):
                if node.kind is not ValueKind.TABLE:
                    node._assign(Value({}))
                table = node.data
                if i == last:
                    table[step.name] = assigned
                    return
                found = table.get(step.name)
                if found is None:
                    found = table[step.name] = Value({})
                node = found
            else:
                if node.kind is not ValueKind.ARRAY:
                    node._assign(Value([]))
                array = node.data
                missing = step.position + 1 - len(array)
                if missing > 0:
                    array.extend(Value() for _ in range(missing))
                if i == last:
                    array[step.position] = assigned
                    return
                node = array[step.position]

    def __str__(self) -> str:
        parts = []
        for step in self.steps:
            if isinstance(step, Key) and parts:
                parts.append(".")
            parts.append(str(step))
        return "".join(parts)
