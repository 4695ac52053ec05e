"""Key filtering and leaf-path flattening for source contributions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Pattern, Tuple

from .path import Expression
from .value import Value, ValueKind


@dataclass(frozen=True)
class Filter:
    """Filter for including configuration keys from a source.

    Attributes:
        include_regex: Pattern searched against each flattened leaf path;
            leaves that do not match are skipped.
    """

    include_regex: Optional[Pattern[str]] = None

    @staticmethod
    def from_dict(d: Optional[Dict[str, Any]]) -> Optional["Filter"]:
        """Create a Filter from a dictionary specification.

        Args:
            d: Dictionary with filter specification.

        Returns:
            Filter instance or None if d is None/empty.
        """
        if not d:
            return None
        regex = d.get("include_regex")
        compiled: Optional[Pattern[str]] = (
            re.compile(regex) if isinstance(regex, str) else None
        )
        return Filter(include_regex=compiled)


def should_include_key(flat_key: str, flt: Optional[Filter]) -> bool:
    """Check if a key should be included based on filter.

    Args:
        flat_key: Flattened configuration key.
        flt: Filter to apply (None means include all).

    Returns:
        True if key should be included, False otherwise.
    """
    if flt is None:
        return True
    if flt.include_regex and not flt.include_regex.search(flat_key):
        return False
    return True


def iter_hierarchical(
    value: Value,
    parent: Expression,
) -> Iterator[Tuple[Expression, Value]]:
    """Flatten a value into fully qualified leaf paths.

    A table under ``parent`` yields its children at ``parent.key`` and an
    array yields its elements at ``parent[i]``, recursively. Scalars and
    empty tables or arrays are leaves. Table keys are lower-cased.

    Args:
        value: Value to flatten.
        parent: Path of ``value`` itself.

    Yields:
        Tuples of (leaf_path, leaf_value).
    """
    if value.kind is ValueKind.TABLE and value.data:
        for key, child in value.data.items():
            yield from iter_hierarchical(child, parent.child(key.lower()))
    elif value.kind is ValueKind.ARRAY and value.data:
        for position, child in enumerate(value.data):
            yield from iter_hierarchical(child, parent.subscript(position))
    else:
        yield parent, value
