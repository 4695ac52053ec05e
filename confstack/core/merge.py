"""Merging logic for multiple configuration sources."""

from __future__ import annotations

import logging
from typing import Any, Iterator, List, Mapping, Tuple

from .errors import SourceError
from .filters import iter_hierarchical, should_include_key
from .path import Expression
from .source import RegisteredSource
from .value import Value

logger = logging.getLogger(__name__)


def flatten_contribution(payload: Mapping[str, Any]) -> Iterator[Tuple[Expression, Value]]:
    """Turn a source payload into leaf (path, value) pairs.

    Each top-level key is lower-cased and parsed as a path expression; nested
    tables and arrays below it are flattened recursively.

    Raises:
        PathParseError: If a top-level key is not a valid path.
    """
    for key, raw in payload.items():
        root = Expression.parse(str(key).lower())
        value = raw if isinstance(raw, Value) else Value(raw)
        yield from iter_hierarchical(value, root)


def collect_sources(
    registered_sources: List[RegisteredSource],
    cache: Value,
) -> None:
    """Apply every source, in order, onto ``cache``.

    Later sources override earlier ones for the same leaf paths.

    Args:
        registered_sources: Sources to apply, lowest priority first.
        cache: Tree being rebuilt; mutated in place.

    Raises:
        SourceError: The first failure reported by a source. ``cache`` is
            left partially built and must be discarded by the caller.
    """
    for rs in registered_sources:
        try:
            payload = rs.source.collect()
        except SourceError as exc:
            if exc.source is None:
                exc.source = rs.source.name
            logger.debug("source %s failed: %s", rs.source.id, exc)
            raise
        try:
            leaves = list(flatten_contribution(payload))
        except TypeError as exc:
            raise SourceError(rs.source.name, str(exc)) from exc
        applied = 0
        for expr, value in leaves:
            if not should_include_key(str(expr), rs.filter):
                continue
            # last source wins
            expr.set(cache, value)
            applied += 1
        logger.debug("collected %d values from source %s", applied, rs.source.id)
