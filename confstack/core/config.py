from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from .errors import FrozenError, InvalidTypeError, NotFoundError
from .filters import Filter
from .merge import collect_sources, flatten_contribution
from .path import Expression
from .source import RegisteredSource, Source
from .value import KeyedValue, Value, ValueKind

logger = logging.getLogger(__name__)

_COERCIONS = {
    bool: KeyedValue.into_bool,
    int: KeyedValue.into_int,
    float: KeyedValue.into_float,
    str: KeyedValue.into_str,
    list: KeyedValue.into_array,
}


@dataclass(eq=False)
class Config:
    """A prioritized configuration repository.

    Values come from three layers applied in a fixed order: defaults, then
    every merged source in the order it was merged, then explicit overrides.
    Every mutation rebuilds ``cache`` from scratch; reads only ever look at
    ``cache``. A failed rebuild leaves the previous ``cache`` and the layers
    untouched.
    """

    _cache: Value = field(default_factory=lambda: Value({}))
    _defaults: Dict[Expression, Value] = field(default_factory=dict)
    _overrides: Dict[Expression, Value] = field(default_factory=dict)
    _sources: List[RegisteredSource] = field(default_factory=list)
    _frozen: bool = False

    @classmethod
    def from_table(cls, table: Mapping[str, Any]) -> "Config":
        """Build a store directly from a nested mapping.

        Every leaf of ``table`` becomes an override. The cache is the table
        itself, with its keys as given, until the next refresh.
        """
        root = Value(table)
        if root.kind is not ValueKind.TABLE:
            raise TypeError(f"expected a mapping, got {root.describe()}")
        config = cls()
        config._overrides = dict(flatten_contribution(root.data))
        config._cache = root
        return config

    @classmethod
    def from_layers(
        cls,
        defaults: Optional[Mapping[str, Any]] = None,
        sources: Iterable[RegisteredSource] = (),
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "Config":
        """Build a store from all three layers with a single refresh.

        Raises:
            PathParseError: If a default or override key is not a valid path.
            SourceError: If any source fails.
        """
        config = cls()
        for key, value in (defaults or {}).items():
            _put(config._defaults, _parse_key(key), _to_value(value))
        config._sources = list(sources)
        for key, value in (overrides or {}).items():
            _put(config._overrides, _parse_key(key), _to_value(value))
        return config.refresh()

    @property
    def cache(self) -> Value:
        """A copy of the merged tree."""
        return self._cache.clone()

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def sources(self) -> Tuple[RegisteredSource, ...]:
        return tuple(self._sources)

    def merge(self, source: Source, *, filter: Optional[Filter] = None) -> "Config":
        """Merge in a configuration source with the highest source priority."""
        self._ensure_mutable()
        with self._rollback():
            self._sources.append(RegisteredSource(source=source, filter=filter))
            return self.refresh()

    def remove_source(self, source_id: str) -> "Config":
        self._ensure_mutable()
        with self._rollback():
            self._sources = [rs for rs in self._sources if rs.source.id != source_id]
            return self.refresh()

    def set_default(self, key: str, value: Any) -> "Config":
        self._ensure_mutable()
        expr, val = _parse_key(key), _to_value(value)
        with self._rollback():
            _put(self._defaults, expr, val)
            return self.refresh()

    def set(self, key: str, value: Any) -> "Config":
        self._ensure_mutable()
        expr, val = _parse_key(key), _to_value(value)
        with self._rollback():
            _put(self._overrides, expr, val)
            return self.refresh()

    def unset_default(self, key: str) -> "Config":
        self._ensure_mutable()
        expr = _parse_key(key)
        with self._rollback():
            self._defaults.pop(expr, None)
            return self.refresh()

    def unset(self, key: str) -> "Config":
        self._ensure_mutable()
        expr = _parse_key(key)
        with self._rollback():
            self._overrides.pop(expr, None)
            return self.refresh()

    def refresh(self) -> "Config":
        """Rebuild the cache from defaults, sources and overrides.

        Raises:
            FrozenError: If the configuration is frozen.
            SourceError: If any source fails; the cache is not replaced.
            PathParseError: If a source contributes an unparseable key.
        """
        self._ensure_mutable()
        cache = Value({})

        for expr, value in self._defaults.items():
            expr.set(cache, value)

        collect_sources(self._sources, cache)

        for expr, value in self._overrides.items():
            expr.set(cache, value)

        self._cache = cache
        logger.debug(
            "refreshed configuration: %d defaults, %d sources, %d overrides",
            len(self._defaults),
            len(self._sources),
            len(self._overrides),
        )
        return self

    def freeze(self) -> "Config":
        """Make the configuration permanently read-only.

        The layers are dropped; reads keep working against the last cache.
        """
        self._frozen = True
        self._defaults = {}
        self._overrides = {}
        self._sources = []
        return self

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise FrozenError()

    @contextmanager
    def _rollback(self) -> Iterator[None]:
        saved = (dict(self._defaults), dict(self._overrides), list(self._sources))
        try:
            yield
        except BaseException:
            self._defaults, self._overrides, self._sources = saved
            raise

    # ---- reads ----
    def get(self, key: str, type_: Optional[Any] = None) -> Any:
        """Read the value at ``key``.

        Without ``type_`` a copy of the raw :class:`Value` is returned.
        ``bool``, ``int``, ``float``, ``str`` and ``list`` use the built-in
        coercions, ``Config`` returns a subtree, and any other type is
        validated with pydantic.

        Raises:
            PathParseError: If ``key`` is not a valid path.
            NotFoundError: If nothing is stored at ``key``.
            InvalidTypeError: If the value cannot be converted.
        """
        value = self._lookup(key)
        if type_ is None:
            return value
        keyed = KeyedValue(value, key)
        convert = _COERCIONS.get(type_)
        if convert is not None:
            return convert(keyed)
        if type_ is Config:
            return keyed.into_tree()
        try:
            return TypeAdapter(type_).validate_python(value.to_native())
        except ValidationError as exc:
            raise InvalidTypeError(
                value.origin, value.describe(), _type_name(type_), key=key
            ) from exc

    def get_or(self, key: str, default: Any, type_: Optional[Any] = None) -> Any:
        """Like :meth:`get`, but return ``default`` when ``key`` is absent."""
        try:
            return self.get(key, type_)
        except NotFoundError:
            return default

    def get_str(self, key: str) -> str:
        return KeyedValue(self._lookup(key), key).into_str()

    def get_int(self, key: str) -> int:
        return KeyedValue(self._lookup(key), key).into_int()

    def get_float(self, key: str) -> float:
        return KeyedValue(self._lookup(key), key).into_float()

    def get_bool(self, key: str) -> bool:
        return KeyedValue(self._lookup(key), key).into_bool()

    def get_array(self, key: str) -> List[Value]:
        return KeyedValue(self._lookup(key), key).into_array()

    def get_tree(self, key: str) -> "Config":
        return KeyedValue(self._lookup(key), key).into_tree()

    def deserialize(self, type_: Any) -> Any:
        """Validate the whole configuration into ``type_`` with pydantic."""
        try:
            return TypeAdapter(type_).validate_python(self._cache.to_native())
        except ValidationError as exc:
            raise InvalidTypeError(
                self._cache.origin, self._cache.describe(), _type_name(type_)
            ) from exc

    def to_dict(self) -> Dict[str, Any]:
        return self._cache.to_native()

    def _lookup(self, key: str) -> Value:
        found = Expression.parse(key.lower()).get(self._cache)
        if found is None:
            raise NotFoundError(key)
        return found.clone()

    def __str__(self) -> str:
        return self._cache.as_string()


def _parse_key(key: str) -> Expression:
    return Expression.parse(key.lower())


def _to_value(value: Any) -> Value:
    return value.clone() if isinstance(value, Value) else Value(value)


def _put(layer: Dict[Expression, Value], expr: Expression, value: Value) -> None:
    # re-inserting moves the entry last, so the latest write is applied last
    layer.pop(expr, None)
    layer[expr] = value


def _type_name(type_: Any) -> str:
    return getattr(type_, "__name__", repr(type_))
