from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import redis

from ..core.errors import SourceError
from ..core.value import Value


class RedisKeyValueSource:
    """Read-only configuration source over a Redis keyspace.

    Every string key under ``prefix`` contributes one value. The prefix is
    stripped and ``separator`` is mapped to ``.``, so with ``prefix="app:"``
    the key ``app:db:host`` becomes ``db.host``.
    """

    def __init__(
        self,
        uri: str,
        name: Optional[str] = None,
        prefix: str = "",
        separator: Optional[str] = ":",
        client: Optional[redis.Redis] = None,
    ):
        self.uri = uri
        self.client = client or redis.Redis.from_url(uri, decode_responses=True)
        self.name = name or f"redis:{uri}"
        self.id = f"{uri}#{prefix}" if prefix else uri
        self.prefix = prefix
        self.separator = separator

    def _prefixed(self, key: str) -> str:
        return f"{self.prefix}{key}" if self.prefix else key

    def _unprefixed(self, key: str) -> str:
        if self.prefix and key.startswith(self.prefix):
            key = key[len(self.prefix):]
        if self.separator:
            key = key.replace(self.separator, ".")
        return key

    def collect(self) -> Mapping[str, Any]:
        try:
            keys: List[str] = sorted(self.client.scan_iter(match=self._prefixed("*")))
            values = self.client.mget(keys) if keys else []
        except redis.RedisError as exc:
            raise SourceError(self.name, f"failed to read {self.uri}: {exc}") from exc
        kv: Dict[str, Value] = {}
        for k, v in zip(keys, values):
            # non-string keys and keys deleted since the scan come back as None
            if v is None:
                continue
            kv[self._unprefixed(k)] = Value(v, origin=self.uri)
        return kv
