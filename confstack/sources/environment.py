"""Environment variables as a configuration source."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional

from ..core.errors import PathParseError
from ..core.path import Expression
from ..core.value import Value

logger = logging.getLogger(__name__)

ORIGIN = "the environment"


class EnvironmentSource:
    """Read configuration from environment variables.

    With ``prefix="APP"`` only variables named ``APP_...`` (any case) are
    used, with the prefix stripped. With ``separator="__"``, ``APP_DB__HOST``
    becomes the key ``db.host``. Keys are lower-cased; values are strings.
    Variables whose names do not form a valid path are ignored.
    """

    def __init__(
        self,
        prefix: Optional[str] = None,
        separator: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        name: Optional[str] = None,
    ):
        self.prefix = prefix
        self.separator = separator
        self._environ = environ
        self.name = name or (f"env:{prefix}" if prefix else "env")
        self.id = self.name

    def collect(self) -> Mapping[str, Any]:
        environ = os.environ if self._environ is None else self._environ
        pattern = f"{self.prefix}_".lower() if self.prefix else ""
        result: Dict[str, Value] = {}
        for name, raw in environ.items():
            key = name.lower()
            if pattern:
                if not key.startswith(pattern):
                    continue
                key = key[len(pattern):]
            if self.separator:
                key = key.replace(self.separator.lower(), ".")
            try:
                Expression.parse(key)
            except PathParseError as exc:
                logger.debug("ignoring environment variable %s: %s", name, exc)
                continue
            result[key] = Value(raw, origin=ORIGIN)
        return result
