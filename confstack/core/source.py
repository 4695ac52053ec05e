"""Source protocol and registration for configuration sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

from .filters import Filter


class Source(Protocol):
    """Protocol defining the interface for configuration sources.

    A source is asked for its whole contribution every time the store
    refreshes. It never writes to the store itself.
    """

    id: str
    name: str

    def collect(self) -> Mapping[str, Any]:
        """Return everything this source contributes.

        Keys are path expressions (``"server.port"``, ``"hosts[0]"``) or plain
        top-level names; values are native Python data or
        :class:`~confstack.Value` instances. Nested tables and arrays are
        flattened into leaf paths by the store.

        Raises:
            SourceError: If the source cannot be read or parsed.
        """
        ...


@dataclass
class RegisteredSource:
    """A source merged into a Config.

    Attributes:
        source: The source instance.
        filter: Optional filter to apply to the source's leaf paths.
    """

    source: Source
    filter: Optional[Filter] = None
