"""Exception types raised by the configuration store."""

from __future__ import annotations

from typing import Optional


class ConfigError(Exception):
    """Base class for every error raised by confstack."""


class FrozenError(ConfigError):
    """A mutation was attempted on a frozen configuration."""

    def __init__(self) -> None:
        super().__init__("configuration is frozen")


class PathParseError(ConfigError):
    """A key string does not follow the path expression grammar.

    Attributes:
        text: The full text that was being parsed.
        fragment: The offending part of ``text``.
        offset: Position of ``fragment`` inside ``text``.
    """

    def __init__(self, text: str, fragment: str, offset: int, reason: str = "invalid path"):
        self.text = text
        self.fragment = fragment
        self.offset = offset
        self.reason = reason
        super().__init__(f"{reason}: {fragment!r} at offset {offset} in {text!r}")


class NotFoundError(ConfigError):
    """No value is present at the requested key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"configuration property {key!r} not found")


class InvalidTypeError(ConfigError):
    """A value could not be converted into the requested shape.

    Attributes:
        origin: Where the value came from, if known.
        unexpected: Description of the value that was found.
        expected: Description of the requested shape.
        key: Path that addressed the value, when read through the store.
    """

    def __init__(
        self,
        origin: Optional[str],
        unexpected: str,
        expected: str,
        key: Optional[str] = None,
    ):
        self.origin = origin
        self.unexpected = unexpected
        self.expected = expected
        self.key = key
        super().__init__(self._describe())

    def _describe(self) -> str:
        message = f"invalid type: {self.unexpected}, expected {self.expected}"
        if self.key is not None:
            message += f" for key `{self.key}`"
        if self.origin is not None:
            message += f" in {self.origin}"
        return message

    def with_key(self, key: str) -> "InvalidTypeError":
        """Return a copy of this error that also names the key."""
        return InvalidTypeError(self.origin, self.unexpected, self.expected, key=key)


class SourceError(ConfigError):
    """A source failed to produce its contribution.

    The message is whatever diagnostic the source produced; ``source`` is the
    source description it is tagged with.
    """

    def __init__(self, source: Optional[str], message: str):
        self.source = source
        self.message = message
        super().__init__(message)
