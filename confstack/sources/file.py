"""File-based configuration source (YAML, JSON, TOML)."""

from __future__ import annotations

import datetime
import json
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union

import yaml

from ..core.errors import SourceError
from ..core.value import Value


class FileFormat(Enum):
    """Supported configuration file formats."""

    YAML = "yaml"
    JSON = "json"
    TOML = "toml"

    @property
    def extensions(self) -> Tuple[str, ...]:
        return _EXTENSIONS[self]

    @classmethod
    def from_path(cls, path: Path) -> Optional["FileFormat"]:
        """Guess the format from the file suffix, if it is a known one."""
        suffix = path.suffix.lower().lstrip(".")
        for fmt in cls:
            if suffix in fmt.extensions:
                return fmt
        return None

    def parse(self, text: str, origin: str) -> Any:
        """Parse ``text``, raising ``SourceError`` with a line number when known."""
        if self is FileFormat.YAML:
            try:
                return yaml.safe_load(text)
            except yaml.YAMLError as exc:
                mark = getattr(exc, "problem_mark", None)
                problem = getattr(exc, "problem", None) or str(exc)
                if mark is not None:
                    raise SourceError(origin, f"{problem} at line {mark.line + 1} in {origin}") from exc
                raise SourceError(origin, f"{problem} in {origin}") from exc
        if self is FileFormat.JSON:
            try:
                return json.loads(text)
            except json.JSONDecodeError as exc:
                raise SourceError(origin, f"{exc.msg} at line {exc.lineno} in {origin}") from exc
        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise SourceError(origin, f"{exc} in {origin}") from exc


_EXTENSIONS = {
    FileFormat.YAML: ("yaml", "yml"),
    FileFormat.JSON: ("json",),
    FileFormat.TOML: ("toml",),
}


class FileSource:
    """Configuration source backed by a single file.

    ``path`` may name the file exactly, or be a stem such as ``config/settings``
    which is searched for with each known extension (``settings.toml``,
    ``settings.yaml``, ...). Every value read carries the file path as its
    origin.
    """

    def __init__(
        self,
        path: Union[str, Path],
        format: Optional[FileFormat] = None,
        required: bool = True,
        name: Optional[str] = None,
    ):
        """Initialize FileSource.

        Args:
            path: Path or stem of the configuration file.
            format: Explicit format; guessed from the suffix when omitted.
            required: Whether a missing file is an error.
            name: Optional custom name for this source.
        """
        self.path = Path(path)
        self.format = format
        self.required = required
        self.name = name or f"file:{self.path.name}"
        self.id = str(self.path.resolve())

    def _resolve(self) -> Optional[Tuple[Path, FileFormat]]:
        if self.path.is_file():
            fmt = self.format or FileFormat.from_path(self.path)
            if fmt is None:
                raise SourceError(self.name, f"unsupported file format: {self.path}")
            return self.path, fmt
        formats = [self.format] if self.format else list(FileFormat)
        for fmt in formats:
            for ext in fmt.extensions:
                candidate = self.path.with_name(f"{self.path.name}.{ext}")
                if candidate.is_file():
                    return candidate, fmt
        return None

    def collect(self) -> Mapping[str, Any]:
        resolved = self._resolve()
        if resolved is None:
            if self.required:
                raise SourceError(self.name, f"configuration file {self.path} not found")
            return {}
        path, fmt = resolved
        origin = str(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceError(self.name, f"could not read {origin}: {exc}") from exc

        data = fmt.parse(text, origin)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise SourceError(
                self.name, f"expected a table at the root of {origin}, got {type(data).__name__}"
            )
        try:
            root = Value(_normalize(data), origin=origin)
        except TypeError as exc:
            raise SourceError(self.name, f"{exc} in {origin}") from exc
        return root.data


def _normalize(data: Any) -> Any:
    # Dates and times have no configuration equivalent; keep their ISO text.
    if isinstance(data, (datetime.date, datetime.time)):
        return data.isoformat()
    if isinstance(data, dict):
        return {str(k): _normalize(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_normalize(v) for v in data]
    return data
