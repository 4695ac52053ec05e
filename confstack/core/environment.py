"""Environment management for configuration sources."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import parse_qs, urlsplit

from .config import Config
from .config_loader import ConfigLoader
from .errors import ConfigError
from .filters import Filter
from .source import RegisteredSource, Source

logger = logging.getLogger(__name__)


class Environment:
    """Manage configuration sources for a specific environment.

    An Environment is a named collection of defaults, sources and overrides,
    read from the environment's section of ``confstack.yaml`` (when present)
    and from explicit registrations, that is merged into a :class:`Config`.
    """

    def __init__(
        self,
        name: str,
        sources: Optional[List[Union[str, Path]]] = None,
        config_path: Optional[Union[str, Path]] = None,
    ):
        """Initialize an Environment.

        Args:
            name: Name of the environment (e.g., "production", "development").
            sources: Optional list of sources to register after the ones
                declared in confstack.yaml.
            config_path: Optional path to confstack.yaml. If not provided,
                searches the current directory and its parents.
        """
        self.name = name
        self._registered: List[RegisteredSource] = []
        self._defaults: Dict[str, Any] = {}
        self._overrides: Dict[str, Any] = {}
        self._config_loader = ConfigLoader(config_path)

        self._load_from_config_file()

        if sources:
            self.register_sources(*sources)

    def _load_from_config_file(self) -> None:
        """Load defaults, sources and overrides from confstack.yaml if available."""
        try:
            defaults = self._config_loader.get_defaults(self.name)
            overrides = self._config_loader.get_overrides(self.name)
            sources = self._config_loader.get_sources(self.name)
        except ValueError as e:
            # An unusable manifest leaves the Environment empty but usable
            logger.warning("Ignoring %s: %s", self._config_loader.config_path, e)
            return

        self._defaults.update(defaults)
        self._overrides.update(overrides)
        for source_config in sources:
            try:
                parsed = self._config_loader.parse_source(source_config)
                self.register_source(
                    parsed["path_or_uri"],
                    filter=parsed.get("filter"),
                    name=parsed.get("name"),
                    required=parsed.get("required", True),
                )
            except (ValueError, OSError, ConfigError) as e:
                logger.warning(
                    "Skipping source %r from %s: %s",
                    source_config,
                    self._config_loader.config_path,
                    e,
                )

    def register_sources(self, *paths_or_uris: Union[str, Path]) -> None:
        """Register multiple configuration sources.

        Args:
            *paths_or_uris: Variable number of file paths or URIs.
        """
        for item in paths_or_uris:
            self.register_source(item)

    def register_source(
        self,
        path_or_uri: Union[str, Path],
        *,
        filter: Optional[Filter] = None,
        name: Optional[str] = None,
        required: bool = True,
    ) -> None:
        """Register a single configuration source.

        Args:
            path_or_uri: File path (or stem) or URI of the source.
            filter: Optional filter to apply to source keys.
            name: Optional custom name for the source.
            required: Whether a missing file is an error when merging.
        """
        src = self._create_source(path_or_uri, name=name, required=required)
        self._registered.append(RegisteredSource(source=src, filter=filter))

    def _create_source(
        self,
        path_or_uri: Union[str, Path],
        name: Optional[str],
        required: bool = True,
    ) -> Source:
        """Create a source instance based on path/URI type.

        Args:
            path_or_uri: File path or URI of the source.
            name: Optional custom name for the source.
            required: Passed on to file sources.

        Returns:
            Source instance.

        Raises:
            ValueError: If source type is not supported.
        """
        s = str(path_or_uri)
        if s.startswith(("redis://", "rediss://")):
            from ..sources.redis_kv import RedisKeyValueSource

            parts = urlsplit(s)
            query = parse_qs(parts.query)
            prefix = query.get("prefix", [""])[0]
            bare_uri = parts._replace(query="").geturl()
            return RedisKeyValueSource(bare_uri, name=name, prefix=prefix)
        if s.startswith("github://"):
            from ..sources.github_env import GitHubEnvSource

            return GitHubEnvSource(s, name=name)
        if s.startswith("env://"):
            from ..sources.environment import EnvironmentSource

            parts = urlsplit(s)
            query = parse_qs(parts.query)
            separator = query.get("separator", [None])[0]
            return EnvironmentSource(prefix=parts.netloc or None, separator=separator, name=name)
        if "://" in s:
            raise ValueError(f"Unsupported source type: {path_or_uri}")

        from ..sources.file import FileFormat, FileSource

        p = Path(s)
        if p.suffix and FileFormat.from_path(p) is None:
            raise ValueError(f"Unsupported source type: {path_or_uri}")
        return FileSource(p, name=name, required=required)

    def get_config(self) -> Config:
        """Get a Config object with all registered sources.

        Returns:
            Config with defaults, sources and overrides applied.

        Raises:
            ConfigError: If a source fails or a key is not a valid path.
        """
        return Config.from_layers(self._defaults, self._registered, self._overrides)

    def add_source_type(self, source: Source, filter: Optional[Filter] = None) -> None:
        """Add a custom source instance directly.

        Args:
            source: Source instance to add.
            filter: Optional filter to apply to source keys.
        """
        self._registered.append(RegisteredSource(source=source, filter=filter))

    @property
    def config_file_path(self) -> Optional[Path]:
        """Get the path to the loaded confstack.yaml file, if any."""
        return self._config_loader.config_path
