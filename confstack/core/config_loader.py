"""Configuration loader for confstack.yaml manifest files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .filters import Filter

logger = logging.getLogger(__name__)

MANIFEST_NAME = "confstack.yaml"


class ConfigLoader:
    """Handles loading and parsing of confstack.yaml manifest files.

    A manifest describes, per environment name, the defaults, the ordered
    sources and the overrides a :class:`~confstack.Config` is built from::

        environments:
          production:
            defaults: {server.port: 8080}
            sources:
              - path: settings.yaml
                required: false
              - uri: env://APP?separator=__
            overrides: {debug: false}
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize config loader.

        Args:
            config_path: Path to confstack.yaml file. If None, looks in current
                directory and parent directories.
        """
        self.config_path = self._find_config_file(config_path)
        self._config: Optional[Dict[str, Any]] = None

    def _find_config_file(
        self, config_path: Optional[Union[str, Path]] = None
    ) -> Optional[Path]:
        """Find the confstack.yaml file.

        Args:
            config_path: Explicit path to config file, or None to search.

        Returns:
            Path to config file if found, None otherwise.
        """
        if config_path is not None:
            path = Path(config_path)
            if path.exists():
                return path
            return None

        current = Path.cwd()
        while current != current.parent:
            candidate = current / MANIFEST_NAME
            if candidate.exists():
                return candidate
            current = current.parent

        candidate = current / MANIFEST_NAME
        if candidate.exists():
            return candidate

        return None

    def load(self) -> Dict[str, Any]:
        """Load the manifest.

        Returns:
            Parsed manifest dictionary, or empty dict if there is none.

        Raises:
            ValueError: If the manifest is invalid YAML or not a mapping.
        """
        if self.config_path is None:
            return {}

        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(
                f"Invalid {MANIFEST_NAME} at {self.config_path}: {e}"
            ) from e
        except OSError as e:
            logger.warning("Could not read %s at %s: %s", MANIFEST_NAME, self.config_path, e)
            return {}

        if not isinstance(loaded, dict):
            raise ValueError(f"Invalid {MANIFEST_NAME} at {self.config_path}: expected a mapping")
        self._config = loaded
        return self._config

    def get_environment_config(
        self, environment_name: str
    ) -> Optional[Dict[str, Any]]:
        """Get configuration for a specific environment.

        Args:
            environment_name: Name of the environment.

        Returns:
            Environment configuration dict, or None if not found.
        """
        config = self.load()
        environments = config.get("environments") or {}
        return environments.get(environment_name)

    def get_sources(self, environment_name: str) -> List[Dict[str, Any]]:
        env_config = self.get_environment_config(environment_name)
        if env_config is None:
            return []
        return env_config.get("sources") or []

    def get_defaults(self, environment_name: str) -> Dict[str, Any]:
        env_config = self.get_environment_config(environment_name)
        if env_config is None:
            return {}
        return env_config.get("defaults") or {}

    def get_overrides(self, environment_name: str) -> Dict[str, Any]:
        env_config = self.get_environment_config(environment_name)
        if env_config is None:
            return {}
        return env_config.get("overrides") or {}

    def parse_source(self, source_config: Dict[str, Any]) -> Dict[str, Any]:
        """Parse a source configuration into components.

        Args:
            source_config: Raw source configuration from YAML.

        Returns:
            Dictionary with parsed source components.

        Raises:
            ValueError: If the entry has neither ``path`` nor ``uri``.
        """
        result: Dict[str, Any] = {}

        if "path" in source_config:
            result["path_or_uri"] = Path(source_config["path"])
        elif "uri" in source_config:
            result["path_or_uri"] = source_config["uri"]
        else:
            raise ValueError("Source must have either 'path' or 'uri'")

        filter_obj = Filter.from_dict(source_config.get("filter"))
        if filter_obj is not None:
            result["filter"] = filter_obj

        if "name" in source_config:
            result["name"] = source_config["name"]
        if "required" in source_config:
            result["required"] = bool(source_config["required"])

        return result
