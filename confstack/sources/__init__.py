"""Configuration source implementations.

This package contains implementations of various configuration
sources including files (yaml, json, toml), environment variables
and remote sources (redis, github).
"""

from .environment import EnvironmentSource
from .file import FileFormat, FileSource
from .github_env import GitHubEnvSource
from .redis_kv import RedisKeyValueSource

__all__ = [
    "FileFormat",
    "FileSource",
    "EnvironmentSource",
    "RedisKeyValueSource",
    "GitHubEnvSource",
]
