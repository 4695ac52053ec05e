"""Unit tests for the Environment class."""

from __future__ import annotations

import re
from unittest.mock import MagicMock, patch

import pytest

from confstack.core.config import Config
from confstack.core.environment import Environment
from confstack.core.errors import SourceError
from confstack.core.filters import Filter
from confstack.sources.environment import EnvironmentSource
from confstack.sources.file import FileSource
from confstack.sources.github_env import GitHubEnvSource
from confstack.sources.redis_kv import RedisKeyValueSource


@pytest.fixture(autouse=True)
def _no_manifest(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


class TestEnvironment:
    """Test suite for Environment class."""

    def test_init(self):
        """Test Environment initialization."""
        env = Environment("production")
        assert env.name == "production"
        assert env._registered == []
        assert env.config_file_path is None

    def test_register_sources_multiple(self, tmp_path):
        """Test registering multiple sources."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("key: value")
        json_file = tmp_path / "config.json"
        json_file.write_text('{"key": "value"}')
        toml_file = tmp_path / "config.toml"
        toml_file.write_text('key = "value"')

        env = Environment("dev")
        env.register_sources(yaml_file, json_file, toml_file)

        assert len(env._registered) == 3

    def test_register_source_with_options(self, tmp_path):
        """Test registering a source with options."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("key: value")

        env = Environment("dev")
        filter_obj = Filter(include_regex=re.compile("^key$"))
        env.register_source(yaml_file, filter=filter_obj, name="custom_name", required=False)

        assert len(env._registered) == 1
        rs = env._registered[0]
        assert rs.filter == filter_obj
        assert rs.source.name == "custom_name"
        assert rs.source.required is False

    def test_create_source_yaml(self, tmp_path):
        """Test creating a YAML source."""
        yaml_file = tmp_path / "config.yaml"
        source = Environment("dev")._create_source(yaml_file, None)
        assert isinstance(source, FileSource)
        assert source.path == yaml_file

    @pytest.mark.parametrize("name", ["config.yml", "config.json", "config.toml", "config"])
    def test_create_source_files(self, tmp_path, name):
        """Test known suffixes and bare stems create file sources."""
        source = Environment("dev")._create_source(tmp_path / name, None)
        assert isinstance(source, FileSource)

    def test_create_source_unsupported_suffix(self, tmp_path):
        """Test unknown file suffixes are rejected."""
        with pytest.raises(ValueError, match="Unsupported source type"):
            Environment("dev")._create_source(tmp_path / "config.ini", None)

    def test_create_source_unsupported_scheme(self):
        """Test unknown URI schemes are rejected."""
        with pytest.raises(ValueError, match="Unsupported source type"):
            Environment("dev")._create_source("ftp://example.org/config", None)

    def test_create_source_env(self):
        """Test creating an environment variable source."""
        source = Environment("dev")._create_source("env://APP?separator=__", None)
        assert isinstance(source, EnvironmentSource)
        assert source.prefix == "APP"
        assert source.separator == "__"

    def test_create_source_env_without_prefix(self):
        """Test env:// without a prefix reads every variable."""
        source = Environment("dev")._create_source("env://", "vars")
        assert isinstance(source, EnvironmentSource)
        assert source.prefix is None
        assert source.name == "vars"

    def test_create_source_redis(self):
        """Test creating a Redis source."""
        with patch("confstack.sources.redis_kv.redis.Redis.from_url") as from_url:
            from_url.return_value = MagicMock()
            source = Environment("dev")._create_source(
                "redis://localhost:6379/0?prefix=app:", None
            )
        assert isinstance(source, RedisKeyValueSource)
        assert source.uri == "redis://localhost:6379/0"
        assert source.prefix == "app:"
        from_url.assert_called_once_with("redis://localhost:6379/0", decode_responses=True)

    def test_create_source_github(self, monkeypatch):
        """Test creating a GitHub environment source."""
        monkeypatch.setenv("GITHUB_TOKEN", "t")
        source = Environment("dev")._create_source("github://acme/api#production", "gh")
        assert isinstance(source, GitHubEnvSource)
        assert source.name == "gh"
        assert source.ctx.token == "t"

    def test_add_source_type(self):
        """Test adding a custom source instance."""
        source = EnvironmentSource(prefix="APP", environ={"APP_PORT": "80"})
        env = Environment("dev")
        env.add_source_type(source)

        assert env._registered[0].source is source
        assert env.get_config().get_int("port") == 80

    def test_get_config(self, tmp_path):
        """Test building a Config from registered sources."""
        (tmp_path / "base.yaml").write_text("db:\n  host: localhost\n  port: 5432\n")
        (tmp_path / "local.json").write_text('{"db": {"host": "db.internal"}}')

        env = Environment("dev", sources=[tmp_path / "base.yaml", tmp_path / "local.json"])
        config = env.get_config()

        assert isinstance(config, Config)
        assert config.to_dict() == {"db": {"host": "db.internal", "port": 5432}}
        assert len(config.sources) == 2

    def test_get_config_missing_required(self, tmp_path):
        """Test a missing required file fails the build."""
        env = Environment("dev", sources=[tmp_path / "absent.yaml"])
        with pytest.raises(SourceError, match="not found"):
            env.get_config()

    def test_get_config_missing_optional(self, tmp_path):
        """Test a missing optional file contributes nothing."""
        env = Environment("dev")
        env.register_source(tmp_path / "absent.yaml", required=False)
        assert env.get_config().to_dict() == {}

    def test_get_config_collects_each_source_once(self):
        """Test building the Config reads every source a single time."""
        sources = [
            EnvironmentSource(prefix=f"S{i}", environ={f"S{i}_KEY{i}": "v"}) for i in range(3)
        ]
        env = Environment("dev")
        for source in sources:
            source.collect = MagicMock(wraps=source.collect)
            env.add_source_type(source)
        env._defaults["key0"] = "default"
        env._overrides["key2"] = "override"

        config = env.get_config()
        assert config.to_dict() == {"key0": "v", "key1": "v", "key2": "override"}
        assert [s.collect.call_count for s in sources] == [1, 1, 1]
