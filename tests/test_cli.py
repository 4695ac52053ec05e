from __future__ import annotations

import json

import pytest
import yaml
from typer.testing import CliRunner

from confstack.cli.__main__ import app

runner = CliRunner()


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "settings.yaml").write_text(
        "server:\n  host: example.org\n  port: '8080'\ndebug: true\nhosts: [a, b]\n"
    )
    return tmp_path


def test_show(workdir):
    result = runner.invoke(app, ["show", "-s", "settings.yaml"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {
        "server": {"host": "example.org", "port": "8080"},
        "debug": True,
        "hosts": ["a", "b"],
    }


def test_show_plain(workdir):
    result = runner.invoke(app, ["show", "-s", "settings.yaml", "--plain"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == (
        "{ debug: true, hosts: [ a, b ], server: { host: example.org, port: 8080 } }"
    )


def test_get_typed(workdir):
    result = runner.invoke(app, ["get", "server.port", "-s", "settings.yaml", "--type", "int"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"key": "server.port", "value": 8080}


def test_get_tree(workdir):
    result = runner.invoke(app, ["get", "server", "-s", "settings.yaml", "-t", "tree"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["value"] == {"host": "example.org", "port": "8080"}


def test_defaults_and_overrides(workdir):
    result = runner.invoke(
        app,
        [
            "show",
            "-s", "settings.yaml",
            "-d", "server.port=1",
            "-d", "server.tls=true",
            "--set", "hosts[2]=c",
            "--set", "debug=false",
        ],
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {
        "server": {"host": "example.org", "port": "8080", "tls": True},
        "debug": False,
        "hosts": ["a", "b", "c"],
    }


def test_missing_key(workdir):
    result = runner.invoke(app, ["get", "server.missing", "-s", "settings.yaml"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_wrong_type(workdir):
    result = runner.invoke(app, ["get", "server.host", "-s", "settings.yaml", "-t", "int"])
    assert result.exit_code == 1
    assert "expected an integer" in result.output


def test_unknown_type(workdir):
    result = runner.invoke(app, ["get", "debug", "-t", "decimal"])
    assert result.exit_code == 2


def test_bad_assignment(workdir):
    result = runner.invoke(app, ["show", "--set", "debug"])
    assert result.exit_code == 2


def test_manifest_environment(workdir):
    manifest = {
        "environments": {
            "production": {
                "defaults": {"workers": 4},
                "sources": [{"path": "settings.yaml"}],
                "overrides": {"debug": False},
            }
        }
    }
    (workdir / "confstack.yaml").write_text(yaml.dump(manifest))

    result = runner.invoke(app, ["get", "debug", "--env", "production", "-t", "bool"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["value"] is False

    result = runner.invoke(app, ["get", "workers", "--env", "production"])
    assert json.loads(result.output)["value"] == 4

    result = runner.invoke(app, ["show"])
    assert json.loads(result.output) == {}


def test_unsupported_source(workdir):
    result = runner.invoke(app, ["get", "a", "--source", "ftp://x/y"])
    assert result.exit_code == 1
    assert "Error: Unsupported source type: ftp://x/y" in result.output


def test_unsupported_file_suffix(workdir):
    result = runner.invoke(app, ["show", "-s", "settings.ini"])
    assert result.exit_code == 1
    assert "Error:" in result.output
