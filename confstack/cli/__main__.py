from __future__ import annotations

import json
from typing import Any, List, Optional, Tuple

import typer
import yaml

from ..core.config import Config
from ..core.environment import Environment
from ..core.errors import ConfigError

app = typer.Typer(help="confstack CLI")

_READERS = {
    "value": lambda cfg, key: cfg.get(key).to_native(),
    "str": lambda cfg, key: cfg.get_str(key),
    "int": lambda cfg, key: cfg.get_int(key),
    "float": lambda cfg, key: cfg.get_float(key),
    "bool": lambda cfg, key: cfg.get_bool(key),
    "array": lambda cfg, key: [v.to_native() for v in cfg.get_array(key)],
    "tree": lambda cfg, key: cfg.get_tree(key).to_dict(),
}


def _assignment(text: str) -> Tuple[str, Any]:
    if "=" not in text:
        raise typer.BadParameter(f"expected KEY=VALUE, got {text!r}")
    key, raw = text.split("=", 1)
    # YAML scalars give typed literals: 8080, true, 1.5, [a, b]
    try:
        value = yaml.safe_load(raw) if raw else ""
    except yaml.YAMLError:
        value = raw
    if value is not None and not isinstance(value, (str, int, float, bool, list, dict)):
        value = raw
    return key, value


def _build(
    env: str,
    sources: Optional[List[str]],
    defaults: Optional[List[str]],
    overrides: Optional[List[str]],
) -> Config:
    e = Environment(env)
    for item in sources or []:
        e.register_source(item)
    cfg = e.get_config()
    for item in defaults or []:
        cfg.set_default(*_assignment(item))
    for item in overrides or []:
        cfg.set(*_assignment(item))
    return cfg


@app.command()
def get(
    key: str,
    env: str = typer.Option("development", "--env"),
    source: Optional[List[str]] = typer.Option(None, "--source", "-s", help="File path or URI, lowest priority first"),
    default: Optional[List[str]] = typer.Option(None, "--default", "-d", help="KEY=VALUE default"),
    override: Optional[List[str]] = typer.Option(None, "--set", help="KEY=VALUE override"),
    type_: str = typer.Option("value", "--type", "-t", help="value, str, int, float, bool, array or tree"),
):
    reader = _READERS.get(type_)
    if reader is None:
        raise typer.BadParameter(f"unknown type {type_!r}", param_hint="--type")
    try:
        cfg = _build(env, source, default, override)
        result = reader(cfg, key)
    except (ConfigError, ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps({"key": key, "value": result}, indent=2))


@app.command()
def show(
    env: str = typer.Option("development", "--env"),
    source: Optional[List[str]] = typer.Option(None, "--source", "-s"),
    default: Optional[List[str]] = typer.Option(None, "--default", "-d"),
    override: Optional[List[str]] = typer.Option(None, "--set"),
    plain: bool = typer.Option(False, "--plain", help="Print the display form instead of JSON"),
):
    try:
        cfg = _build(env, source, default, override)
    except (ConfigError, ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    if plain:
        typer.echo(str(cfg))
    else:
        typer.echo(json.dumps(cfg.to_dict(), indent=2, sort_keys=True))


if __name__ == "__main__":
    app()
