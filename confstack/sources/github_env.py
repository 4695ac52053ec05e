from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import httpx

from ..core.errors import SourceError
from ..core.value import Value


@dataclass
class _GitHubContext:
    owner: str
    repo: str
    environment: str
    token: str


class GitHubEnvSource:
    """GitHub Environment variables source (read-only; secrets are excluded).

    URI format: github://owner/repo#environment
    Token: from env var GITHUB_TOKEN unless provided explicitly via `token` arg.
    Variable names are lower-cased; with a `separator` such as "__",
    DB__HOST becomes the key db.host.
    """

    def __init__(
        self,
        uri: str,
        name: Optional[str] = None,
        token: Optional[str] = None,
        separator: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.uri = uri
        self.ctx = self._parse_uri(uri, token)
        self.name = name or f"github:{self.ctx.owner}/{self.ctx.repo}#{self.ctx.environment}"
        self.id = f"{self.ctx.owner}/{self.ctx.repo}#{self.ctx.environment}"
        self.separator = separator
        self._client = client or httpx.Client(
            base_url="https://api.github.com",
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {self.ctx.token}",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=20.0,
        )

    def _parse_uri(self, uri: str, token: Optional[str]) -> _GitHubContext:
        if not uri.startswith("github://"):
            raise ValueError("GitHubEnvSource requires URI starting with github://")
        rest = uri[len("github://") :]
        if "#" in rest:
            path, env = rest.split("#", 1)
        else:
            raise ValueError("GitHub URI must include #environment suffix, e.g., github://owner/repo#production")
        if "/" not in path:
            raise ValueError("GitHub URI path must be owner/repo")
        owner, repo = path.split("/", 1)
        token_val = token or os.getenv("GITHUB_TOKEN")
        if not token_val:
            raise EnvironmentError("GITHUB_TOKEN not set and token not provided for GitHubEnvSource")
        return _GitHubContext(owner=owner, repo=repo, environment=env, token=token_val)

    def _list_env_variables(self) -> Dict[str, str]:
        vars_all: Dict[str, str] = {}
        url = f"/repos/{self.ctx.owner}/{self.ctx.repo}/environments/{self.ctx.environment}/variables"
        page = 1
        while True:
            resp = self._client.get(url, params={"per_page": 100, "page": page})
            resp.raise_for_status()
            data = resp.json()
            for v in data.get("variables", []):
                vars_all[v["name"]] = v.get("value")
            if len(data.get("variables", [])) < 100:
                break
            page += 1
        return vars_all

    def collect(self) -> Mapping[str, Any]:
        try:
            variables = self._list_env_variables()
        except httpx.HTTPError as exc:
            raise SourceError(self.name, f"failed to list variables of {self.uri}: {exc}") from exc
        except (ValueError, KeyError) as exc:
            raise SourceError(self.name, f"unexpected response from {self.uri}: {exc!r}") from exc
        kv: Dict[str, Value] = {}
        for name, value in variables.items():
            key = name.lower()
            if self.separator:
                key = key.replace(self.separator.lower(), ".")
            kv[key] = Value(value, origin=self.uri)
        return kv
