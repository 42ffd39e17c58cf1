"""
project_config.py

Responsibility: Load a project configuration file into a typed model.

The file is either plain YAML or Markdown with YAML frontmatter:

    ---
    project:
      name: my-app
      private: false
    tooling:
      ci: TravisCI
      container: Docker
      deployment: Heroku
    credentials:
      github: {username: octocat}
      heroku: {email: octocat@example.com}
    ---

Secrets are better kept out of the file; the environment variables in
`_ENV_SECRETS` fill any credential the file leaves empty.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from cilink.activation import ActivationConfig
from cilink.models import EnvironmentVariable

TRAVIS_CI = "travisci"
DOCKER = "docker"
HEROKU = "heroku"

# (section, key) -> environment variable consulted when the file has no value.
_ENV_SECRETS: dict[tuple[str, str], str] = {
    ("github", "token"): "GITHUB_TOKEN",
    ("github", "password"): "GITHUB_PASSWORD",
    ("travis", "token"): "TRAVIS_TOKEN",
    ("docker", "password"): "DOCKER_PASSWORD",
    ("heroku", "api_key"): "HEROKU_API_KEY",
}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ProjectSettings:
    name: str
    description: str = ""
    private: bool = False
    heroku_app: str | None = None


@dataclass(frozen=True)
class ToolingSettings:
    """Selected third-party tooling; names are compared case-insensitively."""

    ci: str | None = None
    container: str | None = None
    deployment: str | None = None

    def uses(self, field_name: str, tool: str) -> bool:
        value = getattr(self, field_name)
        return bool(value) and value.replace(" ", "").lower() == tool


@dataclass(frozen=True)
class ProjectConfig:
    project: ProjectSettings
    tooling: ToolingSettings = field(default_factory=ToolingSettings)
    credentials: dict[str, dict[str, str]] = field(default_factory=dict)

    def credential(self, section: str, key: str) -> str | None:
        return self.credentials.get(section, {}).get(key) or None


def _parse_yaml_frontmatter(text: str) -> tuple[dict[str, Any] | None, str]:
    """
    If the markdown begins with YAML frontmatter delimited by '---', parse it.
    Returns (frontmatter_dict_or_none, remaining_markdown_text).
    """
    if not text.startswith("---\n"):
        return None, text

    end = text.find("\n---\n", 4)
    if end == -1:
        raise ConfigError("YAML frontmatter starts with '---' but no closing '---' was found.")

    data = yaml.safe_load(text[4:end]) or {}
    if not isinstance(data, dict):
        raise ConfigError("YAML frontmatter must be a mapping/object at the top level.")
    return data, text[end + len("\n---\n") :]


def _mapping(data: Mapping[str, Any], key: str) -> dict[str, Any]:
    raw = data.get(key)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"`{key}` must be an object/mapping when provided.")
    return raw


def _optional_str(raw: Any) -> str | None:
    if raw is None:
        return None
    return str(raw).strip() or None


def _bool(data: Mapping[str, Any], key: str, default: bool = False) -> bool:
    raw = data.get(key, default)
    if raw is None:
        return default
    if not isinstance(raw, bool):
        raise ConfigError(f"`project.{key}` must be true or false, not {raw!r}.")
    return raw


def _credentials(raw: dict[str, Any], environ: Mapping[str, str]) -> dict[str, dict[str, str]]:
    out: dict[str, dict[str, str]] = {}
    for section, values in raw.items():
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ConfigError(f"`credentials.{section}` must be an object/mapping.")
        # YAML keys like apiKey and api_key are both accepted.
        out[str(section)] = {
            _snake(str(k)): str(v) for k, v in values.items() if _optional_str(v) is not None
        }
    for (section, key), env_name in _ENV_SECRETS.items():
        if environ.get(env_name) and not out.get(section, {}).get(key):
            out.setdefault(section, {})[key] = environ[env_name]
    return out


def _snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name).lstrip("_")


def parse_project_config(text: str, environ: Mapping[str, str] | None = None) -> ProjectConfig:
    frontmatter, _rest = _parse_yaml_frontmatter(text)
    if frontmatter is not None:
        data = frontmatter
    else:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Config is not valid YAML: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError("Config must be a mapping/object at the top level.")

    project_raw = _mapping(data, "project")
    name = _optional_str(project_raw.get("name"))
    if not name:
        raise ConfigError("Config must define `project.name`.")

    tooling_raw = _mapping(data, "tooling")
    config = ProjectConfig(
        project=ProjectSettings(
            name=name,
            description=str(project_raw.get("description") or "").strip(),
            private=_bool(project_raw, "private"),
            heroku_app=_optional_str(project_raw.get("heroku_app")),
        ),
        tooling=ToolingSettings(
            ci=_optional_str(tooling_raw.get("ci")),
            container=_optional_str(tooling_raw.get("container")),
            deployment=_optional_str(tooling_raw.get("deployment")),
        ),
        credentials=_credentials(_mapping(data, "credentials"), os.environ if environ is None else environ),
    )
    if config.tooling.uses("deployment", HEROKU) and not config.project.heroku_app:
        raise ConfigError("Heroku deployment requires `project.heroku_app`.")
    return config


def load_project_config(path: str | Path, environ: Mapping[str, str] | None = None) -> ProjectConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file does not exist: {config_path}")
    return parse_project_config(config_path.read_text(encoding="utf-8"), environ)


def environment_variables(config: ProjectConfig) -> list[EnvironmentVariable]:
    """CI environment variables needed by the selected container and deployment tooling."""
    env_vars: list[EnvironmentVariable] = []
    if config.tooling.uses("container", DOCKER):
        env_vars.append(EnvironmentVariable("DOCKER_USERNAME", _required(config, "docker", "username")))
        env_vars.append(EnvironmentVariable("DOCKER_PASSWORD", _required(config, "docker", "password")))
    if config.tooling.uses("deployment", HEROKU):
        email = _required(config, "heroku", "email")
        env_vars.append(EnvironmentVariable("HEROKU_EMAIL", email))
        env_vars.append(EnvironmentVariable("HEROKU_USERNAME", email))
        env_vars.append(EnvironmentVariable("HEROKU_PASSWORD", _required(config, "heroku", "api_key")))
    return env_vars


def _required(config: ProjectConfig, section: str, key: str) -> str:
    value = config.credential(section, key)
    if value is None:
        raise ConfigError(f"Missing credential `credentials.{section}.{key}`.")
    return value


def activation_config(config: ProjectConfig) -> ActivationConfig:
    username = config.credential("github", "username")
    if not username:
        raise ConfigError("Missing credential `credentials.github.username`.")
    return ActivationConfig(
        username=username,
        project_name=config.project.name,
        is_private=config.project.private,
        password=config.credential("github", "password"),
        github_token=config.credential("github", "token"),
        travis_token=config.credential("travis", "token"),
        env_vars=tuple(environment_variables(config)),
    )
