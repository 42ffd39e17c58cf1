"""
travis_file.py

Responsibility: Write the `.travis.yml` for a scaffolded project.

When the project deploys to Heroku, builds run in Docker and pushes to
master publish the image to the Heroku container registry using the
HEROKU_USERNAME / HEROKU_PASSWORD variables set during activation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from cilink.project_config import HEROKU, ProjectConfig

logger = logging.getLogger(__name__)

HEROKU_REGISTRY = "registry.heroku.com"


def _base_travis_config() -> dict[str, Any]:
    return {
        "language": "python",
        "python": ["3.12"],
        "install": ["pip install -e .[test]"],
        "script": ["pytest"],
    }


def _heroku_push_script(app_name: str) -> str:
    return (
        'if [ "$TRAVIS_BRANCH" == "master" ]; then\n'
        f'docker login -u="$HEROKU_USERNAME" -p="$HEROKU_PASSWORD" {HEROKU_REGISTRY};\n'
        f"docker build -t {HEROKU_REGISTRY}/{app_name}/web .;\n"
        f"docker push {HEROKU_REGISTRY}/{app_name}/web;\n"
        "fi"
    )


def build_travis_config(config: ProjectConfig) -> dict[str, Any]:
    travis = _base_travis_config()
    app_name = config.project.heroku_app
    if config.tooling.uses("deployment", HEROKU) and app_name:
        travis["services"] = ["docker"]
        travis["before_install"] = [f"docker build -t {app_name} .", "docker ps -a"]
        travis["after_success"] = [_heroku_push_script(app_name)]
    return travis


def generate_travis_file(config: ProjectConfig, project_dir: str | Path) -> Path:
    path = Path(project_dir) / ".travis.yml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(build_travis_config(config), sort_keys=False), encoding="utf-8")
    logger.info("Successfully generated file: %s", path)
    return path
