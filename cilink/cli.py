"""
cli.py

Responsibility: CLI entrypoint for cilink.

Commands:
- `enable-ci CONFIG`: exchange tokens, wait for Travis CI to see the repo,
  activate it and set the CI environment variables
- `travis-file CONFIG --project-dir DIR`: write `.travis.yml` for the project

This module should orchestrate behavior but keep concerns isolated:
- Config loading: `project_config.py`
- Activation pipeline: `activation.py`
- `.travis.yml` generation: `travis_file.py`
"""

from __future__ import annotations

import argparse
import dataclasses
import logging

from cilink.activation import ActivationError, CIActivator
from cilink.github_client import GitHubClient
from cilink.polling import DEFAULT_POLL_DELAY_SECONDS, PollSettings
from cilink.project_config import TRAVIS_CI, ConfigError, activation_config, load_project_config
from cilink.tokens import RevokeError
from cilink.travis_client import TravisClient
from cilink.travis_file import generate_travis_file

logger = logging.getLogger("cilink")

# Roughly ten minutes at the default delay.
DEFAULT_MAX_POLL_ATTEMPTS = 300


class CLIError(RuntimeError):
    pass


def _non_negative_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def enable_ci_cmd(args: argparse.Namespace) -> int:
    project = load_project_config(args.config_path)
    if project.tooling.ci and not project.tooling.uses("ci", TRAVIS_CI):
        raise CLIError(f"Unsupported CI provider: {project.tooling.ci}")

    config = activation_config(project)
    # CLI overrides
    if args.github_token:
        config = dataclasses.replace(config, github_token=args.github_token)
    if args.travis_token:
        config = dataclasses.replace(config, travis_token=args.travis_token)
    if not (config.github_token or config.password or config.travis_token):
        raise CLIError("A GitHub token, GitHub password or Travis CI token is required (use --github-token or --travis-token)")

    max_attempts = args.max_poll_attempts if args.max_poll_attempts > 0 else None
    activator = CIActivator(
        GitHubClient(),
        TravisClient(),
        poll_settings=PollSettings(delay_seconds=args.poll_delay, max_attempts=max_attempts),
    )
    activator.enable_ci(config)
    return 0


def travis_file_cmd(args: argparse.Namespace) -> int:
    project = load_project_config(args.config_path)
    generate_travis_file(project, args.project_dir)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="cilink", description="cilink - enable Travis CI on a freshly created repository")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    e = sub.add_parser("enable-ci", help="Activate Travis CI for the project and set its environment variables")
    e.add_argument("config_path", help="Path to the project config (YAML or Markdown frontmatter)")
    e.add_argument("--github-token", default=None, help="GitHub token (or set env GITHUB_TOKEN)")
    e.add_argument("--travis-token", default=None, help="Travis CI token (or set env TRAVIS_TOKEN)")
    e.add_argument(
        "--poll-delay",
        type=_non_negative_float,
        default=DEFAULT_POLL_DELAY_SECONDS,
        help=f"Seconds between Travis CI polls (default: {DEFAULT_POLL_DELAY_SECONDS})",
    )
    e.add_argument(
        "--max-poll-attempts",
        type=int,
        default=DEFAULT_MAX_POLL_ATTEMPTS,
        help=f"Give up waiting after this many polls; 0 waits forever (default: {DEFAULT_MAX_POLL_ATTEMPTS})",
    )
    e.set_defaults(func=enable_ci_cmd)

    t = sub.add_parser("travis-file", help="Write .travis.yml for the project")
    t.add_argument("config_path", help="Path to the project config (YAML or Markdown frontmatter)")
    t.add_argument("--project-dir", default=".", help="Project directory (default: current directory)")
    t.set_defaults(func=travis_file_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except (ActivationError, ConfigError, CLIError, RevokeError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
