"""
cilink package

This package enables Travis CI on a freshly created GitHub repository.

Key responsibilities are split across modules:
- `github_client.py` / `travis_client.py`: isolated REST API interactions
- `tokens.py`: mint, federate and revoke short-lived tokens
- `accounts.py`: find the Travis CI account for a GitHub user
- `polling.py`: wait for account sync and repository discovery
- `activation.py`: the staged activation pipeline (`enable_ci`)
- `project_config.py` / `travis_file.py`: config loading and `.travis.yml`
- `cli.py`: CLI entrypoint
"""

from __future__ import annotations

from cilink.activation import ActivationConfig, ActivationError, CIActivator, enable_ci
from cilink.models import Account, Credential, EnvironmentVariable, RepositoryRef
from cilink.polling import PollSettings, PollTimeoutError

__all__ = [
    "Account",
    "ActivationConfig",
    "ActivationError",
    "CIActivator",
    "Credential",
    "EnvironmentVariable",
    "PollSettings",
    "PollTimeoutError",
    "RepositoryRef",
    "__version__",
    "enable_ci",
]

__version__ = "0.1.0"
