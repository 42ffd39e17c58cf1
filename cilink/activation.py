"""
activation.py

Responsibility: Turn Travis CI on for a freshly created GitHub repository.

High-level flow (`CIActivator.enable_ci`):
1) Credentials: GitHub token (caller's or minted), then a Travis CI token;
   a caller-supplied Travis CI token skips both
2) Account: find the Travis CI account for the GitHub user (missing is tolerated)
3) Sync: wait for account sync, request a sync, wait for the repository to show up
4) Activation: look up the Travis repository id and enable builds
5) Environment: set each environment variable, one after another

Every stage failure is re-raised as an `ActivationError` subclass naming what
could not be done; earlier side effects are not rolled back. A GitHub token
minted in stage 1 is revoked before returning or failing.
"""

from __future__ import annotations

import enum
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

import requests

from cilink.accounts import AccountNotFoundError, resolve_account
from cilink.github_client import GitHubClient
from cilink.models import Account, Credential, EnvironmentVariable, RepositoryRef
from cilink.polling import Poller, PollSettings
from cilink.tokens import AuthError, RevokeError, TokenBroker
from cilink.travis_client import TravisClient

logger = logging.getLogger(__name__)


class Stage(str, enum.Enum):
    CREDENTIALS = "credentials"
    ACCOUNT = "account"
    SYNC = "sync"
    ACTIVATION = "activation"
    ENVIRONMENT = "environment"


class ActivationError(RuntimeError):
    stage: Stage

    def __init__(self, message: str, repository: RepositoryRef) -> None:
        super().__init__(message)
        self.repository = repository


class CredentialError(ActivationError):
    stage = Stage.CREDENTIALS


class AccountError(ActivationError):
    stage = Stage.ACCOUNT


class SyncError(ActivationError):
    stage = Stage.SYNC


class ActivationCallError(ActivationError):
    stage = Stage.ACTIVATION


class EnvVarError(ActivationError):
    stage = Stage.ENVIRONMENT


@dataclass(frozen=True)
class ActivationConfig:
    """Everything one `enable_ci` run needs; tokens given here are never revoked."""

    username: str
    project_name: str
    is_private: bool = False
    password: str | None = None
    github_token: str | None = None
    travis_token: str | None = None
    env_vars: tuple[EnvironmentVariable, ...] = ()

    @property
    def repository(self) -> RepositoryRef:
        return RepositoryRef(owner=self.username, name=self.project_name, private=self.is_private)


@contextmanager
def _stage(error_cls: type[ActivationError], repository: RepositoryRef, reason: str) -> Iterator[None]:
    try:
        yield
    except (RuntimeError, requests.RequestException) as e:
        message = f"Failed to enable TravisCI on {repository.slug} because we were unable to {reason}."
        logger.debug("%s stage failed: %s", error_cls.stage.value, e)
        raise error_cls(message, repository) from e


class CIActivator:
    def __init__(
        self,
        github: GitHubClient,
        travis: TravisClient,
        *,
        poll_settings: PollSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._travis = travis
        self._broker = TokenBroker(github, travis)
        self._poller = Poller(travis, poll_settings, sleep=sleep)

    def enable_ci(self, config: ActivationConfig) -> Credential:
        """Run all stages and return the Travis CI token for follow-up calls."""
        repository = config.repository
        logger.debug("Enabling TravisCI on %s (private=%s)", repository.slug, repository.private)

        github_token = self._github_credential(config)
        try:
            travis_token = self._activate(config, github_token)
        except ActivationError:
            if github_token is not None:
                self._discard_quietly(github_token, config)
            raise
        if github_token is not None:
            self._broker.revoke(github_token, config.username, config.password)

        logger.info("Successfully enabled TravisCI on %s", repository.slug)
        return travis_token

    def _github_credential(self, config: ActivationConfig) -> Credential | None:
        if config.github_token:
            return Credential(token=config.github_token)
        if config.travis_token:
            # The GitHub token is only needed to federate a Travis CI token.
            return None
        with _stage(CredentialError, config.repository, "get a token from GitHub"):
            if not config.password:
                raise AuthError("A GitHub password or token is required.")
            return self._broker.obtain_source_control_token(config.username, config.password)

    def _activate(self, config: ActivationConfig, github_token: Credential | None) -> Credential:
        repository = config.repository
        is_private = repository.private

        if config.travis_token:
            travis_token = Credential(token=config.travis_token)
        else:
            with _stage(CredentialError, repository, "get a token from TravisCI"):
                travis_token = self._broker.obtain_ci_token(github_token, is_private)

        account = self._account(config, travis_token)

        with _stage(SyncError, repository, "sync TravisCI with GitHub"):
            self._poller.wait_for_sync(travis_token.token, account, is_private)
            self._travis.sync(travis_token.token, is_private)
            self._poller.wait_for_repository(
                repository.name, repository.owner, travis_token.token, account, is_private
            )

        with _stage(ActivationCallError, repository, "activate TravisCI"):
            repo_id = self._travis.get_repository_id(travis_token.token, repository.owner, repository.name, is_private)
            self._travis.activate_repository(repo_id, travis_token.token, is_private)

        with _stage(EnvVarError, repository, "set environment variables"):
            for env_var in config.env_vars:
                logger.debug("Setting %s on %s", env_var.name, repository.slug)
                self._travis.set_environment_variable(travis_token.token, repo_id, env_var, is_private)

        return travis_token

    def _account(self, config: ActivationConfig, travis_token: Credential) -> Account | None:
        with _stage(AccountError, config.repository, "get account information from TravisCI"):
            try:
                return resolve_account(self._travis, travis_token.token, config.username, config.repository.private)
            except AccountNotFoundError:
                logger.warning("No TravisCI account found for %s; continuing without one", config.username)
                return None

    def _discard_quietly(self, credential: Credential, config: ActivationConfig) -> None:
        try:
            self._broker.revoke(credential, config.username, config.password)
        except RevokeError as e:
            logger.error("%s", e)


def enable_ci(
    config: ActivationConfig,
    *,
    github: GitHubClient | None = None,
    travis: TravisClient | None = None,
    poll_settings: PollSettings | None = None,
) -> Credential:
    activator = CIActivator(github or GitHubClient(), travis or TravisClient(), poll_settings=poll_settings)
    return activator.enable_ci(config)
