"""
tokens.py

Responsibility: Obtain and discard the short-lived credentials used during activation.

A GitHub token is exchanged for a Travis CI token ("federation"). Only tokens
minted here carry an issuing URL, and only those are ever revoked.
"""

from __future__ import annotations

import logging

import requests

from cilink.github_client import GitHubClient, GitHubError
from cilink.models import Credential
from cilink.travis_client import TravisClient, TravisError

logger = logging.getLogger(__name__)


class AuthError(RuntimeError):
    pass


class RevokeError(RuntimeError):
    pass


class TokenBroker:
    def __init__(self, github: GitHubClient, travis: TravisClient) -> None:
        self._github = github
        self._travis = travis

    def obtain_source_control_token(self, username: str, password: str) -> Credential:
        logger.debug("Requesting a GitHub token for %s", username)
        try:
            return self._github.request_access_token(username, password)
        except (GitHubError, requests.RequestException) as e:
            raise AuthError(f"GitHub refused to issue a token for {username}: {e}") from e

    def obtain_ci_token(self, source_control_token: Credential, is_private: bool) -> Credential:
        logger.debug("Exchanging the GitHub token for a Travis CI token (private=%s)", is_private)
        try:
            token = self._travis.request_token(source_control_token.token, is_private)
        except (TravisError, requests.RequestException) as e:
            raise AuthError(f"Travis CI refused the GitHub token: {e}") from e
        return Credential(token=token)

    def revoke(self, credential: Credential, username: str, password: str | None) -> None:
        if not credential.minted:
            logger.debug("Leaving caller-supplied token in place")
            return
        if not password:
            raise RevokeError(f"Cannot revoke the GitHub token for {username} without a password.")
        try:
            self._github.delete_access_token(credential.url, username, password)
        except (GitHubError, requests.RequestException) as e:
            raise RevokeError(f"Failed to revoke the GitHub token at {credential.url}: {e}") from e
        logger.debug("Revoked GitHub token for %s", username)
