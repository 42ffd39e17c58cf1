"""
polling.py

Responsibility: Wait for Travis CI to catch up with GitHub.

Travis CI gives no completion signal for account syncing or for discovering a
newly created repository, so both waits poll. Every account poll sleeps first
and fetches second; there is no immediate first fetch.

`PollSettings.max_attempts=None` waits indefinitely. Set it to bound either
wait; running out of attempts raises `PollTimeoutError`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from cilink.models import Account
from cilink.travis_client import TravisClient

logger = logging.getLogger(__name__)

DEFAULT_POLL_DELAY_SECONDS = 2.0


class PollTimeoutError(RuntimeError):
    pass


@dataclass(frozen=True)
class PollSettings:
    delay_seconds: float = DEFAULT_POLL_DELAY_SECONDS
    max_attempts: int | None = None

    def __post_init__(self) -> None:
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1 when set")

    def exhausted(self, attempt: int) -> bool:
        return self.max_attempts is not None and attempt >= self.max_attempts


class Poller:
    def __init__(
        self,
        travis: TravisClient,
        settings: PollSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._travis = travis
        self._settings = settings or PollSettings()
        self._sleep = sleep

    def wait_for_sync(self, ci_token: str, account: Account | None, is_private: bool) -> Account:
        """
        Block until the account is no longer syncing and return its fresh state.

        `account=None` (no matching account was found) polls the authenticated user.
        """
        logger.warning("Waiting for TravisCI to sync account...")
        return self._poll_until_synced(ci_token, account, is_private)

    def _poll_until_synced(self, ci_token: str, account: Account | None, is_private: bool) -> Account:
        account_id = account.id if account is not None else None
        attempt = 0
        while True:
            attempt += 1
            self._sleep(self._settings.delay_seconds)
            current = self._travis.get_account(ci_token, account_id, is_private)
            if not current.syncing:
                logger.debug("Account %s finished syncing after %d poll(s)", current.login, attempt)
                return current
            if self._settings.exhausted(attempt):
                raise PollTimeoutError(
                    f"Travis CI account {current.login or account_id} was still syncing after {attempt} attempts"
                )

    def wait_for_repository(
        self,
        repository_name: str,
        username: str,
        ci_token: str,
        account: Account | None,
        is_private: bool,
    ) -> None:
        """
        Block until Travis CI lists `repository_name` for `username`.

        Each miss waits for the account to finish syncing and then asks Travis CI
        to sync with GitHub again before the next lookup.
        """
        attempt = 0
        announced = False
        while True:
            attempt += 1
            names = self._travis.list_repositories(username, ci_token, is_private)
            if repository_name in names:
                logger.debug("Travis CI lists %s/%s", username, repository_name)
                return
            if self._settings.exhausted(attempt):
                raise PollTimeoutError(
                    f"Travis CI did not list {username}/{repository_name} after {attempt} attempts"
                )
            if not announced:
                logger.warning("Waiting for %s/%s to appear on TravisCI...", username, repository_name)
                announced = True
            self._poll_until_synced(ci_token, account, is_private)
            self._travis.sync(ci_token, is_private)
