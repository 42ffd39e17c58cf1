"""Find the Travis CI account that belongs to a GitHub user."""

from __future__ import annotations

from cilink.models import Account
from cilink.travis_client import TravisClient


class AccountNotFoundError(LookupError):
    pass


def resolve_account(travis: TravisClient, ci_token: str, username: str, is_private: bool) -> Account:
    """
    Return the account whose login equals `username` (case-sensitive).

    A user can have many accounts (one per organization) or none at all, e.g.
    with organization-only access. The latter raises `AccountNotFoundError`,
    which callers are expected to handle explicitly.
    """
    for account in travis.list_accounts(ci_token, is_private):
        if account.login == username:
            return account
    raise AccountNotFoundError(f"No Travis CI account with login {username!r}")
