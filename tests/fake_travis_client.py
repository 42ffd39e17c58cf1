"""FakeTravisClient: test double for TravisClient.

Usage:
    fake = FakeTravisClient()
    fake.set_accounts([Account(1, "octocat")])
    fake.set_account_states([Account(1, "octocat", syncing=True), Account(1, "octocat")])
    fake.set_repository_listings([[], ["my-app"]])

Successive `get_account` / `list_repositories` calls walk through the given
sequences; the last entry repeats once the sequence is exhausted.
"""

from cilink.models import Account
from cilink.travis_client import TravisError

DEFAULT_ACCOUNT = Account(id=1, login="octocat", syncing=False)


class FakeTravisClient:
    def __init__(self):
        self.token = "travis-token"
        self.repo_id = 4242
        self._accounts = [DEFAULT_ACCOUNT]
        self._account_states = [DEFAULT_ACCOUNT]
        self._repository_listings = [["my-app"]]
        self._failures = {}
        self._fail_env_after = None
        self.env_vars_set = []
        self.calls = []

    def set_accounts(self, accounts):
        self._accounts = accounts

    def set_account_states(self, states):
        self._account_states = list(states)

    def set_repository_listings(self, listings):
        self._repository_listings = [list(names) for names in listings]

    def fail_on(self, method, error=None):
        self._failures[method] = error or TravisError(f"{method} failed")

    def fail_env_after(self, count):
        self._fail_env_after = count

    def call_names(self):
        return [call[0] for call in self.calls]

    def count(self, method):
        return self.call_names().count(method)

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self._failures:
            raise self._failures[name]

    @staticmethod
    def _next(sequence):
        return sequence.pop(0) if len(sequence) > 1 else sequence[0]

    def request_token(self, github_token, is_private):
        self._record("request_token", github_token, is_private)
        return self.token

    def list_accounts(self, token, is_private):
        self._record("list_accounts", token, is_private)
        return list(self._accounts)

    def get_account(self, token, account_id, is_private):
        self._record("get_account", token, account_id, is_private)
        return self._next(self._account_states)

    def list_repositories(self, username, token, is_private):
        self._record("list_repositories", username, token, is_private)
        return list(self._next(self._repository_listings))

    def sync(self, token, is_private):
        self._record("sync", token, is_private)

    def get_repository_id(self, token, username, repo_name, is_private):
        self._record("get_repository_id", token, username, repo_name, is_private)
        return self.repo_id

    def activate_repository(self, repo_id, token, is_private):
        self._record("activate_repository", repo_id, token, is_private)

    def set_environment_variable(self, token, repo_id, env_var, is_private):
        self._record("set_environment_variable", token, repo_id, env_var.name, is_private)
        if self._fail_env_after is not None and len(self.env_vars_set) >= self._fail_env_after:
            raise TravisError(f"could not set {env_var.name}")
        self.env_vars_set.append(env_var)
