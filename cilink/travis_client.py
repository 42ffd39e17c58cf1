"""
travis_client.py

Responsibility: Isolate all direct Travis CI REST API interaction.

Travis CI serves public repositories from api.travis-ci.org and private ones
from api.travis-ci.com, so every call takes `is_private` and picks the API
surface from it. Nothing outside this module builds Travis URLs or headers.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

import requests

from cilink.models import Account, EnvironmentVariable

TRAVIS_ORG_API = "https://api.travis-ci.org"
TRAVIS_PRO_API = "https://api.travis-ci.com"


class TravisError(RuntimeError):
    pass


class TravisClient:
    def __init__(
        self,
        org_api_base: str = TRAVIS_ORG_API,
        pro_api_base: str = TRAVIS_PRO_API,
        timeout: float = 30,
    ) -> None:
        self._org_api_base = org_api_base.rstrip("/")
        self._pro_api_base = pro_api_base.rstrip("/")
        self._timeout = timeout

    def _api_base(self, is_private: bool) -> str:
        return self._pro_api_base if is_private else self._org_api_base

    def _headers(self, token: str | None, api_version: int) -> dict[str, str]:
        headers = {"User-Agent": "Travis/1.0", "Content-Type": "application/json"}
        if api_version == 3:
            headers["Travis-API-Version"] = "3"
        else:
            headers["Accept"] = "application/vnd.travis-ci.2.1+json"
        if token:
            headers["Authorization"] = f"token {token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        is_private: bool,
        token: str | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        api_version: int = 2,
    ) -> Any:
        url = f"{self._api_base(is_private)}{path}"
        r = requests.request(
            method,
            url,
            headers=self._headers(token, api_version),
            json=json_body,
            params=params,
            timeout=self._timeout,
        )
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"error_message": r.text}
            message = payload
            if isinstance(payload, dict):
                message = payload.get("error_message") or payload.get("error") or payload
            raise TravisError(f"Travis CI API error {r.status_code} {method} {path}: {message}")
        if r.status_code == 204 or not r.content:
            return {}
        try:
            data = r.json()
        except ValueError as e:
            raise TravisError(f"Travis CI returned a non-JSON body for {method} {path}") from e
        if not isinstance(data, dict):
            raise TravisError(f"Travis CI returned an unexpected body for {method} {path}")
        return data

    def request_token(self, github_token: str, is_private: bool) -> str:
        data = self._request("POST", "/auth/github", is_private=is_private, json_body={"github_token": github_token})
        token = str(data.get("access_token") or "")
        if not token:
            raise TravisError("Travis CI did not return an access token.")
        return token

    def list_accounts(self, token: str, is_private: bool) -> list[Account]:
        data = self._request("GET", "/accounts", is_private=is_private, token=token, params={"all": "true"})
        with _payload("/accounts"):
            return [_account(raw) for raw in data.get("accounts", [])]

    def get_account(self, token: str, account_id: int | None, is_private: bool) -> Account:
        """
        Fetch the current state of a user account.

        With `account_id=None` the authenticated user is returned.
        """
        path = "/users" if account_id is None else f"/users/{account_id}"
        data = self._request("GET", path, is_private=is_private, token=token)
        user = data.get("user")
        if not isinstance(user, dict):
            raise TravisError(f"Travis CI returned no user for {path}")
        with _payload(path):
            return _account(user)

    def list_repositories(self, username: str, token: str, is_private: bool) -> list[str]:
        data = self._request(
            "GET",
            f"/owner/{username}/repos",
            is_private=is_private,
            token=token,
            params={"limit": 100},
            api_version=3,
        )
        with _payload(f"/owner/{username}/repos"):
            return [str(repo["name"]) for repo in data.get("repositories", [])]

    def sync(self, token: str, is_private: bool) -> None:
        self._request("POST", "/users/sync", is_private=is_private, token=token)

    def get_repository_id(self, token: str, username: str, repo_name: str, is_private: bool) -> int:
        data = self._request("GET", f"/repos/{username}/{repo_name}", is_private=is_private, token=token)
        repo = data.get("repo") or {}
        if not isinstance(repo, dict) or repo.get("id") is None:
            raise TravisError(f"Travis CI does not know repository {username}/{repo_name}")
        with _payload(f"/repos/{username}/{repo_name}"):
            return int(repo["id"])

    def activate_repository(self, repo_id: int, token: str, is_private: bool) -> None:
        self._request(
            "PUT",
            "/hooks",
            is_private=is_private,
            token=token,
            json_body={"hook": {"id": repo_id, "active": True}},
        )

    def set_environment_variable(self, token: str, repo_id: int, env_var: EnvironmentVariable, is_private: bool) -> None:
        self._request(
            "POST",
            "/settings/env_vars",
            is_private=is_private,
            token=token,
            params={"repository_id": repo_id},
            json_body={"env_var": {"name": env_var.name, "value": env_var.value, "public": env_var.public}},
        )


@contextmanager
def _payload(path: str) -> Iterator[None]:
    try:
        yield
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise TravisError(f"Travis CI returned a malformed payload for {path}: {e}") from e


def _account(raw: dict[str, Any]) -> Account:
    account_id = raw.get("id")
    return Account(
        id=int(account_id) if account_id is not None else None,
        login=str(raw.get("login") or ""),
        syncing=bool(raw.get("is_syncing", False)),
    )
