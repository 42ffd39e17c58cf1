"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to api.github.com
- Interprets GitHub API responses / error payloads

Only the access-token lifecycle is needed here: minting a personal token from a
username/password pair and deleting it again once CI activation is done.
"""

from __future__ import annotations

from typing import Any

import requests
from requests.auth import HTTPBasicAuth

from cilink.models import Credential

# Scopes Travis CI needs to list repositories, install hooks and report statuses.
TRAVIS_SCOPES: tuple[str, ...] = (
    "read:org",
    "user:email",
    "repo_deployment",
    "repo:status",
    "write:repo_hook",
    "repo",
)


class GitHubError(RuntimeError):
    pass


class GitHubClient:
    def __init__(self, token: str | None = None, api_base: str = "https://api.github.com", timeout: float = 30) -> None:
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "cilink",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _request(
        self,
        method: str,
        url: str,
        *,
        auth: HTTPBasicAuth | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        if not url.startswith("http"):
            url = f"{self._api_base}{url}"
        headers = self._headers()
        if auth is not None:
            headers.pop("Authorization", None)
        r = requests.request(method, url, headers=headers, auth=auth, json=json_body, timeout=self._timeout)
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            raise GitHubError(f"GitHub API error {r.status_code} {method} {url}: {payload.get('message', payload)}")
        if r.status_code == 204:
            return None
        return r.json()

    def request_access_token(
        self,
        username: str,
        password: str,
        *,
        note: str = "cilink CI activation",
        scopes: tuple[str, ...] = TRAVIS_SCOPES,
    ) -> Credential:
        """
        Mint a personal access token for `username`.

        The returned credential carries the authorization URL so that it can be
        deleted with `delete_access_token` once it is no longer needed.
        """
        data = self._request(
            "POST",
            "/authorizations",
            auth=HTTPBasicAuth(username, password),
            json_body={"scopes": list(scopes), "note": note},
        )
        token = str((data or {}).get("token") or "")
        if not token:
            raise GitHubError("GitHub did not return a token for the new authorization.")
        return Credential(token=token, url=data.get("url"))

    def delete_access_token(self, url: str, username: str, password: str) -> None:
        self._request("DELETE", url, auth=HTTPBasicAuth(username, password))
