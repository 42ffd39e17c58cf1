"""
models.py

Responsibility: Plain value types shared by the clients and the activation pipeline.

None of these objects are persisted; they live for one `enable_ci` run.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Credential:
    """
    A bearer token issued for a single user.

    `url` is the issuing URL and is only set when this tool minted the token,
    which is also what makes the token eligible for revocation.
    """

    token: str
    url: str | None = None

    @property
    def minted(self) -> bool:
        return self.url is not None

    def __repr__(self) -> str:
        return f"Credential(token='***', url={self.url!r})"


@dataclass(frozen=True)
class Account:
    id: int | None
    login: str
    syncing: bool = False


@dataclass(frozen=True)
class RepositoryRef:
    owner: str
    name: str
    private: bool = False

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class EnvironmentVariable:
    """A repository setting on the CI side; `public` makes the value visible in build logs."""

    name: str
    value: str
    public: bool = False

    def __repr__(self) -> str:
        shown = self.value if self.public else "***"
        return f"EnvironmentVariable(name={self.name!r}, value={shown!r}, public={self.public})"
