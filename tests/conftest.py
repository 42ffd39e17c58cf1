"""Shared fixtures for cilink tests."""

import os
import sys

import pytest

# Ensure tests/ is on sys.path so test files can import the fakes unambiguously.
sys.path.insert(0, os.path.dirname(__file__))

from fake_github_client import FakeGitHubClient  # noqa: E402
from fake_travis_client import FakeTravisClient  # noqa: E402


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.content = b"" if payload is None and not text else b"x"

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class RecordingTransport:
    """Replaces requests.request; returns queued responses and records each call."""

    def __init__(self):
        self.requests = []
        self._responses = []

    def queue(self, status_code=200, payload=None, text=""):
        self._responses.append(FakeResponse(status_code, payload, text))

    def __call__(self, method, url, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        if not self._responses:
            return FakeResponse(204)
        return self._responses.pop(0)


@pytest.fixture
def transport(monkeypatch):
    recorder = RecordingTransport()
    monkeypatch.setattr("requests.request", recorder)
    return recorder


@pytest.fixture
def fake_travis():
    return FakeTravisClient()


@pytest.fixture
def fake_github():
    return FakeGitHubClient()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def record_sleep(sleeps):
    return sleeps.append
