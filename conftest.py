"""Shared test fakes for the HTTP layer."""

import json

import pytest
import requests

from config import Config


class FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200, url: str = ""):
        self.text = text
        self.status_code = status_code
        self.url = url

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Answers GET requests by the first route whose key is a substring of the URL.

    A route value may be a FakeResponse, an exception instance to raise, or a
    string body.
    """

    def __init__(self, routes: dict | None = None):
        self.routes = routes or {}
        self.calls = []

    def get(self, url, timeout=None, **kwargs):
        self.calls.append(url)
        for key, value in self.routes.items():
            if key in url:
                if isinstance(value, Exception):
                    raise value
                if isinstance(value, str):
                    return FakeResponse(value, url=url)
                value.url = url
                return value
        raise requests.ConnectionError(f"No route for {url}")

    def called(self, fragment: str) -> bool:
        return any(fragment in url for url in self.calls)


@pytest.fixture
def config(tmp_path):
    cfg = Config()
    cfg.storage.path = tmp_path / "cookbook.json"
    return cfg


@pytest.fixture
def fake_session():
    return FakeSession()
