from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from contact_enricher.config import CRMSettings
from contact_enricher.models import CredentialChain


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, text="", headers=None):
        self.status_code = status_code
        self._json = json_data
        self.text = text
        self.headers = headers or {}

    def json(self):
        if self._json is None:
            raise ValueError("No JSON")
        return self._json


class FakeSession:
    """Stand-in for :class:`requests.Session` replaying queued responses."""

    def __init__(self, responses: Optional[List[Any]] = None) -> None:
        self.responses = list(responses or [])
        self.calls: List[Dict[str, Any]] = []

    def _next(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Unexpected {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._next("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._next("POST", url, **kwargs)


@pytest.fixture
def crm_settings() -> CRMSettings:
    return CRMSettings(
        auth_url="https://auth.example.com/oauth/",
        rest_login_url="https://rest.example.com/rest-services/",
        client_id="client-id",
        client_secret="client-secret",
        username="api.user",
        password="hunter2",
        timeout=5.0,
    )


@pytest.fixture
def chain() -> CredentialChain:
    return CredentialChain(
        auth_code="22:code",
        access_token="access",
        refresh_token="refresh",
        session_token="rest-token",
        session_base_url="https://rest22.example.com/rest-services/abc/",
    )


@pytest.fixture
def make_session():
    return FakeSession


@pytest.fixture
def make_response():
    return FakeResponse
