"""
Shared fixtures: configured settings, a fake Yahoo behind httpx.MockTransport,
and a TestClient wired to it.
"""

from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient

from app.config import settings
from backend.main import app
from backend.routes.auth import get_http_transport


class FakeYahoo:
    """
    Stand-in for Yahoo's token endpoint and fantasy API.

    Records every request; responses are configured per test.
    """

    def __init__(self):
        self.requests = []
        self.token_status = 200
        self.token_payload = {
            "access_token": "new-access",
            "refresh_token": "new-refresh",
            "expires_in": 3600,
            "token_type": "bearer",
        }
        self.api_status = 200
        self.api_json = {"fantasy_content": {}}
        self.api_headers = {"content-type": "application/json; charset=UTF-8"}
        self.raise_error = None

    @property
    def token_requests(self):
        return [r for r in self.requests if r.url.path == "/oauth2/get_token"]

    @property
    def api_requests(self):
        return [r for r in self.requests if r.url.path.startswith("/fantasy/")]

    def token_form(self, index=-1):
        """Decoded form body of a recorded token request."""
        body = self.token_requests[index].content.decode()
        return {k: v[0] for k, v in parse_qs(body).items()}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_error is not None:
            raise self.raise_error
        if request.url.path == "/oauth2/get_token":
            return httpx.Response(self.token_status, json=self.token_payload)
        return httpx.Response(self.api_status, json=self.api_json, headers=self.api_headers)


@pytest.fixture
def configured(monkeypatch):
    """Settings with client credentials and no explicit redirect URI."""
    monkeypatch.setattr(settings, "YAHOO_CLIENT_ID", "client-id")
    monkeypatch.setattr(settings, "YAHOO_CLIENT_SECRET", "client-secret")
    monkeypatch.setattr(settings, "YAHOO_REDIRECT_URI", "")
    monkeypatch.setattr(settings, "AUTH_LANDING_PATH", "/")
    return settings


@pytest.fixture
def fake_yahoo():
    return FakeYahoo()


@pytest.fixture
def transport(fake_yahoo):
    return httpx.MockTransport(fake_yahoo.handler)


@pytest.fixture
def client(transport):
    """TestClient that does not follow redirects and routes Yahoo calls to FakeYahoo."""
    app.dependency_overrides[get_http_transport] = lambda: transport
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
