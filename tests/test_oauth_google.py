"""Tests for Google OAuth direct integration."""
from urllib.parse import parse_qs, urlparse

import pytest
import requests
from fastapi import HTTPException, status

from feedback_api.auth.oauth import GoogleOAuthClient
from feedback_api.models import User, UserRole


class DummyResp:
    def __init__(self, status_code, data):
        self.status_code = status_code
        self._data = data

    def json(self):
        return self._data


@pytest.fixture
def oauth_client(client, monkeypatch):
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "dummy-client-id")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "dummy-secret")
    monkeypatch.setenv("GOOGLE_REDIRECT_URI", "http://testserver/auth/oauth/google/callback")
    monkeypatch.delenv("FRONTEND_OAUTH_REDIRECT_URI", raising=False)
    return client


@pytest.fixture
def google_ok(monkeypatch):
    def fake_post(url, data=None, timeout=None):
        assert "authorization_code" in (data or {}).get("grant_type", "")
        return DummyResp(200, {"access_token": "ya29.fake"})

    def fake_get(url, headers=None, timeout=None):
        assert headers and headers.get("Authorization", "").startswith("Bearer ")
        return DummyResp(200, {"email": "oauth.user@example.com", "name": "OAuth User"})

    monkeypatch.setattr("feedback_api.auth.oauth.requests.post", fake_post)
    monkeypatch.setattr("feedback_api.auth.oauth.requests.get", fake_get)


def start_login(client):
    resp = client.get("/auth/oauth/google/login", follow_redirects=False)
    state = resp.cookies.get("oauth_state")
    assert state
    return state


def test_google_login_not_configured(client, monkeypatch):
    monkeypatch.delenv("GOOGLE_CLIENT_ID", raising=False)
    resp = client.get("/auth/oauth/google/login", follow_redirects=False)
    assert resp.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR


def test_google_login_redirect_sets_state_cookie(oauth_client):
    resp = oauth_client.get("/auth/oauth/google/login", follow_redirects=False)
    assert resp.status_code == status.HTTP_307_TEMPORARY_REDIRECT

    location = urlparse(resp.headers["location"])
    params = parse_qs(location.query)
    assert location.netloc == "accounts.google.com"
    assert params["client_id"] == ["dummy-client-id"]
    assert params["scope"] == ["openid email profile"]
    assert params["state"] == [resp.cookies.get("oauth_state")]


def test_google_callback_success(oauth_client, google_ok, db_session):
    state = start_login(oauth_client)

    cb_resp = oauth_client.get(
        "/auth/oauth/google/callback",
        params={"code": "dummy-code", "state": state},
    )
    assert cb_resp.status_code == status.HTTP_200_OK
    data = cb_resp.json()
    assert "access_token" in data
    assert "refresh_token" in data
    assert data["token_type"] == "bearer"
    assert data["email"] == "oauth.user@example.com"
    assert data["name"] == "OAuth User"

    user = db_session.query(User).filter_by(email="oauth.user@example.com").one()
    assert user.role == UserRole.student
    assert user.oauth_provider == "google"

    me = oauth_client.get("/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == status.HTTP_200_OK


def test_google_callback_redirects_to_frontend(oauth_client, google_ok, monkeypatch):
    monkeypatch.setenv("FRONTEND_OAUTH_REDIRECT_URI", "http://localhost:5173/oauth/done")
    state = start_login(oauth_client)

    cb_resp = oauth_client.get(
        "/auth/oauth/google/callback",
        params={"code": "dummy-code", "state": state},
        follow_redirects=False,
    )
    assert cb_resp.status_code == status.HTTP_307_TEMPORARY_REDIRECT
    location = urlparse(cb_resp.headers["location"])
    assert location.path == "/oauth/done"
    fragment = parse_qs(location.fragment)
    assert fragment["token_type"] == ["bearer"]
    assert fragment["access_token"][0]
    assert fragment["refresh_token"][0]


def test_google_callback_rejects_bad_state(oauth_client, google_ok):
    start_login(oauth_client)

    cb_resp = oauth_client.get(
        "/auth/oauth/google/callback",
        params={"code": "dummy-code", "state": "forged"},
    )
    assert cb_resp.status_code == status.HTTP_400_BAD_REQUEST


def test_google_callback_token_exchange_failure(oauth_client, monkeypatch):
    def fake_post(url, data=None, timeout=None):
        return DummyResp(400, {"error": "invalid_grant"})

    monkeypatch.setattr("feedback_api.auth.oauth.requests.post", fake_post)
    state = start_login(oauth_client)

    cb_resp = oauth_client.get(
        "/auth/oauth/google/callback",
        params={"code": "dummy-code", "state": state},
    )
    assert cb_resp.status_code == status.HTTP_401_UNAUTHORIZED


def test_google_callback_network_error(oauth_client, monkeypatch):
    def fake_post(url, data=None, timeout=None):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr("feedback_api.auth.oauth.requests.post", fake_post)
    state = start_login(oauth_client)

    cb_resp = oauth_client.get(
        "/auth/oauth/google/callback",
        params={"code": "dummy-code", "state": state},
    )
    assert cb_resp.status_code == status.HTTP_401_UNAUTHORIZED


def test_google_callback_without_email(oauth_client, monkeypatch):
    monkeypatch.setattr(
        "feedback_api.auth.oauth.requests.post",
        lambda url, data=None, timeout=None: DummyResp(200, {"access_token": "ya29.fake"}),
    )
    monkeypatch.setattr(
        "feedback_api.auth.oauth.requests.get",
        lambda url, headers=None, timeout=None: DummyResp(200, {"name": "No Email"}),
    )
    state = start_login(oauth_client)

    cb_resp = oauth_client.get(
        "/auth/oauth/google/callback",
        params={"code": "dummy-code", "state": state},
    )
    assert cb_resp.status_code == status.HTTP_400_BAD_REQUEST


def test_fetch_identity_falls_back_to_given_name(monkeypatch):
    monkeypatch.setattr(
        "feedback_api.auth.oauth.requests.post",
        lambda url, data=None, timeout=None: DummyResp(200, {"access_token": "ya29.fake"}),
    )
    monkeypatch.setattr(
        "feedback_api.auth.oauth.requests.get",
        lambda url, headers=None, timeout=None: DummyResp(200, {"email": "g@example.com", "given_name": "Gee"}),
    )
    google = GoogleOAuthClient("id", "secret", "http://testserver/cb")

    identity = google.fetch_identity("code")
    assert identity.email == "g@example.com"
    assert identity.name == "Gee"


def test_token_response_without_access_token(monkeypatch):
    monkeypatch.setattr(
        "feedback_api.auth.oauth.requests.post",
        lambda url, data=None, timeout=None: DummyResp(200, {}),
    )
    with pytest.raises(HTTPException) as exc:
        GoogleOAuthClient("id", "secret", "http://testserver/cb").fetch_identity("code")
    assert exc.value.status_code == status.HTTP_401_UNAUTHORIZED
