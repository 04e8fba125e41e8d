"""Tests for the OAuth2 token provider."""

import json
from urllib.parse import parse_qs, urlparse

import google.auth.exceptions
import pytest

from mail_cli.auth import TokenProvider
from mail_cli.errors import AuthExchangeFailed, TokenRefreshFailed
from mail_cli.models import AccountCredential

from fakes import FakeRequest, FakeResponse


def _ok(payload) -> FakeResponse:
    return FakeResponse(200, json.dumps(payload).encode())


def _form(call) -> dict:
    return {key: values[0] for key, values in parse_qs(call["body"].decode()).items()}


def test_exchange_code_posts_exact_form(oauth_config):
    request = FakeRequest(_ok({"access_token": "at", "refresh_token": "rt", "expires_in": 3599}))
    provider = TokenProvider(oauth_config, request=request)

    credential = provider.exchange_code("the-code")

    assert credential == AccountCredential(access_token="at", refresh_token="rt")
    call = request.calls[0]
    assert call["url"] == "https://oauth2.googleapis.com/token"
    assert call["method"] == "POST"
    assert call["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
    assert _form(call) == {
        "grant_type": "authorization_code",
        "redirect_uri": "urn:ietf:wg:oauth:2.0:oob",
        "client_id": "client-123",
        "client_secret": "secret-456",
        "code": "the-code",
    }


def test_exchange_code_http_error_carries_status(oauth_config):
    provider = TokenProvider(oauth_config, request=FakeRequest(FakeResponse(400, b"{}")))
    with pytest.raises(AuthExchangeFailed) as excinfo:
        provider.exchange_code("bad")
    assert excinfo.value.status == 400


def test_exchange_code_without_refresh_token_fails(oauth_config):
    provider = TokenProvider(oauth_config, request=FakeRequest(_ok({"access_token": "at"})))
    with pytest.raises(AuthExchangeFailed) as excinfo:
        provider.exchange_code("code")
    assert excinfo.value.status == 200


def test_exchange_code_undecodable_body(oauth_config):
    provider = TokenProvider(oauth_config, request=FakeRequest(FakeResponse(200, b"<html>")))
    with pytest.raises(AuthExchangeFailed):
        provider.exchange_code("code")


def test_refresh_posts_exact_form(oauth_config):
    request = FakeRequest(_ok({"access_token": "fresh", "expires_in": 3599}))
    provider = TokenProvider(oauth_config, request=request, timeout=5)

    assert provider.refresh("refresh-1") == "fresh"
    assert _form(request.calls[0]) == {
        "grant_type": "refresh_token",
        "client_id": "client-123",
        "client_secret": "secret-456",
        "refresh_token": "refresh-1",
    }
    assert request.calls[0]["timeout"] == 5


def test_refresh_rejected_carries_status(oauth_config):
    provider = TokenProvider(oauth_config, request=FakeRequest(FakeResponse(401, b"{}")))
    with pytest.raises(TokenRefreshFailed) as excinfo:
        provider.refresh("revoked")
    assert excinfo.value.status == 401


def test_refresh_transport_error_has_no_status(oauth_config):
    error = google.auth.exceptions.TransportError("connection reset")
    provider = TokenProvider(oauth_config, request=FakeRequest(error))
    with pytest.raises(TokenRefreshFailed) as excinfo:
        provider.refresh("refresh-1")
    assert excinfo.value.status is None


def test_tokens_do_not_appear_in_error_messages(oauth_config):
    provider = TokenProvider(oauth_config, request=FakeRequest(FakeResponse(500, b"oops")))
    with pytest.raises(TokenRefreshFailed) as excinfo:
        provider.refresh("super-secret-refresh")
    assert "super-secret-refresh" not in str(excinfo.value)


def test_authorization_url(oauth_config):
    url = urlparse(TokenProvider(oauth_config, request=FakeRequest()).authorization_url())
    query = {key: values[0] for key, values in parse_qs(url.query).items()}
    assert f"{url.scheme}://{url.netloc}{url.path}" == "https://accounts.google.com/o/oauth2/v2/auth"
    assert query == {
        "access_type": "offline",
        "client_id": "client-123",
        "redirect_uri": "urn:ietf:wg:oauth:2.0:oob",
        "response_type": "code",
        "scope": "https://mail.google.com/",
    }
