"""Shared fixtures for tests."""

from __future__ import annotations

import pytest

from mail_cli.config import OAuthConfig
from mail_cli.models import AccountCredential


@pytest.fixture
def oauth_config() -> OAuthConfig:
    return OAuthConfig(client_id="client-123", client_secret="secret-456")


@pytest.fixture
def credential() -> AccountCredential:
    return AccountCredential(access_token="access-old", refresh_token="refresh-1")
