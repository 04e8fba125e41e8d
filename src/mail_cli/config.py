"""Runtime configuration, sourced once at start-up and passed down explicitly."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .constants import (
    DEFAULT_TIMEOUT,
    GOOGLE_AUTH_URI,
    GOOGLE_IMAP_HOST,
    GOOGLE_IMAP_PORT,
    GOOGLE_TOKEN_URI,
    MAIL_SCOPES,
    OOB_REDIRECT_URI,
)
from .errors import ConfigError

ENV_CLIENT_ID = "CLIENT_ID"
ENV_CLIENT_SECRET = "CLIENT_SECRET"


@dataclass(frozen=True)
class OAuthConfig:
    """OAuth2 client settings for the token endpoint."""

    client_id: str
    client_secret: str
    redirect_uri: str = OOB_REDIRECT_URI
    scopes: tuple[str, ...] = MAIL_SCOPES
    token_uri: str = GOOGLE_TOKEN_URI
    auth_uri: str = GOOGLE_AUTH_URI

    @classmethod
    def from_env(cls, environ=None) -> OAuthConfig:
        """Build the config from CLIENT_ID / CLIENT_SECRET.

        The CLI loads a ``.env`` file with python-dotenv before calling this,
        so values may come from either the shell or that file.
        """
        environ = os.environ if environ is None else environ
        client_id = environ.get(ENV_CLIENT_ID, "").strip()
        client_secret = environ.get(ENV_CLIENT_SECRET, "").strip()
        missing = [
            name
            for name, value in ((ENV_CLIENT_ID, client_id), (ENV_CLIENT_SECRET, client_secret))
            if not value
        ]
        if missing:
            raise ConfigError(
                f"Missing OAuth client setting(s): {', '.join(missing)}. "
                "Set them in the environment or in a .env file."
            )
        return cls(client_id=client_id, client_secret=client_secret)


@dataclass(frozen=True)
class ImapSettings:
    host: str = GOOGLE_IMAP_HOST
    port: int = GOOGLE_IMAP_PORT
    timeout: float | None = DEFAULT_TIMEOUT
