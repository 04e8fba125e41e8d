"""OAuth2 token endpoint client: code exchange and access token refresh."""

from __future__ import annotations

import json
import logging
from urllib.parse import urlencode

import google.auth.exceptions
import google.auth.transport.requests

from .config import OAuthConfig
from .errors import AuthExchangeFailed, TokenRefreshFailed
from .models import AccountCredential

logger = logging.getLogger(__name__)

_FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


class TokenProvider:
    """Performs the two token exchanges against ``config.token_uri``.

    *request* is a google-auth transport callable; the default sends through
    ``requests``. Tokens are never logged.
    """

    def __init__(
        self,
        config: OAuthConfig,
        request=None,
        timeout: float | None = None,
    ) -> None:
        self.config = config
        self._request = request or google.auth.transport.requests.Request()
        self._timeout = timeout

    def authorization_url(self) -> str:
        """Return the consent page URL the user visits to obtain a code."""
        query = urlencode(
            {
                "access_type": "offline",
                "client_id": self.config.client_id,
                "redirect_uri": self.config.redirect_uri,
                "response_type": "code",
                "scope": " ".join(self.config.scopes),
            }
        )
        return f"{self.config.auth_uri}?{query}"

    def exchange_code(self, auth_code: str) -> AccountCredential:
        """Trade an authorization code for an access/refresh token pair."""
        params = {
            "grant_type": "authorization_code",
            "redirect_uri": self.config.redirect_uri,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": auth_code,
        }
        payload = self._post(params, AuthExchangeFailed, "authorization code exchange")
        access_token = payload.get("access_token")
        refresh_token = payload.get("refresh_token")
        if not isinstance(access_token, str) or not isinstance(refresh_token, str):
            raise AuthExchangeFailed(
                "Token response is missing access_token or refresh_token", status=200
            )
        return AccountCredential(access_token=access_token, refresh_token=refresh_token)

    def refresh(self, refresh_token: str) -> str:
        """Return a new access token; the refresh token is not rotated."""
        params = {
            "grant_type": "refresh_token",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "refresh_token": refresh_token,
        }
        payload = self._post(params, TokenRefreshFailed, "access token refresh")
        access_token = payload.get("access_token")
        if not isinstance(access_token, str):
            raise TokenRefreshFailed("Token response is missing access_token", status=200)
        return access_token

    def _post(self, params: dict[str, str], error_cls, action: str) -> dict:
        logger.debug("POST %s (%s)", self.config.token_uri, action)
        kwargs = {"timeout": self._timeout} if self._timeout is not None else {}
        try:
            response = self._request(
                url=self.config.token_uri,
                method="POST",
                body=urlencode(params).encode("utf-8"),
                headers=_FORM_HEADERS,
                **kwargs,
            )
        except google.auth.exceptions.TransportError as exc:
            raise error_cls(f"{action} failed: {exc}") from exc

        status = response.status
        if status != 200:
            logger.warning("%s returned HTTP %s", action, status)
            raise error_cls(f"{action} failed with HTTP {status}", status=status)

        data = response.data
        try:
            payload = json.loads(data.decode("utf-8") if isinstance(data, bytes) else data)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise error_cls(f"{action} returned an undecodable body", status=status) from exc
        if not isinstance(payload, dict):
            raise error_cls(f"{action} returned an unexpected body", status=status)
        return payload
