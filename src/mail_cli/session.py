"""Open an IMAP session, refreshing the access token once if it was rejected."""

from __future__ import annotations

import logging
from enum import Enum

from .auth import TokenProvider
from .errors import (
    ProtocolError,
    SessionEstablishmentFailed,
    SessionFailure,
    TokenRefreshFailed,
)
from .imap_client import AuthAttempt, ImapConnector, ImapSession
from .store import CredentialStore

logger = logging.getLogger(__name__)


class SessionState(Enum):
    DIRECT = "direct"
    REFRESHED = "refreshed"


class SessionEstablisher:
    """Two-state login: try the stored token, then refresh and retry once.

    On a successful refresh the new access token is persisted before the
    retry, so it survives even if the retry or the process dies.
    """

    def __init__(
        self,
        store: CredentialStore,
        tokens: TokenProvider,
        connector: ImapConnector,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.connector = connector

    def establish(self, account: str) -> ImapSession:
        credential = self.store.get(account)
        state = SessionState.DIRECT
        access_token = credential.access_token

        while True:
            attempt = self._open(account, access_token, state)
            if attempt.ok:
                logger.debug("Session for %s opened (%s)", account, state.value)
                return attempt.session

            if state is SessionState.REFRESHED:
                raise SessionEstablishmentFailed(
                    account, SessionFailure.RETRY_FAILED, attempt.rejection or ""
                )

            logger.info("Access token for %s rejected, refreshing", account)
            try:
                access_token = self.tokens.refresh(credential.refresh_token)
            except TokenRefreshFailed as exc:
                # No HTTP status means the endpoint was never reached.
                raise SessionEstablishmentFailed(
                    account,
                    SessionFailure.REFRESH_FAILED,
                    str(exc),
                    status=exc.status,
                    transient=exc.status is None,
                ) from exc

            # StoragePersistFailed propagates: no retry without a saved token.
            self.store.upsert(account, credential.with_access_token(access_token))
            state = SessionState.REFRESHED

    def _open(self, account: str, access_token: str, state: SessionState) -> AuthAttempt:
        try:
            return self.connector.open(account, access_token)
        except ProtocolError as exc:
            if state is SessionState.DIRECT:
                raise
            # The refreshed token is already stored; a later run can reuse it.
            raise SessionEstablishmentFailed(
                account, SessionFailure.RETRY_FAILED, str(exc), transient=True
            ) from exc
