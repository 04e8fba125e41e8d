"""Exception hierarchy for mail-cli."""

from __future__ import annotations

from enum import Enum


class MailCliError(Exception):
    """Base class for every error raised by mail-cli."""

    #: True when the user has to log in again to recover.
    relogin_required = False


class ConfigError(MailCliError):
    pass


class AuthExchangeFailed(MailCliError):
    """The authorization code could not be exchanged for a token pair."""

    relogin_required = True

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class TokenRefreshFailed(MailCliError):
    """The refresh token was not accepted by the token endpoint."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class StorageReadFailed(MailCliError):
    pass


class StoragePersistFailed(MailCliError):
    pass


class UnknownAccount(MailCliError):
    relogin_required = True

    def __init__(self, account: str) -> None:
        super().__init__(f"No stored credentials for {account}")
        self.account = account


class ProtocolError(MailCliError):
    """Connection, transport or command level IMAP failure."""


class MailboxNotFound(MailCliError):
    def __init__(self, mailbox: str, detail: str = "") -> None:
        message = f"Mailbox {mailbox!r} could not be selected"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.mailbox = mailbox


class SessionFailure(Enum):
    REFRESH_FAILED = "refresh_failed"
    RETRY_FAILED = "retry_failed"


class SessionEstablishmentFailed(MailCliError):
    """Terminal failure of the direct + refresh-and-retry session cycle.

    ``status`` is the token endpoint's HTTP status for a refresh failure.
    ``transient`` marks failures caused by the network rather than by the
    provider rejecting the credentials; only the latter need a new login.
    """

    def __init__(
        self,
        account: str,
        reason: SessionFailure,
        detail: str = "",
        status: int | None = None,
        transient: bool = False,
    ) -> None:
        if reason is SessionFailure.REFRESH_FAILED and transient:
            message = f"Could not reach the token endpoint to refresh the access token for {account}"
        elif reason is SessionFailure.REFRESH_FAILED:
            message = f"Refreshing the access token for {account} was rejected"
        elif transient:
            message = f"Connection failed while retrying login for {account} with a refreshed token"
        else:
            message = f"{account} is still unauthenticated after refreshing the access token"
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.account = account
        self.reason = reason
        self.status = status
        self.transient = transient

    @property
    def relogin_required(self) -> bool:
        return not self.transient


class DateParseFailed(MailCliError):
    def __init__(self, index: int, raw: str | None) -> None:
        if raw is None:
            message = f"Message {index} has no Date header"
        else:
            message = f"Message {index} has an unparsable Date header: {raw!r}"
        super().__init__(message)
        self.index = index
        self.raw = raw


class MailParseFailed(MailCliError):
    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"Message {index} could not be parsed: {reason}")
        self.index = index
        self.reason = reason
