"""IMAP connection handling: XOAUTH2 login and the commands the reader needs."""

from __future__ import annotations

import imaplib
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .config import ImapSettings
from .constants import MAX_MESSAGE_SET_LENGTH
from .errors import MailboxNotFound, ProtocolError

logger = logging.getLogger(__name__)


def xoauth2_string(account: str, access_token: str) -> str:
    """SASL XOAUTH2 initial client response (before base64, done by imaplib)."""
    return f"user={account}\x01auth=Bearer {access_token}\x01\x01"


class XOAuth2Authenticator:
    """``imaplib`` authobject for the XOAUTH2 mechanism.

    The first challenge is answered with the credentials. On rejection the
    server sends a second challenge holding a JSON error; that one gets an
    empty response so the server completes the command with NO.
    """

    def __init__(self, account: str, access_token: str) -> None:
        self._response = xoauth2_string(account, access_token).encode("utf-8")
        self._sent = False

    def __call__(self, challenge: bytes) -> bytes:
        if self._sent:
            logger.debug("XOAUTH2 error challenge: %r", challenge)
            return b""
        self._sent = True
        return self._response


@dataclass(frozen=True)
class AuthAttempt:
    """Outcome of one login: an open session, or why the server said no."""

    session: ImapSession | None = None
    rejection: str | None = None

    @property
    def ok(self) -> bool:
        return self.session is not None

    @classmethod
    def accepted(cls, session: ImapSession) -> AuthAttempt:
        return cls(session=session)

    @classmethod
    def rejected(cls, reason: str) -> AuthAttempt:
        return cls(rejection=reason)


class ImapConnector:
    """Opens authenticated IMAP sessions for an account."""

    def __init__(self, settings: ImapSettings | None = None, imap_factory=imaplib.IMAP4_SSL) -> None:
        self.settings = settings or ImapSettings()
        self._imap_factory = imap_factory

    def open(self, account: str, access_token: str) -> AuthAttempt:
        """Connect and authenticate.

        An authentication rejection is returned as ``AuthAttempt.rejected``;
        transport failures raise ProtocolError.
        """
        host, port = self.settings.host, self.settings.port
        logger.debug("Connecting to %s:%s as %s", host, port, account)
        try:
            conn = self._imap_factory(host, port, timeout=self.settings.timeout)
        except (OSError, imaplib.IMAP4.error) as exc:
            raise ProtocolError(f"Cannot connect to {host}:{port}: {exc}") from exc

        try:
            conn.authenticate("XOAUTH2", XOAuth2Authenticator(account, access_token))
        except (imaplib.IMAP4.abort, OSError) as exc:
            _close_quietly(conn)
            raise ProtocolError(f"Connection lost during authentication: {exc}") from exc
        except imaplib.IMAP4.error as exc:
            _close_quietly(conn)
            logger.info("Server rejected XOAUTH2 login for %s", account)
            return AuthAttempt.rejected(str(exc))

        logger.debug("Authenticated %s", account)
        return AuthAttempt.accepted(ImapSession(conn))


class ImapSession:
    """An authenticated IMAP connection.

    Use as a context manager so that LOGOUT runs on every exit path.
    """

    def __init__(self, conn: imaplib.IMAP4) -> None:
        self._conn = conn
        self._closed = False

    def select(self, mailbox: str) -> int:
        """EXAMINE *mailbox* (read-only) and return its message count."""
        try:
            typ, data = self._conn.select(_quote_mailbox(mailbox), readonly=True)
        except imaplib.IMAP4.abort as exc:
            raise ProtocolError(f"SELECT {mailbox} failed: {exc}") from exc
        except imaplib.IMAP4.error as exc:
            raise MailboxNotFound(mailbox, str(exc)) from exc
        except OSError as exc:
            raise ProtocolError(f"SELECT {mailbox} failed: {exc}") from exc
        if typ != "OK":
            raise MailboxNotFound(mailbox, _describe(data))
        try:
            return int(data[0])
        except (TypeError, ValueError, IndexError):
            return 0

    def list_all(self) -> list[int]:
        """Return every message sequence number in the selected mailbox."""
        data = self._command("search", None, "ALL")
        if not data or not data[0]:
            return []
        try:
            return [int(token) for token in data[0].split()]
        except ValueError as exc:
            raise ProtocolError(f"Unexpected SEARCH response: {data[0]!r}") from exc

    def fetch(self, indices: Iterable[int], fields: str | None = None) -> dict[int, bytes]:
        """Fetch messages by sequence number.

        With *fields* (a ``HEADER.FIELDS`` expression) only that header subset
        is fetched, otherwise the full RFC 822 message. Returns a mapping from
        sequence number to payload; the server's response order is not kept.
        Consecutive numbers are sent as ranges and long sets are split over
        several FETCH commands.
        """
        item = f"(BODY.PEEK[{fields}])" if fields else "(RFC822)"
        messages: dict[int, bytes] = {}
        for message_set in message_sets(indices):
            data = self._command("fetch", message_set, item)
            messages.update(_parse_fetch(data))
        return messages

    def logout(self) -> None:
        if self._closed:
            return
        self._closed = True
        _close_quietly(self._conn)

    def _command(self, name: str, *args):
        try:
            typ, data = getattr(self._conn, name)(*args)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise ProtocolError(f"IMAP {name.upper()} failed: {exc}") from exc
        if typ != "OK":
            raise ProtocolError(f"IMAP {name.upper()} returned {typ}: {_describe(data)}")
        return data

    # --- context manager ---

    def __enter__(self) -> ImapSession:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.logout()


def message_sets(indices: Iterable[int], limit: int = MAX_MESSAGE_SET_LENGTH) -> list[str]:
    """Render sequence numbers as IMAP message sets no longer than *limit*.

    Duplicates are dropped and runs collapse to ``first:last``, so
    ``[5, 1, 2, 3]`` becomes ``["1:3,5"]``.
    """
    ranges: list[tuple[int, int]] = []
    for index in sorted(set(indices)):
        if ranges and ranges[-1][1] == index - 1:
            ranges[-1] = (ranges[-1][0], index)
        else:
            ranges.append((index, index))

    sets: list[str] = []
    current = ""
    for first, last in ranges:
        part = str(first) if first == last else f"{first}:{last}"
        if current and len(current) + 1 + len(part) > limit:
            sets.append(current)
            current = part
        else:
            current = f"{current},{part}" if current else part
    if current:
        sets.append(current)
    return sets


def _parse_fetch(data) -> dict[int, bytes]:
    # imaplib yields (b'<seq> (<item> {<len>}', payload) tuples split by b')'.
    messages: dict[int, bytes] = {}
    for part in data or []:
        if not isinstance(part, tuple) or len(part) < 2:
            continue
        head = part[0].decode("ascii", "replace") if isinstance(part[0], bytes) else str(part[0])
        try:
            index = int(head.split(None, 1)[0])
        except (IndexError, ValueError) as exc:
            raise ProtocolError(f"Unexpected FETCH response: {head!r}") from exc
        messages[index] = part[1]
    return messages


def _quote_mailbox(name: str) -> str:
    if name.startswith('"') and name.endswith('"'):
        return name
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _describe(data) -> str:
    parts = []
    for item in data or []:
        if isinstance(item, bytes):
            parts.append(item.decode("utf-8", "replace"))
        elif item is not None:
            parts.append(str(item))
    return " ".join(parts)


def _close_quietly(conn) -> None:
    try:
        conn.logout()
    except (imaplib.IMAP4.error, OSError) as exc:
        logger.debug("Ignoring error on IMAP logout: %s", exc)
