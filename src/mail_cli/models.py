"""Data models for mail-cli."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .errors import MailParseFailed


@dataclass(frozen=True)
class AccountCredential:
    """Token pair stored for one account."""

    access_token: str
    refresh_token: str

    def with_access_token(self, access_token: str) -> AccountCredential:
        # The refresh token is never rotated on refresh.
        return AccountCredential(access_token=access_token, refresh_token=self.refresh_token)


class HeaderField(Enum):
    """Logical header fields, in canonical rendering order."""

    SUBJECT = "SUBJECT"
    TO = "TO"
    FROM = "FROM"
    DATE = "DATE"


@dataclass(frozen=True)
class HeaderFieldSelector:
    """A header field with an optional predicate value.

    Equality and hashing use the field only: a set keeps the first selector
    added for a field and drops later ones with other values.
    """

    field: HeaderField
    value: Any = dataclasses.field(default=None, compare=False)


class DateFailurePolicy(Enum):
    ABORT = "abort"  # raise DateParseFailed for the whole ranking
    SKIP = "skip"  # leave the message out of the ranking


@dataclass(frozen=True)
class DatedMessage:
    date: datetime
    index: int


@dataclass(frozen=True)
class ParsedMail:
    """Read-only projection of a raw RFC 822 message."""

    sender: str | None = None
    to: str | None = None
    subject: str | None = None
    date: datetime | None = None
    body: str = ""


@dataclass(frozen=True)
class MailResult:
    """One requested message slot: either a parsed mail or its parse error."""

    index: int
    mail: ParsedMail | None = None
    error: MailParseFailed | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
