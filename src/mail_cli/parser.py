"""RFC 822 parsing helpers built on the standard ``email`` package."""

from __future__ import annotations

from datetime import datetime, timezone
from email import policy
from email.errors import MessageError
from email.message import EmailMessage
from email.parser import BytesHeaderParser, BytesParser
from email.utils import parsedate_to_datetime

from .errors import MailParseFailed
from .models import ParsedMail


def parse_date(value: str | None) -> datetime | None:
    """Parse an RFC 2822 date into an aware datetime, or None.

    A ``-0000`` zone (no zone information) is read as UTC so every result
    can be compared with every other.
    """
    if not value or not value.strip():
        return None
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError, OverflowError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def header_date(payload: bytes) -> tuple[datetime | None, str | None]:
    """Extract the Date header from a header-only fetch payload.

    Returns ``(parsed, raw)``; *raw* is None when there is no Date header.
    """
    headers = BytesHeaderParser().parsebytes(payload or b"")
    raw = headers.get("Date")
    if raw is None:
        return None, None
    raw = str(raw)
    return parse_date(raw), raw


def parse_mail(index: int, raw: bytes) -> ParsedMail:
    """Build a ParsedMail from a full message; raises MailParseFailed."""
    try:
        message = BytesParser(policy=policy.default).parsebytes(raw)
        return ParsedMail(
            sender=_header(message, "From"),
            to=_header(message, "To"),
            subject=_header(message, "Subject"),
            date=parse_date(_header(message, "Date")),
            body=_text_body(message),
        )
    except (LookupError, ValueError, OverflowError, UnicodeError, MessageError) as exc:
        raise MailParseFailed(index, str(exc) or type(exc).__name__) from exc


def _header(message: EmailMessage, name: str) -> str | None:
    value = message.get(name)
    return None if value is None else str(value)


def _text_body(message: EmailMessage) -> str:
    # Concatenate every inline text/plain part; fall back to text/html.
    plain: list[str] = []
    html: list[str] = []
    for part in message.walk():
        if part.is_multipart() or part.get_content_disposition() == "attachment":
            continue
        content_type = part.get_content_type()
        if content_type == "text/plain":
            plain.append(part.get_content())
        elif content_type == "text/html":
            html.append(part.get_content())
    return "".join(plain or html)
