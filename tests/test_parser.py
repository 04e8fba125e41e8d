"""Tests for RFC 822 parsing helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from mail_cli.errors import MailParseFailed
from mail_cli.parser import header_date, parse_date, parse_mail

from fakes import make_raw_message

MULTIPART = (
    b"From: Carol <carol@example.com>\r\n"
    b"To: dave@example.com\r\n"
    b"Subject: =?utf-8?q?Caf=C3=A9_plans?=\r\n"
    b"Date: Fri, 05 Jan 2024 18:30:00 +0100\r\n"
    b"MIME-Version: 1.0\r\n"
    b'Content-Type: multipart/mixed; boundary="XX"\r\n'
    b"\r\n"
    b"--XX\r\n"
    b"Content-Type: text/plain; charset=utf-8\r\n"
    b"\r\n"
    b"First part. \r\n"
    b"--XX\r\n"
    b"Content-Type: text/plain; charset=utf-8\r\n"
    b"\r\n"
    b"Second part.\r\n"
    b"--XX\r\n"
    b"Content-Type: text/plain\r\n"
    b'Content-Disposition: attachment; filename="notes.txt"\r\n'
    b"\r\n"
    b"attached notes\r\n"
    b"--XX--\r\n"
)


def test_parse_simple_mail():
    mail = parse_mail(1, make_raw_message())
    assert mail.sender == "Alice Smith <alice@example.com>"
    assert mail.to == "bob@example.com"
    assert mail.subject == "Hello"
    assert mail.date == datetime(2024, 1, 3, 10, tzinfo=timezone.utc)
    assert "see you tomorrow" in mail.body


def test_parse_multipart_concatenates_inline_text_parts():
    mail = parse_mail(4, MULTIPART)
    assert mail.subject == "Café plans"
    assert "First part." in mail.body
    assert "Second part." in mail.body
    assert mail.body.index("First part.") < mail.body.index("Second part.")
    assert "attached notes" not in mail.body
    assert mail.date.utcoffset() == timedelta(hours=1)


def test_html_only_body_is_used():
    raw = (
        b"Subject: html\r\n"
        b"Content-Type: text/html; charset=utf-8\r\n"
        b"\r\n"
        b"<p>hello</p>\r\n"
    )
    assert "<p>hello</p>" in parse_mail(1, raw).body


def test_missing_headers_are_none():
    mail = parse_mail(1, b"\r\njust a body\r\n")
    assert mail.sender is None
    assert mail.to is None
    assert mail.subject is None
    assert mail.date is None
    assert "just a body" in mail.body


def test_unknown_charset_is_a_parse_failure():
    raw = (
        b"Subject: odd\r\n"
        b"Content-Type: text/plain; charset=no-such-charset\r\n"
        b"\r\n"
        b"body\r\n"
    )
    with pytest.raises(MailParseFailed) as excinfo:
        parse_mail(9, raw)
    assert excinfo.value.index == 9


def test_parse_date_without_zone_is_utc():
    parsed = parse_date("Wed, 03 Jan 2024 10:00:00 -0000")
    assert parsed == datetime(2024, 1, 3, 10, tzinfo=timezone.utc)
    assert parsed.tzinfo is not None


@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        "   ",
        "garbage",
        "Wed, 03 Jan 99999999999999999999 10:00:00 +0000",
    ],
)
def test_parse_date_rejects(value):
    assert parse_date(value) is None


def test_header_date_reports_raw_value():
    parsed, raw = header_date(b"Date: Tue, 02 Jan 2024 09:00:00 +0000\r\n\r\n")
    assert raw == "Tue, 02 Jan 2024 09:00:00 +0000"
    assert parsed == datetime(2024, 1, 2, 9, tzinfo=timezone.utc)


def test_header_date_absent():
    assert header_date(b"\r\n") == (None, None)
