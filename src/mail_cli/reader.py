"""Fetch the N most recently dated messages of a mailbox, newest first."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from .errors import DateParseFailed, MailParseFailed
from .filters import build_header_filter
from .imap_client import ImapSession
from .models import (
    DatedMessage,
    DateFailurePolicy,
    HeaderField,
    HeaderFieldSelector,
    MailResult,
)
from .parser import header_date, parse_mail

logger = logging.getLogger(__name__)

DATE_ONLY = build_header_filter({HeaderFieldSelector(HeaderField.DATE)})


def rank_by_date(
    indices: Iterable[int],
    headers: Mapping[int, bytes],
    on_undated: DateFailurePolicy = DateFailurePolicy.ABORT,
) -> list[DatedMessage]:
    """Order messages newest first by their Date header.

    *headers* maps sequence numbers to Date-only header payloads. A message
    with a missing or unparsable date raises DateParseFailed, or is left out
    under ``DateFailurePolicy.SKIP``. Equal dates keep listing order.
    """
    dated: list[DatedMessage] = []
    for index in indices:
        parsed, raw = header_date(headers.get(index, b""))
        if parsed is None:
            error = DateParseFailed(index, raw)
            if on_undated is DateFailurePolicy.ABORT:
                raise error
            logger.warning("Skipping message: %s", error)
            continue
        dated.append(DatedMessage(date=parsed, index=index))

    return sorted(dated, key=lambda message: message.date, reverse=True)


def fetch_n_recent(
    session: ImapSession,
    mailbox: str,
    n: int,
    on_undated: DateFailurePolicy = DateFailurePolicy.ABORT,
) -> list[MailResult]:
    """Return up to *n* parsed mails from *mailbox*, newest first.

    Sequence numbers say nothing about age, so every message's Date header
    is fetched and ranked before the winners are downloaded in one batch.
    Each slot of the result succeeds or fails on its own.
    """
    session.select(mailbox)
    indices = session.list_all()
    logger.debug("%s holds %d message(s)", mailbox, len(indices))
    if n <= 0 or not indices:
        return []

    headers = session.fetch(indices, DATE_ONLY)
    ranked = rank_by_date(indices, headers, on_undated)
    chosen = [message.index for message in ranked[:n]]
    if not chosen:
        return []

    raw_messages = session.fetch(chosen)

    results: list[MailResult] = []
    for index in chosen:
        raw = raw_messages.get(index)
        if raw is None:
            error = MailParseFailed(index, "message missing from FETCH response")
            logger.warning("%s", error)
            results.append(MailResult(index=index, error=error))
            continue
        try:
            results.append(MailResult(index=index, mail=parse_mail(index, raw)))
        except MailParseFailed as exc:
            logger.warning("%s", exc)
            results.append(MailResult(index=index, error=exc))
    return results
