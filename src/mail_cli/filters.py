"""Build IMAP header field selections for partial fetches."""

from __future__ import annotations

from collections.abc import Iterable

from .models import HeaderField, HeaderFieldSelector

_FIELD_ORDER = {member: position for position, member in enumerate(HeaderField)}


def build_header_filter(
    fields: Iterable[HeaderFieldSelector],
    negated: bool = False,
) -> str | None:
    """Render a ``HEADER.FIELDS`` section spec for a FETCH ``BODY[...]`` item.

    Returns None when *fields* is empty, meaning the whole message should be
    fetched instead. Fields are rendered in ``HeaderField`` declaration order
    so the output does not depend on set iteration order. Predicate values
    carried by the selectors are not part of the rendered expression.

    >>> build_header_filter({HeaderFieldSelector(HeaderField.DATE)})
    'HEADER.FIELDS (DATE)'
    """
    unique = {selector.field for selector in fields}
    if not unique:
        return None

    names = " ".join(f.value for f in sorted(unique, key=_FIELD_ORDER.__getitem__))
    keyword = "HEADER.FIELDS.NOT" if negated else "HEADER.FIELDS"
    return f"{keyword} ({names})"
