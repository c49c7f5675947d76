"""Extract the authorship e-mail from a ``git format-patch`` style patch."""

from __future__ import annotations

import re
from email.parser import HeaderParser
from email.utils import parseaddr

# RFC 5322 folding: a line break followed by whitespace continues the header
_FOLD_RE = re.compile(r"\r?\n[ \t]+")


def extract_author_email(patch: str) -> str | None:
    """Return the e-mail from the first commit's ``From:`` header, or None.

    A PR patch is a series of mbox messages, one per commit, first commit
    first.  Only the header block of the first message is read, so a later
    commit's author is never picked up.  Folded headers (long RFC 2047
    encoded names) and quoted display names are handled by the e-mail
    parser rather than by pattern matching.
    """
    headers = HeaderParser().parsestr(patch.lstrip("\r\n"))
    value = headers.get("From")
    if value is None:
        return None

    _, address = parseaddr(_FOLD_RE.sub(" ", str(value)))
    if "@" not in address or any(ch.isspace() for ch in address):
        return None
    return address
