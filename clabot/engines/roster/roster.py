"""SignerRoster — the set of e-mail addresses that have signed the CLA."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from pathlib import Path

import httpx
import structlog

from clabot.exceptions import RosterUnavailable

log = structlog.get_logger("clabot.engine.roster")


class SignerRoster:
    """Roster backed by a CSV document with a header row.

    *source* is a local path or an ``http(s)://`` URL (for instance the CSV
    export of a published spreadsheet).  Values are read from the column named
    *column*, one signer per row after the header.  Addresses are compared
    exactly as stored: no case folding, no whitespace trimming.
    """

    def __init__(
        self,
        source: str,
        column: str = "email",
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.source = source
        self.column = column
        self._timeout = timeout
        self._transport = transport
        self._signers: frozenset[str] | None = None

    @classmethod
    def from_signers(cls, signers: Iterable[str], source: str = "<memory>") -> SignerRoster:
        """A roster already loaded with *signers*; :meth:`load` is not needed."""
        roster = cls(source)
        roster._signers = frozenset(signers)
        return roster

    @property
    def loaded(self) -> bool:
        return self._signers is not None

    async def load(self) -> frozenset[str]:
        """Read the backing store once and return the signer set."""
        text = await self._read_source()
        self._signers = parse_roster_csv(text, self.column)
        log.info("roster.loaded", source=self.source, signers=len(self._signers))
        return self._signers

    def contains_email(self, email: str) -> bool:
        if self._signers is None:
            raise RosterUnavailable("roster queried before load()")
        return email in self._signers

    def __len__(self) -> int:
        return len(self._signers or ())

    async def _read_source(self) -> str:
        if self.source.startswith(("https://", "http://")):
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout, transport=self._transport, follow_redirects=True
                ) as client:
                    resp = await client.get(self.source)
                    resp.raise_for_status()
                    return resp.text
            except httpx.HTTPError as exc:
                raise RosterUnavailable(f"cannot fetch roster {self.source}: {exc}") from exc

        try:
            return Path(self.source).read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise RosterUnavailable(f"cannot read roster {self.source}: {exc}") from exc


def parse_roster_csv(text: str, column: str) -> frozenset[str]:
    """Parse roster CSV *text*, returning the non-empty cells of *column*.

    Raises RosterUnavailable if there is no header row or the column is
    missing from it.
    """
    reader = csv.reader(io.StringIO(text))
    try:
        header = next(reader)
    except StopIteration:
        raise RosterUnavailable("roster is empty (no header row)") from None
    except csv.Error as exc:
        raise RosterUnavailable(f"malformed roster: {exc}") from exc

    # Header names are matched leniently; signer values are not.
    names = [h.strip().lower() for h in header]
    try:
        idx = names.index(column.strip().lower())
    except ValueError:
        raise RosterUnavailable(
            f"roster has no {column!r} column (found: {', '.join(header) or 'none'})"
        ) from None

    signers: set[str] = set()
    try:
        for row in reader:
            if idx < len(row) and row[idx]:
                signers.add(row[idx])
    except csv.Error as exc:
        raise RosterUnavailable(f"malformed roster at line {reader.line_num}: {exc}") from exc
    return frozenset(signers)
