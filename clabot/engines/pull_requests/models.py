"""Data models for the pull request source."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PullRequest:
    """An open pull request as returned by the listing call.

    Labels are deliberately not part of the record; they are read through
    ``PullRequestSource.get_labels`` and cached for the run.
    """

    number: int
    patch_ref: str  # API path whose patch rendering holds the commits
    title: str = ""
    html_url: str | None = None
    author_login: str | None = None

    @classmethod
    def from_api(cls, owner: str, repo: str, item: dict[str, Any]) -> PullRequest:
        number = int(item["number"])
        return cls(
            number=number,
            patch_ref=f"/repos/{owner}/{repo}/pulls/{number}",
            title=item.get("title") or "",
            html_url=item.get("html_url"),
            author_login=(item.get("user") or {}).get("login"),
        )
