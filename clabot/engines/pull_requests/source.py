"""PullRequestSource — every read and write against one GitHub repository."""

from __future__ import annotations

from urllib.parse import quote

from clabot.config import Labels
from clabot.core.trace import RunTrace
from clabot.engines.pull_requests.github_client import PATCH_MEDIA_TYPE, GitHubClient
from clabot.engines.pull_requests.models import PullRequest
from clabot.engines.pull_requests.patch_parser import extract_author_email
from clabot.exceptions import EmailNotFound


class PullRequestSource:
    """Run-scoped view of the repository's open pull requests.

    Label sets are fetched lazily and cached for the lifetime of the
    instance.  The cache is not updated by :meth:`apply_label` or
    :meth:`remove_label`: each PR is visited once per run, and a new
    instance is built for every run.
    """

    def __init__(
        self,
        client: GitHubClient,
        owner: str,
        repo: str,
        labels: Labels,
        trace: RunTrace | None = None,
    ) -> None:
        self._client = client
        self.owner = owner
        self.repo = repo
        self.labels = labels
        self._trace = trace or RunTrace()
        self._label_cache: dict[int, frozenset[str]] = {}

    @property
    def _base(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    # ── reads ──────────────────────────────────────────────────────────────

    async def list_open_pull_requests(self) -> list[PullRequest]:
        """GET /repos/{owner}/{repo}/pulls?state=open — all pages, in order."""
        items = await self._client.get_all_pages(f"{self._base}/pulls", {"state": "open"})
        prs = [PullRequest.from_api(self.owner, self.repo, item) for item in items]
        self._trace.info("source.listed", repository=f"{self.owner}/{self.repo}", open_prs=len(prs))
        return prs

    async def list_candidates(self) -> list[PullRequest]:
        """Open PRs that still need verification: those lacking the Signed label.

        This covers PRs labeled Unsigned as well as PRs carrying neither
        label.  A PR labeled Signed is never re-verified.
        """
        candidates: list[PullRequest] = []
        for pr in await self.list_open_pull_requests():
            if await self.has_label(pr, self.labels.signed):
                self._trace.debug("source.skip_signed", pr=pr.number)
                continue
            candidates.append(pr)
        return candidates

    async def get_labels(self, pr: PullRequest) -> frozenset[str]:
        """GET /repos/{owner}/{repo}/issues/{n}/labels — cached per PR."""
        cached = self._label_cache.get(pr.number)
        if cached is not None:
            return cached
        items = await self._client.get_all_pages(f"{self._base}/issues/{pr.number}/labels")
        labels = frozenset(item["name"] for item in items if "name" in item)
        self._label_cache[pr.number] = labels
        return labels

    async def has_label(self, pr: PullRequest, label: str) -> bool:
        return label in await self.get_labels(pr)

    async def get_author_email(self, pr: PullRequest) -> str:
        """Author e-mail of the PR's first commit, read from its patch."""
        patch = await self._client.get_text(pr.patch_ref, accept=PATCH_MEDIA_TYPE)
        email = extract_author_email(patch)
        if email is None:
            raise EmailNotFound(pr.number)
        return email

    # ── writes ─────────────────────────────────────────────────────────────

    async def apply_label(self, pr: PullRequest, label: str) -> None:
        """Add *label*; GitHub's add-labels call keeps the existing ones."""
        await self._client.post(f"{self._base}/issues/{pr.number}/labels", {"labels": [label]})
        self._trace.info("source.label_applied", pr=pr.number, label=label)

    async def remove_label(self, pr: PullRequest, label: str) -> None:
        """Remove *label*; an already-absent label is not an error."""
        path = f"{self._base}/issues/{pr.number}/labels/{quote(label, safe='')}"
        removed = await self._client.delete(path, missing_ok=True)
        self._trace.info("source.label_removed", pr=pr.number, label=label, was_present=removed)

    async def post_comment(self, pr: PullRequest, text: str) -> None:
        await self._client.post(f"{self._base}/issues/{pr.number}/comments", {"body": text})
        self._trace.info("source.comment_posted", pr=pr.number)
