"""Reconciler — converge each candidate PR's CLA label to its roster status."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from string import Template

from clabot.config import CommentTemplates, Labels
from clabot.core.trace import RunTrace
from clabot.engines.pull_requests.models import PullRequest
from clabot.engines.pull_requests.source import PullRequestSource
from clabot.engines.reconciler.models import CLAStatus, LabelState, RunSummary
from clabot.engines.roster.roster import SignerRoster


def render_comment(template: str, pr: PullRequest, email: str) -> str:
    """Fill ``$email``, ``$number`` and ``$login``; unknown placeholders stay."""
    return Template(template).safe_substitute(
        email=email,
        number=pr.number,
        login=pr.author_login or "",
    )


class Reconciler:
    """Single-pass, sequential CLA reconciliation over one repository.

    Per candidate PR the mutation order is fixed: the comment (if any) goes
    first, then the new label is applied, then the stale one is removed.  A
    crash part-way leaves the Unsigned label in place, so the next run sees
    the same state and never repeats the first-time comment.
    """

    def __init__(
        self,
        source: PullRequestSource,
        roster: SignerRoster,
        labels: Labels,
        comments: CommentTemplates,
        *,
        trace: RunTrace | None = None,
        dry_run: bool = False,
    ) -> None:
        self._source = source
        self._roster = roster
        self._labels = labels
        self._comments = comments
        self._trace = trace or RunTrace()
        self._dry_run = dry_run

    async def run(self) -> RunSummary:
        """Reconcile every candidate PR in listing order."""
        summary = RunSummary(started_at=datetime.now(timezone.utc), dry_run=self._dry_run)
        t0 = time.monotonic()

        candidates = await self._source.list_candidates()
        self._trace.info("reconciler.candidates", count=len(candidates), dry_run=self._dry_run)

        processed: set[int] = set()
        for pr in candidates:
            if pr.number in processed:
                continue
            processed.add(pr.number)
            await self.reconcile(pr, summary)

        summary.elapsed = time.monotonic() - t0
        self._trace.info(
            "reconciler.done",
            newly_signed=summary.newly_signed,
            still_missing=summary.still_missing,
            elapsed=round(summary.elapsed, 2),
        )
        return summary

    async def reconcile(self, pr: PullRequest, summary: RunSummary) -> CLAStatus:
        """Classify one PR and issue the minimal mutations for it."""
        labels = await self._source.get_labels(pr)
        state = LabelState.from_labels(labels, self._labels.signed, self._labels.unsigned)
        if state is LabelState.LABELED_SIGNED:
            self._trace.debug("reconciler.already_signed", pr=pr.number)
            return CLAStatus.SIGNED

        email = await self._source.get_author_email(pr)
        if self._roster.contains_email(email):
            await self._converge_signed(pr, labels, state, email)
            summary.signed.append(pr.number)
            if state is LabelState.LABELED_UNSIGNED:
                summary.thanked.append(pr.number)
            return CLAStatus.SIGNED

        await self._converge_unsigned(pr, labels, state, email)
        summary.missing.append(pr.number)
        if state is LabelState.UNLABELED:
            summary.asked.append(pr.number)
        return CLAStatus.UNSIGNED

    async def _converge_signed(
        self, pr: PullRequest, labels: frozenset[str], state: LabelState, email: str
    ) -> None:
        self._trace.info("reconciler.pr_signed", pr=pr.number, email=email, state=state.value)
        if state is LabelState.LABELED_UNSIGNED:
            body = render_comment(self._comments.signed, pr, email)
            await self._mutate("post_comment", pr, self._source.post_comment, body)
        await self._mutate("apply_label", pr, self._source.apply_label, self._labels.signed)
        if self._labels.unsigned in labels:
            await self._mutate("remove_label", pr, self._source.remove_label, self._labels.unsigned)

    async def _converge_unsigned(
        self, pr: PullRequest, labels: frozenset[str], state: LabelState, email: str
    ) -> None:
        self._trace.info("reconciler.pr_missing", pr=pr.number, email=email, state=state.value)
        if state is not LabelState.LABELED_UNSIGNED:
            body = render_comment(self._comments.missing, pr, email)
            await self._mutate("post_comment", pr, self._source.post_comment, body)
        if self._labels.unsigned not in labels:
            await self._mutate("apply_label", pr, self._source.apply_label, self._labels.unsigned)
        if self._labels.signed in labels:
            await self._mutate("remove_label", pr, self._source.remove_label, self._labels.signed)

    async def _mutate(
        self,
        action: str,
        pr: PullRequest,
        call: Callable[[PullRequest, str], Awaitable[None]],
        arg: str,
    ) -> None:
        if self._dry_run:
            detail = {"label": arg} if action != "post_comment" else {}
            self._trace.info("reconciler.planned", pr=pr.number, action=action, **detail)
            return
        await call(pr, arg)
