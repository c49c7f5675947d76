"""ReconcileRunner — one full pass: roster → PR source → reconciler → report."""

from __future__ import annotations

import httpx
import structlog

from clabot.config import Settings
from clabot.core.trace import RunTrace
from clabot.engines.notification.mailer import Mailer
from clabot.engines.notification.runner import Notifier
from clabot.engines.pull_requests.github_client import GitHubClient
from clabot.engines.pull_requests.source import PullRequestSource
from clabot.engines.reconciler.models import RunSummary
from clabot.engines.reconciler.reconciler import Reconciler
from clabot.engines.roster.roster import SignerRoster
from clabot.exceptions import ClaBotError

log = structlog.get_logger("clabot.runner")


def build_notifier(settings: Settings) -> Notifier:
    mailer = Mailer.from_settings(settings.smtp) if settings.smtp.enabled else None
    return Notifier(mailer, settings.smtp.notify_to)


class ReconcileRunner:
    """Orchestration layer: builds run-scoped components and reports the outcome.

    Every call to :meth:`run` gets a fresh roster, GitHub client, PR source
    (and therefore label cache) and trace.
    """

    def __init__(
        self,
        settings: Settings,
        notifier: Notifier | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._notifier = notifier or build_notifier(settings)
        self._transport = transport

    async def run(self, *, dry_run: bool = False) -> tuple[RunSummary, RunTrace]:
        """Run one reconciliation pass and send the report.

        Failures are recorded in the trace, reported, then re-raised so the
        caller (CLI or scheduler) sees them.
        """
        settings = self._settings
        trace = RunTrace()
        trace.info("runner.started", repository=settings.repository, dry_run=dry_run)

        summary: RunSummary | None = None
        try:
            roster = SignerRoster(settings.roster_source, settings.roster_column)
            await roster.load()
            trace.info("runner.roster_loaded", signers=len(roster))

            async with GitHubClient(
                settings.token, settings.api_url, transport=self._transport
            ) as client:
                source = PullRequestSource(
                    client, settings.owner, settings.repo, settings.labels, trace
                )
                reconciler = Reconciler(
                    source,
                    roster,
                    settings.labels,
                    settings.comments,
                    trace=trace,
                    dry_run=dry_run,
                )
                summary = await reconciler.run()
        except ClaBotError as exc:
            trace.error("runner.failed", error_type=type(exc).__name__, error=str(exc))
            await self._notifier.send_report(
                settings.repository, summary, trace, error=f"{type(exc).__name__}: {exc}"
            )
            raise

        await self._notifier.send_report(settings.repository, summary, trace)
        return summary, trace
