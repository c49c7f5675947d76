"""Notifier — deliver the run report to the operator."""

from __future__ import annotations

import structlog

from clabot.core.trace import RunTrace
from clabot.engines.notification.mailer import Mailer
from clabot.engines.notification.template import render_run_report
from clabot.engines.reconciler.models import RunSummary

log = structlog.get_logger("clabot.engine.notification")


class Notifier:
    """Fire-and-forget: send failures are logged, never raised."""

    def __init__(self, mailer: Mailer | None, notify_to: str) -> None:
        self._mailer = mailer
        self._notify_to = notify_to

    @property
    def enabled(self) -> bool:
        return self._mailer is not None and bool(self._notify_to)

    async def send_report(
        self,
        repository: str,
        summary: RunSummary | None,
        trace: RunTrace,
        error: str | None = None,
    ) -> bool:
        """Render and send the report.  Returns True if an email went out."""
        if not self.enabled:
            log.info("notification.disabled", repository=repository)
            return False

        subject, html_body, text_body = render_run_report(
            repository, summary, trace.render(), error=error
        )
        try:
            await self._mailer.send(self._notify_to, subject, html_body, text_body)  # type: ignore[union-attr]
        except Exception:
            log.error("notification.send_failed", to=self._notify_to, exc_info=True)
            return False

        log.info("notification.sent", to=self._notify_to, subject=subject)
        return True
