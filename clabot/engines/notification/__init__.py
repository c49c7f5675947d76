"""Notification engine — e-mails the run report to the operator."""

from clabot.engines.notification.mailer import Mailer
from clabot.engines.notification.runner import Notifier
from clabot.engines.notification.template import render_run_report

__all__ = ["Mailer", "Notifier", "render_run_report"]
