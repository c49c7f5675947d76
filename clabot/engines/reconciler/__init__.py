"""Reconciliation engine — per-PR CLA state machine."""

from clabot.engines.reconciler.models import CLAStatus, LabelState, RunSummary
from clabot.engines.reconciler.reconciler import Reconciler, render_comment

__all__ = ["CLAStatus", "LabelState", "Reconciler", "RunSummary", "render_comment"]
