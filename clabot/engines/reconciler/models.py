"""Data models for the reconciliation engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class CLAStatus(str, Enum):
    SIGNED = "signed"
    UNSIGNED = "unsigned"


class LabelState(str, Enum):
    """CLA label configuration of a PR as observed at the start of a run."""

    UNLABELED = "unlabeled"
    LABELED_UNSIGNED = "labeled_unsigned"
    LABELED_SIGNED = "labeled_signed"

    @classmethod
    def from_labels(cls, labels: frozenset[str], signed: str, unsigned: str) -> LabelState:
        # Signed wins: such a PR is never re-verified
        if signed in labels:
            return cls.LABELED_SIGNED
        if unsigned in labels:
            return cls.LABELED_UNSIGNED
        return cls.UNLABELED


@dataclass
class RunSummary:
    """Outcome of one reconciliation run."""

    started_at: datetime
    elapsed: float = 0.0
    signed: list[int] = field(default_factory=list)  # newly confirmed PR numbers
    missing: list[int] = field(default_factory=list)  # PRs still without a signature
    thanked: list[int] = field(default_factory=list)
    asked: list[int] = field(default_factory=list)
    dry_run: bool = False

    @property
    def newly_signed(self) -> int:
        return len(self.signed)

    @property
    def still_missing(self) -> int:
        return len(self.missing)

    def as_dict(self) -> dict[str, object]:
        return {
            "started_at": self.started_at.isoformat(),
            "elapsed": round(self.elapsed, 2),
            "newly_signed": self.newly_signed,
            "still_missing": self.still_missing,
            "signed": list(self.signed),
            "missing": list(self.missing),
            "thanked": list(self.thanked),
            "asked": list(self.asked),
            "dry_run": self.dry_run,
        }
