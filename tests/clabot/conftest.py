"""Shared fixtures for clabot tests — no network, no SMTP."""

from __future__ import annotations

import pytest

from clabot.config import CommentTemplates, Labels, Settings

from .fakes import MISSING_TEMPLATE, OWNER, REPO, SIGNED, THANKS_TEMPLATE, UNSIGNED


@pytest.fixture
def labels() -> Labels:
    return Labels(signed=SIGNED, unsigned=UNSIGNED)


@pytest.fixture
def comments() -> CommentTemplates:
    return CommentTemplates(missing=MISSING_TEMPLATE, signed=THANKS_TEMPLATE)


@pytest.fixture
def base_env(tmp_path) -> dict[str, str]:
    roster = tmp_path / "signers.csv"
    roster.write_text("name,email\nAda,a@x.com\n")
    return {
        "CLABOT_REPOSITORY": f"{OWNER}/{REPO}",
        "CLABOT_GITHUB_TOKEN": "test-token",
        "CLABOT_ROSTER_SOURCE": str(roster),
        "CLABOT_COMMENT_MISSING": MISSING_TEMPLATE,
        "CLABOT_COMMENT_SIGNED": THANKS_TEMPLATE,
        "CLABOT_LABEL_SIGNED": SIGNED,
        "CLABOT_LABEL_UNSIGNED": UNSIGNED,
    }


@pytest.fixture
def settings(base_env) -> Settings:
    return Settings.from_env(base_env)
