"""Tests for CLI commands — GitHub and SMTP are mocked."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from clabot.cli import main
from clabot.core.trace import RunTrace
from clabot.engines.reconciler.models import RunSummary
from clabot.exceptions import SourceUnavailable

_CLEARED = {
    key: None
    for key in (
        "CLABOT_REPOSITORY",
        "CLABOT_GITHUB_TOKEN",
        "GITHUB_TOKEN",
        "CLABOT_ROSTER_SOURCE",
        "CLABOT_COMMENT_MISSING",
        "CLABOT_COMMENT_SIGNED",
        "CLABOT_INTERVAL_SECONDS",
    )
}


@pytest.fixture
def env(base_env):
    return {**_CLEARED, **base_env}


@pytest.fixture
def summary() -> RunSummary:
    return RunSummary(
        started_at=datetime(2024, 1, 1, tzinfo=timezone.utc), elapsed=0.5, signed=[1], missing=[2]
    )


# ── configuration ──


class TestConfiguration:
    def test_missing_settings_exit_2(self):
        result = CliRunner().invoke(main, ["run"], env=_CLEARED)
        assert result.exit_code == 2
        assert "CLABOT_REPOSITORY" in result.output
        assert "CLABOT_COMMENT_SIGNED" in result.output

    def test_help(self):
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("run", "serve", "roster"):
            assert command in result.output


# ── run ──


class TestRun:
    @patch("clabot.cli.ReconcileRunner")
    def test_prints_summary(self, MockRunner, env, summary):
        MockRunner.return_value.run = AsyncMock(return_value=(summary, RunTrace()))
        result = CliRunner().invoke(main, ["run"], env=env)

        assert result.exit_code == 0
        assert "Reconciled acme/widgets" in result.output
        assert "Newly signed:  1" in result.output
        assert "Still missing: 1" in result.output
        MockRunner.return_value.run.assert_awaited_once_with(dry_run=False)

    @patch("clabot.cli.ReconcileRunner")
    def test_json_output(self, MockRunner, env, summary):
        MockRunner.return_value.run = AsyncMock(return_value=(summary, RunTrace()))
        result = CliRunner().invoke(main, ["run", "--json"], env=env)

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["signed"] == [1]
        assert data["missing"] == [2]

    @patch("clabot.cli.ReconcileRunner")
    def test_dry_run_flag(self, MockRunner, env, summary):
        summary.dry_run = True
        MockRunner.return_value.run = AsyncMock(return_value=(summary, RunTrace()))
        result = CliRunner().invoke(main, ["run", "--dry-run"], env=env)

        assert result.exit_code == 0
        assert "(dry run)" in result.output
        MockRunner.return_value.run.assert_awaited_once_with(dry_run=True)

    @patch("clabot.cli.ReconcileRunner")
    def test_failure_exit_1(self, MockRunner, env):
        MockRunner.return_value.run = AsyncMock(side_effect=SourceUnavailable("HTTP 502"))
        result = CliRunner().invoke(main, ["run"], env=env)

        assert result.exit_code == 1
        assert "SourceUnavailable: HTTP 502" in result.output


# ── serve ──


class TestServe:
    @pytest.mark.parametrize("interval", ["0", "-5"])
    def test_non_positive_interval(self, env, interval):
        result = CliRunner().invoke(main, ["serve", "--interval", interval], env=env)
        assert result.exit_code == 2
        assert "must be positive" in result.output

    def test_ctrl_c_stops(self, env):
        def _interrupt(coro):
            coro.close()
            raise KeyboardInterrupt

        with patch("clabot.cli.asyncio.run", side_effect=_interrupt):
            result = CliRunner().invoke(main, ["serve", "--interval", "30"], env=env)

        assert result.exit_code == 0
        assert "every 30s" in result.output
        assert "Stopped." in result.output


# ── roster ──


class TestRoster:
    def test_counts_signers(self, env):
        result = CliRunner().invoke(main, ["roster"], env=env)
        assert result.exit_code == 0
        assert "Roster: 1 signers" in result.output

    def test_signed_email(self, env):
        result = CliRunner().invoke(main, ["roster", "--email", "a@x.com"], env=env)
        assert result.exit_code == 0
        assert "a@x.com: signed" in result.output

    def test_unsigned_email_exit_3(self, env):
        result = CliRunner().invoke(main, ["roster", "--email", "A@x.com"], env=env)
        assert result.exit_code == 3
        assert "A@x.com: not signed" in result.output

    def test_unreadable_roster_exit_1(self, env, tmp_path):
        env["CLABOT_ROSTER_SOURCE"] = str(tmp_path / "gone.csv")
        result = CliRunner().invoke(main, ["roster"], env=env)
        assert result.exit_code == 1
        assert "RosterUnavailable" in result.output
