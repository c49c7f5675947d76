"""CLI entry point: clabot.

Subcommands:
    clabot run [--dry-run]          # One reconciliation pass
    clabot serve [--interval N]     # Reconcile periodically until interrupted
    clabot roster [--email ADDR]    # Load the signer roster and query it

Configuration is read from CLABOT_* environment variables.
"""

from __future__ import annotations

import asyncio
import json
import sys

import click

from clabot.config import Settings
from clabot.core.logging import setup_logging
from clabot.engines.roster.roster import SignerRoster
from clabot.exceptions import ClaBotError, ConfigurationMissing
from clabot.runner import ReconcileRunner
from clabot.scheduler import create_scheduler


def _load_settings(verbose: bool) -> Settings:
    """Build settings, exiting with status 2 when any are missing."""
    try:
        settings = Settings.from_env()
    except ConfigurationMissing as e:
        setup_logging("DEBUG" if verbose else "INFO")
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_format)
    return settings


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """clabot: keep pull request CLA labels in sync with the signer roster."""
    ctx.obj = {"verbose": verbose}


@main.command("run")
@click.option("--dry-run", is_flag=True, help="Read and classify only; post nothing")
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON")
@click.pass_context
def run(ctx: click.Context, dry_run: bool, as_json: bool) -> None:
    """Run one reconciliation pass over the open pull requests."""
    settings = _load_settings(ctx.obj["verbose"])
    runner = ReconcileRunner(settings)
    try:
        summary, _ = asyncio.run(runner.run(dry_run=dry_run))
    except ClaBotError as e:
        click.echo(f"Error: {type(e).__name__}: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(summary.as_dict(), indent=2))
        return

    mode = " (dry run)" if summary.dry_run else ""
    click.echo(f"Reconciled {settings.repository}{mode} in {summary.elapsed:.2f}s")
    click.echo(f"  Newly signed:  {summary.newly_signed}")
    click.echo(f"  Still missing: {summary.still_missing}")


@main.command("serve")
@click.option("--interval", type=int, default=None, help="Seconds between runs")
@click.option("--dry-run", is_flag=True, help="Read and classify only; post nothing")
@click.pass_context
def serve(ctx: click.Context, interval: int | None, dry_run: bool) -> None:
    """Reconcile periodically until interrupted."""
    settings = _load_settings(ctx.obj["verbose"])
    every = interval if interval is not None else settings.interval_seconds
    if every <= 0:
        click.echo("Error: --interval must be positive", err=True)
        sys.exit(2)

    async def _serve() -> None:
        scheduler = create_scheduler(ReconcileRunner(settings), every, dry_run=dry_run)
        await scheduler.start()
        try:
            await scheduler.wait()
        finally:
            await scheduler.stop()

    click.echo(f"Reconciling {settings.repository} every {every}s (Ctrl-C to stop)")
    try:
        asyncio.run(_serve())
    except KeyboardInterrupt:
        click.echo("Stopped.")


@main.command("roster")
@click.option("--email", default=None, help="Check whether this address has signed")
@click.pass_context
def roster(ctx: click.Context, email: str | None) -> None:
    """Load the signer roster and report on it."""
    settings = _load_settings(ctx.obj["verbose"])
    signer_roster = SignerRoster(settings.roster_source, settings.roster_column)
    try:
        asyncio.run(signer_roster.load())
    except ClaBotError as e:
        click.echo(f"Error: {type(e).__name__}: {e}", err=True)
        sys.exit(1)

    click.echo(f"Roster: {len(signer_roster)} signers ({settings.roster_source})")
    if email is not None:
        signed = signer_roster.contains_email(email)
        click.echo(f"{email}: {'signed' if signed else 'not signed'}")
        if not signed:
            sys.exit(3)
