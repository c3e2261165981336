"""Flask CLI commands for refresh-token housekeeping."""

from __future__ import annotations

import logging
from datetime import timedelta

import click
from flask.cli import with_appcontext

from taskhub.core.clock import utc_now
from taskhub.uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh-token maintenance commands."""


@tokens_cli.command("purge")
@click.option(
    "--older-than-days",
    type=click.IntRange(min=0),
    default=30,
    show_default=True,
    help="Keep tokens that expired or were revoked more recently than this.",
)
@click.option("--dry-run", is_flag=True, help="Report what would be deleted and roll back.")
@with_appcontext
def purge(older_than_days: int, dry_run: bool) -> None:
    """Delete dead refresh tokens from the database store.

    Only tokens that are already expired or revoked are eligible, so active
    sessions are never affected. Redis entries expire on their own TTL.
    """
    retention = timedelta(days=older_than_days)
    with SQLAlchemyUnitOfWork() as uow:
        deleted = uow.refresh_tokens.purge(now=utc_now(), retention=retention)
        if dry_run:
            uow.rollback()
    LOGGER.info("Refresh token purge", extra={"outcome": "dry_run" if dry_run else "deleted"})
    verb = "Would delete" if dry_run else "Deleted"
    click.echo(f"{verb} {deleted} refresh token(s).")
