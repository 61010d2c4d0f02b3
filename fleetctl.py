#!/usr/bin/env python3
"""Fleet management CLI."""

import asyncio
import logging
import os
import subprocess
import sys

import click


def _run(args: list[str], *, replace: bool = False) -> None:
    click.echo(
        f"  {click.style('>', dim=True)} {click.style(' '.join(args), dim=True)}\n"
    )
    if replace:
        os.execvp(args[0], args)
    result = subprocess.run(args)
    if result.returncode != 0:
        click.echo(
            f"  {click.style('✗', fg='red')} exited with code {result.returncode}"
        )
        sys.exit(result.returncode)


def _ok(text: str) -> None:
    click.echo(f"  {click.style('✓', fg='green')} {text}")


def _header(text: str) -> None:
    click.echo(f"\n  {click.style(text, fg='cyan', bold=True)}\n")


@click.group()
def cli() -> None:
    """Fleet management CLI."""


@cli.command()
@click.argument("uvicorn_args", nargs=-1)
def app(uvicorn_args: tuple[str, ...]) -> None:
    """Start the API with uvicorn --reload."""
    _header("Starting Fleet")
    _run(["uvicorn", "fleet.app:app", "--reload", *uvicorn_args], replace=True)


@cli.group()
def db() -> None:
    """Database management commands."""


@db.command()
def migrate() -> None:
    """Run alembic upgrade head."""
    _header("Running migrations")
    _run(["alembic", "upgrade", "head"])
    _ok("Migrations applied")


@db.command()
@click.argument("message", default="auto")
def revision(message: str) -> None:
    """Generate alembic migration."""
    _header(f"Generating migration: {message}")
    _run(["alembic", "revision", "--autogenerate", "-m", message])
    _ok("Migration generated")


@cli.group()
def jobs() -> None:
    """Background job commands."""


@jobs.command("run-once")
@click.option("--days", default=None, type=int, help="Expiry warning window.")
def run_once(days: int | None) -> None:
    """Run every notification check once for all tenants."""
    from fleet.base.db import async_session, engine
    from fleet.config import EXPIRY_WARNING_DAYS
    from fleet.events import EventBus
    from fleet.scheduler import (
        JobScheduler,
        SqlTenantProvider,
        build_notification_jobs,
    )

    logging.basicConfig(level=logging.INFO)
    _header("Running notification checks")

    async def _main() -> None:
        scheduler = JobScheduler(SqlTenantProvider(async_session))
        for job in build_notification_jobs(
            async_session, EventBus(), days=days or EXPIRY_WARNING_DAYS
        ):
            scheduler.register(job)
        try:
            await scheduler.run_once()
        finally:
            await engine.dispose()

    asyncio.run(_main())
    _ok("Checks finished")


@cli.command()
@click.argument("pytest_args", nargs=-1)
def test(pytest_args: tuple[str, ...]) -> None:
    """Run pytest."""
    _header("Running tests")
    _run(["pytest", "tests/", "-v", *pytest_args], replace=True)


@cli.command()
def lint() -> None:
    """Run mypy."""
    _header("Running mypy")
    _run(["mypy", "fleet", "fleetctl.py"])
    _ok("Type check passed")


if __name__ == "__main__":
    cli()
