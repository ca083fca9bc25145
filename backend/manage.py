"""Management commands for the salon booking backend."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import click

from salon_booking.core.exceptions import BookingError
from salon_booking.core.security import create_admin_token
from salon_booking.main import create_app
from salon_booking.services import EXTENSION_KEY

logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


def _services():
    # Built lazily so `issue-admin-token` works without a reachable database
    app = create_app(configure_logging=False)
    return app.extensions[EXTENSION_KEY]


@click.group()
def cli() -> None:
    """Entry point for management commands."""


@cli.command("init-db")
def init_db() -> None:
    """Create the appointments and schedules tables if they do not exist."""
    services = _services()
    services.database.create_tables()
    logging.info("Tables ready on %s", services.database.engine.dialect.name)


@cli.command("issue-admin-token")
@click.option("--subject", default="staff", show_default=True, help="Token subject.")
@click.option(
    "--hours",
    type=int,
    default=None,
    help="Lifetime in hours (defaults to 30 days).",
)
def issue_admin_token(subject: str, hours: Optional[int]) -> None:
    """Print a Bearer token for the staff endpoints."""
    click.echo(create_admin_token(subject, hours))


@cli.command("set-schedule")
@click.argument("day")
@click.argument("times", nargs=-1, required=True)
def set_schedule(day: str, times: Tuple[str, ...]) -> None:
    """Overwrite the bookable TIMES (HH:MM) for DAY (YYYY-MM-DD)."""
    try:
        schedule = _services().registry.set_schedule(day, list(times))
    except BookingError as e:
        raise click.ClickException(e.message) from e
    click.echo(f"{schedule.date.isoformat()}: {', '.join(schedule.slots) or '(none)'}")


@cli.command("show-availability")
@click.argument("day")
def show_availability(day: str) -> None:
    """List the times still bookable on DAY."""
    try:
        times = _services().registry.get_available_times(day)
    except BookingError as e:
        raise click.ClickException(e.message) from e
    if not times:
        click.echo(f"No available times on {day}")
        return
    for label in times:
        click.echo(label)


if __name__ == "__main__":
    cli()
