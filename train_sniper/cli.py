from __future__ import annotations

import logging

import click

from . import tasks
from .config import load_settings
from .mailer import MailDeliveryError, mailer_from_settings

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_file: str = "train_sniper.log") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[logging.FileHandler(log_file), logging.StreamHandler()],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@click.group()
def cli() -> None:
    """Trenitalia availability monitor."""
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_file)


@cli.command()
@click.option("--once", is_flag=True, help="Run a single check and exit")
def run(once: bool) -> None:
    """Check for new trains and email recipients."""
    settings = load_settings()
    monitor = tasks.create_monitor(settings)
    if once:
        report = monitor.run_once()
        click.echo(f"Emails sent: {report.emails_sent}")
    else:
        tasks.build_scheduler(monitor, settings.run_interval_s).start()


@cli.command()
@click.option("--date", "date_", required=True, help="Travel date as sent upstream")
def fetch(date_: str) -> None:
    """Fetch and filter one date; print matches without sending mail."""
    settings = load_settings()
    monitor = tasks.create_monitor(settings)
    try:
        matching = monitor.fetch_and_filter(date_, settings.snapshot())
    except Exception as exc:
        logger.warning("Failed to fetch %s: %s", date_, exc)
        raise click.ClickException(str(exc)) from exc
    if not matching:
        click.echo("No matching trains found")
    for sol in matching:
        journey = sol.solution
        name = journey.trains[0].name if journey.trains else "?"
        click.echo(
            f"{name} | {journey.origin} ➔ {journey.destination} | "
            f"{journey.departure_time} – {journey.arrival_time}"
        )


@cli.command("send-test")
@click.option("--to", "to_addr", required=True, help="Recipient address")
def send_test(to_addr: str) -> None:
    """Send a test email through the configured transport."""
    mailer = mailer_from_settings(load_settings())
    try:
        mailer.send_mail(to_addr, "Test Email", "This is a test email")
    except MailDeliveryError as exc:
        logger.warning("Test email to %s failed: %s", to_addr, exc)
        raise click.ClickException(str(exc)) from exc
    click.echo("Email sent")


if __name__ == "__main__":
    cli()
