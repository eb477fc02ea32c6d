"""tasks.py – schedule with APScheduler.

• every ``RUN_INTERVAL_S`` seconds – one ``TrainMonitor.run_once``
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Optional

from apscheduler.schedulers.blocking import BlockingScheduler

from .config import Settings, load_settings
from .dispatcher import TrainMonitor
from .mailer import mailer_from_settings
from .trenitalia_client import TrenitaliaClient

logger = logging.getLogger(__name__)


def create_monitor(settings: Optional[Settings] = None) -> TrainMonitor:
    """Wire the HTTP source and mail transport from *settings*."""
    settings = settings or load_settings()
    client = TrenitaliaClient(settings.api_url, timeout=settings.request_timeout_s)
    return TrainMonitor(client, mailer_from_settings(settings))


def train_job(monitor: TrainMonitor) -> None:
    """Scheduled entry point; never lets an exception reach the scheduler."""
    try:
        monitor.run_once()
    except Exception:
        logger.exception("train job failed")


def build_scheduler(monitor: TrainMonitor, interval_s: int) -> BlockingScheduler:
    sched = BlockingScheduler(timezone="UTC")
    sched.add_job(
        train_job,
        "interval",
        seconds=interval_s,
        args=[monitor],
        id="train_job",
        max_instances=1,
        coalesce=True,
        next_run_time=dt.datetime.now(dt.timezone.utc),
    )
    return sched


def main() -> None:
    from .cli import setup_logging

    settings = load_settings()
    setup_logging(settings.log_level, settings.log_file)
    monitor = create_monitor(settings)
    sched = build_scheduler(monitor, settings.run_interval_s)
    logger.info("Checking trains every %s s", settings.run_interval_s)
    try:
        sched.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")


if __name__ == "__main__":
    main()
