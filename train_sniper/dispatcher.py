"""One monitoring run: recipients × dates → fetch, filter, dedupe, mail."""

from __future__ import annotations

import datetime as dt
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Protocol

from . import composer
from .config import ConfigurationIncomplete, MonitorSnapshot, Settings, load_settings
from .mailer import Mailer
from .models import SearchRequest, TicketSolution, TrainApiResponse
from .notification_cache import Deduplicator
from .query_builder import build_search_request
from .train_filter import filter_solutions

logger = logging.getLogger(__name__)


class JourneySource(Protocol):
    def search_solutions(self, request: SearchRequest) -> TrainApiResponse:
        ...


class DateOutcome(str, Enum):
    NEW_CONTENT = "new_content"
    NOTHING_NEW = "nothing_new"
    FAILED = "failed"


@dataclass
class DateResult:
    date: str
    outcome: DateOutcome
    new_count: int = 0
    error: Optional[str] = None


@dataclass
class RecipientReport:
    recipient: str
    dates: List[DateResult] = field(default_factory=list)
    sent: bool = False
    delivery_error: Optional[str] = None

    @property
    def has_new_content(self) -> bool:
        return any(r.outcome is DateOutcome.NEW_CONTENT for r in self.dates)


@dataclass
class RunReport:
    started_at: dt.datetime = field(default_factory=dt.datetime.now)
    finished_at: Optional[dt.datetime] = None
    recipients: List[RecipientReport] = field(default_factory=list)
    skipped: bool = False
    incomplete_config: bool = False

    @property
    def emails_sent(self) -> int:
        return sum(1 for r in self.recipients if r.sent)


class TrainMonitor:
    """Runs the check for every recipient and date, one run at a time.

    A run triggered while another is still in progress is skipped, so two
    runs never read and write the notification cache concurrently.
    """

    def __init__(
        self,
        source: JourneySource,
        mailer: Mailer,
        deduplicator: Optional[Deduplicator] = None,
        settings_loader: Callable[[], Settings] = load_settings,
    ) -> None:
        self.source = source
        self.mailer = mailer
        self.deduplicator = deduplicator or Deduplicator()
        self.settings_loader = settings_loader
        self._run_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def run_once(self) -> RunReport:
        if not self._run_lock.acquire(blocking=False):
            logger.warning("Train job still running, skipping this trigger.")
            report = RunReport(skipped=True)
            report.finished_at = report.started_at
            return report
        try:
            logger.info("Train job started.")
            report = self._run(self.settings_loader())
            logger.info(
                "Train job completed: %d email(s) sent.", report.emails_sent
            )
            return report
        finally:
            self._run_lock.release()

    # ──────────────────────────────────────────────────────────

    def _run(self, settings: Settings) -> RunReport:
        report = RunReport()
        snapshot = settings.snapshot()
        try:
            snapshot.ensure_complete()
        except ConfigurationIncomplete as exc:
            logger.warning("%s", exc)
            report.incomplete_config = True
            report.finished_at = dt.datetime.now()
            return report

        if settings.cache_evict_past_dates:
            self.deduplicator.evict_before(dt.date.today(), keep=snapshot.dates)

        for recipient in snapshot.recipients:
            report.recipients.append(self._check_recipient(recipient, snapshot))

        report.finished_at = dt.datetime.now()
        return report

    def _check_recipient(
        self, recipient: str, snapshot: MonitorSnapshot
    ) -> RecipientReport:
        result = RecipientReport(recipient=recipient)
        message = composer.header()

        for date in snapshot.dates:
            try:
                matching = self.fetch_and_filter(date, snapshot)
            except Exception as exc:
                logger.error("Error fetching data for date %s: %s", date, exc)
                result.dates.append(
                    DateResult(date, DateOutcome.FAILED, error=str(exc))
                )
                continue

            new_trains = self.deduplicator.new_for(recipient, date, matching)
            if not new_trains:
                result.dates.append(DateResult(date, DateOutcome.NOTHING_NEW))
                continue

            message += composer.body(new_trains, date)
            self.deduplicator.record(recipient, date, new_trains)
            result.dates.append(
                DateResult(date, DateOutcome.NEW_CONTENT, new_count=len(new_trains))
            )

        if not result.has_new_content:
            logger.info("No new trains found for recipient: %s", recipient)
            return result

        message += composer.footer()
        try:
            self.mailer.send_mail(
                recipient, composer.SUBJECT, message.text, message.html
            )
        except Exception as exc:
            logger.error("Failed to send email to %s: %s", recipient, exc)
            result.delivery_error = str(exc)
        else:
            logger.info("Email sent to: %s", recipient)
            result.sent = True
        return result

    def fetch_and_filter(
        self, date: str, snapshot: MonitorSnapshot
    ) -> List[TicketSolution]:
        request = build_search_request(
            date, snapshot.departure_location_id, snapshot.arrival_location_id
        )
        response = self.source.search_solutions(request)
        return filter_solutions(
            response.solutions, snapshot.categories, snapshot.denominations
        )


__all__ = [
    "DateOutcome",
    "DateResult",
    "JourneySource",
    "RecipientReport",
    "RunReport",
    "TrainMonitor",
]
