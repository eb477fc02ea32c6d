import threading
from unittest.mock import Mock

from train_sniper.config import Settings
from train_sniper.dispatcher import DateOutcome, TrainMonitor
from train_sniper.mailer import MailDeliveryError
from train_sniper.models import TrainApiResponse
from train_sniper.notification_cache import Deduplicator
from train_sniper.trenitalia_client import TrenitaliaClientError


def solution(sol_id, name, category, price=None):
    journey = {
        "id": sol_id,
        "origin": "Milano Centrale",
        "destination": "Roma Termini",
        "departureTime": "2024-06-01T08:00:00",
        "arrivalTime": "2024-06-01T11:10:00",
        "duration": "3h 10min",
        "trains": [{"name": name, "trainCategory": category}],
    }
    if price is not None:
        journey["price"] = {"currency": "€", "amount": price}
    return {"solution": journey}


def response(*solutions):
    return TrainApiResponse.model_validate({"solutions": list(solutions)})


def settings_loader(**overrides):
    values = {
        "DATES_TO_CHECK": "2024-06-01",
        "TRAIN_CATEGORIES": "FR",
        "DENOMINATIONS": "FRECCIAROSSA",
        "EMAIL_RECIPIENTS": "a@x.com",
    }
    values.update(overrides)
    return lambda: Settings(**values)


def make_monitor(source, mailer=None, **overrides):
    mailer = mailer or Mock()
    monitor = TrainMonitor(
        source, mailer, Deduplicator(), settings_loader(**overrides)
    )
    return monitor, mailer


def test_new_trains_sent_once():
    source = Mock()
    source.search_solutions.return_value = response(
        solution("1", "Frecciarossa 100", "FR"),
        solution("2", "Regionale 2001", "REG"),
    )
    monitor, mailer = make_monitor(source, DENOMINATIONS="")

    first = monitor.run_once()

    mailer.send_mail.assert_called_once()
    to, subject, text, html = mailer.send_mail.call_args.args
    assert to == "a@x.com"
    assert subject == "Available Trains Found"
    assert "Frecciarossa 100" in text
    assert "Frecciarossa 100" in html
    assert "Regionale 2001" not in text
    assert first.emails_sent == 1
    assert first.recipients[0].dates[0].outcome is DateOutcome.NEW_CONTENT

    second = monitor.run_once()

    mailer.send_mail.assert_called_once()
    assert second.emails_sent == 0
    assert not second.recipients[0].has_new_content
    assert second.recipients[0].dates[0].outcome is DateOutcome.NOTHING_NEW


def test_failed_date_does_not_block_others():
    source = Mock()

    def search(request):
        if request.departure_time == "2024-06-02":
            raise TrenitaliaClientError(500, "upstream error")
        return response(solution("1", "Frecciarossa 100", "FR"))

    source.search_solutions.side_effect = search
    monitor, mailer = make_monitor(source, DATES_TO_CHECK="2024-06-02,2024-06-03")

    report = monitor.run_once()

    outcomes = [(r.date, r.outcome) for r in report.recipients[0].dates]
    assert outcomes == [
        ("2024-06-02", DateOutcome.FAILED),
        ("2024-06-03", DateOutcome.NEW_CONTENT),
    ]
    text = mailer.send_mail.call_args.args[2]
    assert "For Date: 2024-06-03" in text
    assert "For Date: 2024-06-02" not in text


def test_missing_price_shows_sentinel_in_mail():
    source = Mock()
    source.search_solutions.return_value = response(
        solution("1", "Frecciarossa 100", "FR")
    )
    monitor, mailer = make_monitor(source)
    monitor.run_once()
    text = mailer.send_mail.call_args.args[2]
    assert "Price: N/A" in text


def test_incomplete_config_contacts_nobody():
    source = Mock()
    monitor, mailer = make_monitor(source, EMAIL_RECIPIENTS=" , ")

    report = monitor.run_once()

    assert report.incomplete_config
    source.search_solutions.assert_not_called()
    mailer.send_mail.assert_not_called()


def test_delivery_failure_keeps_cache():
    source = Mock()
    source.search_solutions.return_value = response(
        solution("1", "Frecciarossa 100", "FR")
    )
    mailer = Mock()
    mailer.send_mail.side_effect = MailDeliveryError("smtp down")
    monitor, _ = make_monitor(source, mailer)

    first = monitor.run_once()
    assert first.recipients[0].delivery_error == "smtp down"
    assert not first.recipients[0].sent

    second = monitor.run_once()
    assert mailer.send_mail.call_count == 1
    assert not second.recipients[0].has_new_content


def test_recipients_are_tracked_separately():
    source = Mock()
    source.search_solutions.return_value = response(
        solution("1", "Frecciarossa 100", "FR")
    )
    monitor, mailer = make_monitor(source, EMAIL_RECIPIENTS="a@x.com,b@x.com")

    report = monitor.run_once()

    assert [c.args[0] for c in mailer.send_mail.call_args_list] == [
        "a@x.com",
        "b@x.com",
    ]
    assert report.emails_sent == 2


def test_only_new_trains_in_followup_mail():
    source = Mock()
    source.search_solutions.return_value = response(
        solution("1", "Frecciarossa 100", "FR")
    )
    monitor, mailer = make_monitor(source)
    monitor.run_once()

    source.search_solutions.return_value = response(
        solution("1", "Frecciarossa 100", "FR", price=19.9),
        solution("2", "Frecciarossa 102", "FR"),
    )
    monitor.run_once()

    assert mailer.send_mail.call_count == 2
    text = mailer.send_mail.call_args.args[2]
    assert "Frecciarossa 102" in text
    assert "Frecciarossa 100" not in text


def test_configuration_is_reloaded_each_run():
    source = Mock()
    source.search_solutions.return_value = response(
        solution("1", "Frecciarossa 100", "FR")
    )
    loaders = iter(
        [
            settings_loader(TRAIN_CATEGORIES="IC")(),
            settings_loader(TRAIN_CATEGORIES="FR")(),
        ]
    )
    mailer = Mock()
    monitor = TrainMonitor(source, mailer, settings_loader=lambda: next(loaders))

    assert monitor.run_once().emails_sent == 0
    assert monitor.run_once().emails_sent == 1


def test_route_overrides_reach_the_request():
    source = Mock()
    source.search_solutions.return_value = response()
    monitor, _ = make_monitor(
        source, DEPARTURE_LOCATION_ID="830001700", ARRIVAL_LOCATION_ID="830008409"
    )
    monitor.run_once()
    request = source.search_solutions.call_args.args[0]
    assert request.departure_location_id == 830001700
    assert request.arrival_location_id == 830008409
    assert request.departure_time == "2024-06-01"


def test_overlapping_run_is_skipped():
    started = threading.Event()
    release = threading.Event()
    source = Mock()

    def slow_search(request):
        started.set()
        release.wait(5)
        return response()

    source.search_solutions.side_effect = slow_search
    monitor, _ = make_monitor(source)

    worker = threading.Thread(target=monitor.run_once)
    worker.start()
    assert started.wait(5)
    assert monitor.is_running

    overlapping = monitor.run_once()

    release.set()
    worker.join(5)
    assert overlapping.skipped
    assert source.search_solutions.call_count == 1
    assert not monitor.is_running


def test_past_dates_evicted_when_enabled():
    source = Mock()
    source.search_solutions.return_value = response(
        solution("1", "Frecciarossa 100", "FR")
    )
    dedup = Deduplicator()
    dedup.evict_before = Mock(return_value=0)
    monitor = TrainMonitor(
        source, Mock(), dedup, settings_loader(CACHE_EVICT_PAST_DATES="true")
    )
    monitor.run_once()
    dedup.evict_before.assert_called_once()
    assert dedup.evict_before.call_args.kwargs["keep"] == ("2024-06-01",)


def test_configured_past_date_is_not_resent():
    source = Mock()
    source.search_solutions.return_value = response(
        solution("1", "Frecciarossa 100", "FR")
    )
    monitor, mailer = make_monitor(
        source, DATES_TO_CHECK="2020-01-01", CACHE_EVICT_PAST_DATES="true"
    )

    for _ in range(3):
        monitor.run_once()

    assert mailer.send_mail.call_count == 1


def test_no_criteria_contacts_nobody():
    source = Mock()
    monitor, mailer = make_monitor(source, TRAIN_CATEGORIES="", DENOMINATIONS="")

    report = monitor.run_once()

    assert report.incomplete_config
    source.search_solutions.assert_not_called()
    mailer.send_mail.assert_not_called()
