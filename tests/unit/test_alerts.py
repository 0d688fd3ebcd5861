from __future__ import annotations

import logging

import pytest

from execution.alerts import (
    AlertConfig,
    AlertEventType,
    EmailSink,
    LogSink,
    SessionAlertService,
    alert_body,
    alert_title,
    build_alert_service,
    compute_alert_events,
    dedupe_key,
    due_alerts,
    load_email_config,
    should_fire,
)
from sessions.models import SessionDefinition, SessionWindow
from sessions.table import STANDARD_TABLE

OVERLAP_TABLE = (
    SessionDefinition(
        name="New York",
        main=SessionWindow(key="overlap", name="London-NY Overlap", start=13, end=17, color="#f60"),
    ),
)


def _events_by_type(table=OVERLAP_TABLE):
    return {e.event_type: e for e in compute_alert_events(table)}


class FailingSink:
    def send(self, *, title: str, body: str) -> None:
        raise RuntimeError("smtp down")


def test_four_events_per_window() -> None:
    events = compute_alert_events(OVERLAP_TABLE)
    assert [e.trigger_hour for e in events] == [12.75, 13, 16.75, 17]
    assert [e.event_type for e in events] == [
        AlertEventType.OPEN_BEFORE,
        AlertEventType.OPEN,
        AlertEventType.CLOSE_BEFORE,
        AlertEventType.CLOSE,
    ]
    assert events[0].id == "New York_main_open-before"
    assert events[0].message == "London-NY Overlap opens in 15 minutes"
    assert events[1].message == "London-NY Overlap is now open"
    assert events[2].message == "London-NY Overlap closes in 15 minutes"
    assert events[3].message == "London-NY Overlap is now closed"
    assert all(e.color == "#f60" for e in events)


def test_standard_table_event_count_and_unique_ids() -> None:
    events = compute_alert_events(STANDARD_TABLE)
    assert len(events) == 36
    assert len({e.id for e in events}) == 36


def test_custom_lead_time() -> None:
    events = compute_alert_events(OVERLAP_TABLE, lead_hours=0.5)
    assert events[0].trigger_hour == 12.5
    assert events[0].message.endswith("opens in 30 minutes")


def test_should_fire_within_tolerance() -> None:
    event = _events_by_type()[AlertEventType.OPEN]
    assert should_fire(event, 13.0)
    assert should_fire(event, 13 + 0.5 / 60)
    assert not should_fire(event, 13 + 2 / 60)
    assert not should_fire(event, 1.0)


def test_should_fire_wraps_the_dial() -> None:
    table = (
        SessionDefinition(name="Asia", main=SessionWindow(key="a", name="Tokyo", start=0, end=9)),
        SessionDefinition(name="Late", main=SessionWindow(key="l", name="Late", start=22, end=31)),
    )
    events = {e.id: e for e in compute_alert_events(table)}

    asia_open_before = events["Asia_main_open-before"]
    assert asia_open_before.trigger_hour == -0.25
    assert should_fire(asia_open_before, 23.75)

    late_close = events["Late_main_close"]
    assert late_close.trigger_hour == 31
    assert should_fire(late_close, 7.0)
    assert should_fire(late_close, 6.995)


def test_standard_sydney_close_fires_at_six() -> None:
    sydney_close = next(e for e in compute_alert_events(STANDARD_TABLE) if e.id == "Sydney_main_close")
    assert sydney_close.trigger_hour == 30
    assert should_fire(sydney_close, 6.0)


def test_dedupe_key_is_independent_of_the_tick_hour() -> None:
    by_type = _events_by_type()
    assert dedupe_key(by_type[AlertEventType.OPEN_BEFORE]) == "New York_main_open-before@12:45"
    assert dedupe_key(by_type[AlertEventType.CLOSE]) == "New York_main_close@17:00"

    wrapped = compute_alert_events(
        (SessionDefinition(name="Asia", main=SessionWindow(key="a", name="Tokyo", start=0, end=9)),)
    )[0]
    assert dedupe_key(wrapped) == "Asia_main_open-before@23:45"


def test_whole_hour_trigger_fires_once_across_the_hour_boundary() -> None:
    events = compute_alert_events(OVERLAP_TABLE)
    fired: set[str] = set()
    sends = []
    for step in range(13):  # 16:59:00 to 17:01:00 every 10 s
        now = 16 + 59 / 60 + step * 10 / 3600
        due = due_alerts(events, now, fired)
        sends.extend(event.id for event, _ in due)
        fired.update(key for _, key in due)
    assert sends == ["New York_main_close"]
    assert fired == {"New York_main_close@17:00"}


def test_due_alerts_skips_fired_keys_without_mutating() -> None:
    events = compute_alert_events(OVERLAP_TABLE)
    fired: set[str] = set()
    due = due_alerts(events, 12.75, fired)
    assert [(e.event_type, key) for e, key in due] == [
        (AlertEventType.OPEN_BEFORE, "New York_main_open-before@12:45"),
    ]
    assert fired == set()

    fired.add(due[0][1])
    assert due_alerts(events, 12.76, fired) == []


def test_title_and_body() -> None:
    by_type = _events_by_type()
    assert alert_title(by_type[AlertEventType.OPEN_BEFORE]) == "Opening Alert"
    assert alert_title(by_type[AlertEventType.CLOSE]) == "Closing Alert"
    assert alert_body(by_type[AlertEventType.CLOSE_BEFORE]) == "London-NY Overlap closes in 15 minutes (16:45 UTC)"


def test_alert_config_round_trip_defaults() -> None:
    config = AlertConfig.from_dict({"enabled": True})
    assert config == AlertConfig(enabled=True, sound_enabled=True, auto_dismiss_seconds=5)
    assert AlertConfig.from_dict(None).to_dict() == {
        "enabled": False,
        "sound_enabled": True,
        "auto_dismiss_seconds": 5,
    }


def test_service_disabled_sends_nothing(capture_sink) -> None:
    service = SessionAlertService([capture_sink], config=AlertConfig(enabled=False))
    fired = {"existing"}
    sent, updated = service.dispatch(compute_alert_events(OVERLAP_TABLE), 13.0, fired)
    assert sent == []
    assert updated == {"existing"}
    assert updated is not fired
    assert capture_sink.messages == []


def test_service_sends_once_and_prefixes_environment(capture_sink) -> None:
    service = SessionAlertService([capture_sink], config=AlertConfig(enabled=True), environment="staging")
    events = compute_alert_events(OVERLAP_TABLE)

    sent, fired = service.dispatch(events, 13.0, set())
    assert [e.event_type for e in sent] == [AlertEventType.OPEN]
    assert fired == {"New York_main_open@13:00"}
    assert capture_sink.messages == [
        ("[staging] Opening Alert", "London-NY Overlap is now open (13:00 UTC)"),
    ]

    sent_again, fired_again = service.dispatch(events, 13.005, fired)
    assert sent_again == []
    assert fired_again == fired
    assert len(capture_sink.messages) == 1


def test_failing_sink_does_not_block_others(capture_sink, caplog) -> None:
    service = SessionAlertService([FailingSink(), capture_sink], config=AlertConfig(enabled=True))
    with caplog.at_level(logging.WARNING, logger="fxsessions.alerts"):
        sent, fired = service.dispatch(compute_alert_events(OVERLAP_TABLE), 17.0, set())
    assert len(sent) == 1
    assert fired == {"New York_main_close@17:00"}
    assert capture_sink.messages[0][0] == "Closing Alert"
    assert "smtp down" in caplog.text


def test_log_sink_writes_info(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="fxsessions.alerts"):
        LogSink().send(title="Opening Alert", body="London Session is now open (08:00 UTC)")
    assert "ALERT Opening Alert" in caplog.text


def test_email_config_requires_host_and_recipient(monkeypatch) -> None:
    for name in ("SMTP_HOST", "ALERT_EMAIL_TO", "SMTP_USE_SSL", "SMTP_USE_STARTTLS"):
        monkeypatch.delenv(name, raising=False)
    assert load_email_config({}) is None
    assert load_email_config({"SMTP_HOST": "smtp.example.com"}) is None

    config = load_email_config({"SMTP_HOST": "smtp.example.com", "ALERT_EMAIL_TO": "desk@example.com", "SMTP_PORT": 2525})
    assert config is not None
    assert config.port == 2525
    assert config.use_starttls is True
    assert config.use_ssl is False


def test_build_alert_service_providers(monkeypatch) -> None:
    for name in ("SMTP_HOST", "ALERT_EMAIL_TO"):
        monkeypatch.delenv(name, raising=False)
    plain = build_alert_service(config=AlertConfig(enabled=True))
    assert [type(p) for p in plain.providers] == [LogSink]

    with_email = build_alert_service(settings={"SMTP_HOST": "smtp.example.com", "ALERT_EMAIL_TO": "desk@example.com"})
    assert [type(p) for p in with_email.providers] == [LogSink, EmailSink]


@pytest.mark.parametrize("now", [12.74, 12.76])
def test_open_before_fires_near_trigger(now: float) -> None:
    event = _events_by_type()[AlertEventType.OPEN_BEFORE]
    assert should_fire(event, now)
