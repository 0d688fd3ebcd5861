"""Session runtime loop: countdown ticks, status transitions and alert firing."""

from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from types import MappingProxyType
from typing import Mapping

from config.settings import (
    ALERT_CHECK_INTERVAL_SEC,
    ALERT_LOG_FILE,
    AUTO_DETECT_DST,
    COUNTDOWN_TICK_SEC,
    DEFAULT_TZ_OFFSET,
    LOG_FILE,
    LOG_LEVEL,
    MANUAL_DST_OVERRIDE,
    alert_lead_hours,
    validate_settings,
    warning_threshold_hours,
)
from execution.alerting import get_alert_service_for_db
from execution.alerts import SessionAlertService, compute_alert_events
from execution.logging_utils import setup_session_logging
from sessions.evaluator import build_snapshot
from sessions.models import Observer, SessionSnapshot, SessionStatus
from sessions.table import table_for
from storage.db import (
    connect,
    init_db,
    load_fired_alerts,
    load_observer_preferences,
    purge_fired_alerts,
    record_fired_alerts,
)
from timekeeping.tz import format_hour, utc_hours_of


@dataclass(frozen=True)
class RuntimeState:
    day_utc: date | None = None
    statuses: Mapping[str, SessionStatus] = field(default_factory=dict)
    fired_keys: frozenset[str] = frozenset()


def log_transitions(
    logger: logging.Logger,
    previous: Mapping[str, SessionStatus],
    current: Mapping[str, SessionStatus],
) -> list[tuple[str, SessionStatus | None, SessionStatus]]:
    changes: list[tuple[str, SessionStatus | None, SessionStatus]] = []
    for name, status in current.items():
        before = previous.get(name)
        if before is status:
            continue
        changes.append((name, before, status))
        if before is not None:
            logger.info("SESSION %s %s -> %s", name, before.value, status.value)
    return changes


def run_tick(
    now: datetime,
    conn: sqlite3.Connection,
    service: SessionAlertService,
    state: RuntimeState,
    logger: logging.Logger,
    *,
    offset_hours: float = 0.0,
    manual_override: bool | None = None,
    auto_detect: bool = True,
    check_alerts: bool = True,
) -> tuple[RuntimeState, SessionSnapshot]:
    """Evaluate one tick and, if asked, fire due alerts.

    Returns a new state; the previous one is never modified.
    """
    snapshot = build_snapshot(
        Observer(now_utc=now, offset_hours=offset_hours),
        manual_override,
        auto_detect,
        warning_threshold_hours=warning_threshold_hours(),
    )
    today = snapshot.now_utc.date()

    fired = state.fired_keys
    if state.day_utc is not None and today != state.day_utc:
        removed = purge_fired_alerts(conn, before_day=today)
        logger.info("UTC day rollover %s -> %s; purged %s alert keys", state.day_utc, today, removed)
        fired = frozenset()
    if state.day_utc is None:
        fired = frozenset(load_fired_alerts(conn, day=today))

    log_transitions(logger, state.statuses, snapshot.by_session)

    if check_alerts:
        utc_hours = utc_hours_of(snapshot.now_utc)
        events = compute_alert_events(table_for(snapshot.dst_active), alert_lead_hours())
        sent, updated = service.dispatch(events, utc_hours, set(fired))
        new_keys = updated - fired
        if new_keys:
            record_fired_alerts(conn, sorted(new_keys), day=today)
        for event in sent:
            logger.info("ALERT fired id=%s at=%s UTC", event.id, format_hour(utc_hours))
        fired = frozenset(updated)

    next_state = replace(
        state,
        day_utc=today,
        statuses=MappingProxyType(dict(snapshot.by_session)),
        fired_keys=fired,
    )
    return next_state, snapshot


def main() -> None:
    validate_settings()
    logger = setup_session_logging("fxsessions", file_path=LOG_FILE, alert_file_path=ALERT_LOG_FILE, level=LOG_LEVEL)

    conn = connect()
    init_db(conn)
    state = RuntimeState()
    last_alert_check = 0.0
    logger.info("Session runtime started tick=%ss alert_interval=%ss", COUNTDOWN_TICK_SEC, ALERT_CHECK_INTERVAL_SEC)

    try:
        while True:
            prefs = load_observer_preferences(
                conn,
                default_offset=DEFAULT_TZ_OFFSET,
                default_override=MANUAL_DST_OVERRIDE,
                default_auto_detect=AUTO_DETECT_DST,
            )
            monotonic_now = time.monotonic()
            check_alerts = monotonic_now - last_alert_check >= ALERT_CHECK_INTERVAL_SEC
            if check_alerts:
                last_alert_check = monotonic_now

            state, _ = run_tick(
                datetime.now(timezone.utc),
                conn,
                get_alert_service_for_db(conn),
                state,
                logger,
                offset_hours=prefs["tz_offset"],
                manual_override=prefs["dst_override"],
                auto_detect=prefs["auto_detect_dst"],
                check_alerts=check_alerts,
            )
            time.sleep(COUNTDOWN_TICK_SEC)
    except KeyboardInterrupt:
        logger.info("Session runtime stopped")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
