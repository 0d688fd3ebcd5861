"""Open / warning / closed evaluation of session windows at an instant."""

from __future__ import annotations

from datetime import timezone
from types import MappingProxyType
from typing import Iterable

from sessions.models import (
    ActiveWindow,
    Observer,
    SessionDefinition,
    SessionEvaluation,
    SessionSnapshot,
    SessionState,
    SessionStatus,
    SessionWindow,
)
from sessions.table import resolve_dst_status, table_for
from timekeeping.tz import normalize_hour, utc_hour_to_local, utc_hours_of

DEFAULT_WARNING_THRESHOLD_HOURS = 0.25
SECONDS_PER_HOUR = 3600


def _within(value: float, threshold: float) -> bool:
    return 0 < value <= threshold


def evaluate_window(
    window: SessionWindow,
    now_utc_hours: float,
    warning_threshold_hours: float = DEFAULT_WARNING_THRESHOLD_HOURS,
) -> SessionState:
    """
    Evaluate one window at a UTC hour.

    The window is tested both as-is and shifted back a day, which catches a
    window that opened "yesterday" (``end > 24``) and is still running.
    A window closing within the threshold reports WARNING with its normal
    elapsed/remaining values. A window opening within the threshold reports
    WARNING with elapsed == remaining == minus the seconds until it opens.
    """
    now = normalize_hour(now_utc_hours)
    start, end = window.start, window.end

    for offset in (0, 24):
        s, e = start - offset, end - offset
        if s <= now < e:
            status = SessionStatus.WARNING if _within(e - now, warning_threshold_hours) else SessionStatus.OPEN
            return SessionState(
                status=status,
                elapsed_seconds=(now - s) * SECONDS_PER_HOUR,
                remaining_seconds=(e - now) * SECONDS_PER_HOUR,
                start_utc=start,
                end_utc=end,
            )

    # Next opening, looking at today, yesterday's alignment and tomorrow's.
    for until_start in (start - now, start - 24 - now, start + 24 - now):
        if _within(until_start, warning_threshold_hours):
            countdown = -(until_start * SECONDS_PER_HOUR)
            return SessionState(
                status=SessionStatus.WARNING,
                elapsed_seconds=countdown,
                remaining_seconds=countdown,
                start_utc=start,
                end_utc=end,
            )

    return SessionState(
        status=SessionStatus.CLOSED,
        elapsed_seconds=0.0,
        remaining_seconds=0.0,
        start_utc=start,
        end_utc=end,
    )


def evaluate_all_windows(
    table: Iterable[SessionDefinition],
    now_utc_hours: float,
    warning_threshold_hours: float = DEFAULT_WARNING_THRESHOLD_HOURS,
) -> SessionEvaluation:
    """Evaluate every main, overlap and killzone window of every session.

    ``active`` lists only windows that are OPEN or WARNING; ``by_session``
    reports each session's main window status.
    """
    active: list[ActiveWindow] = []
    by_session: dict[str, SessionStatus] = {}

    for session in table:
        for role, window in session.windows():
            state = evaluate_window(window, now_utc_hours, warning_threshold_hours)
            if role == "main":
                by_session[session.name] = state.status
            if state.is_active:
                active.append(ActiveWindow(session_name=session.name, role=role, window=window, state=state))

    return SessionEvaluation(active=tuple(active), by_session=MappingProxyType(by_session))


def build_snapshot(
    observer: Observer,
    manual_override: bool | None = None,
    auto_detect: bool = True,
    *,
    table: Iterable[SessionDefinition] | None = None,
    warning_threshold_hours: float = DEFAULT_WARNING_THRESHOLD_HOURS,
) -> SessionSnapshot:
    """One full tick: pick the table, evaluate it, place "now" locally."""
    now_utc = observer.now_utc
    if now_utc.tzinfo is not None:
        now_utc = now_utc.astimezone(timezone.utc)

    dst_active = resolve_dst_status(now_utc, manual_override, auto_detect)
    sessions = tuple(table) if table is not None else table_for(dst_active)
    utc_hours = utc_hours_of(now_utc)
    evaluation = evaluate_all_windows(sessions, utc_hours, warning_threshold_hours)

    return SessionSnapshot(
        now_utc=now_utc,
        offset_hours=observer.offset_hours,
        now_local_hour=utc_hour_to_local(utc_hours, observer.offset_hours),
        dst_active=dst_active,
        active=evaluation.active,
        by_session=evaluation.by_session,
    )
