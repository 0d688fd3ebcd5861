"""Fixed-offset timezone conversion and time formatting helpers."""

from __future__ import annotations

import math
from datetime import datetime, timezone

NON_TIME_LABELS: frozenset[str] = frozenset({"all day", "tentative", "day 1", "day 2"})


def normalize_hour(value: float) -> float:
    """Wrap any hour value into ``[0, 24)``."""
    return ((value % 24) + 24) % 24


def utc_hour_to_local(utc_hour: float, offset_hours: float) -> float:
    return normalize_hour(utc_hour + offset_hours)


def local_hour_to_utc(local_hour: float, offset_hours: float) -> float:
    return normalize_hour(local_hour - offset_hours)


def utc_hours_of(moment: datetime) -> float:
    """Fractional UTC hour of an instant, seconds included.

    Naive datetimes are taken to be UTC already.
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return (
        moment.hour
        + moment.minute / 60
        + (moment.second + moment.microsecond / 1_000_000) / 3600
    )


def format_hour(hour: float) -> str:
    """Format a fractional hour as ``HH:MM``.

    Minutes are rounded first and then the whole value is re-normalised, so
    23.999 becomes ``00:00`` rather than ``24:00`` or ``23:60``.
    """
    total_minutes = math.floor(hour * 60 + 0.5)
    total_minutes %= 24 * 60
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"


def format_hour_in_timezone(utc_hour: float, offset_hours: float) -> str:
    return format_hour(utc_hour_to_local(utc_hour, offset_hours))


def format_countdown(seconds: float) -> str:
    """``-0h 14m 0s`` style countdown; the sign is kept for pre-open values."""
    sign = "-" if seconds < 0 else ""
    total = int(round(abs(seconds)))
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    return f"{sign}{hours}h {minutes}m {secs}s"


def format_clock(seconds: float) -> str:
    total = int(round(abs(seconds)))
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def parse_hhmm(text: str | None) -> float | None:
    """Parse an ``H:MM`` / ``HH:MM`` UTC label into fractional hours.

    Returns None for empty input and for labels such as ``All Day`` or
    ``Tentative`` that carry no clock time.
    """
    if not text:
        return None
    raw = text.strip()
    if not raw or raw.lower() in NON_TIME_LABELS:
        return None

    head, _, tail = raw.partition(":")
    try:
        hours = int(head)
        minutes = int(tail[:2]) if tail else 0
    except ValueError:
        return None
    if not (0 <= hours < 24 and 0 <= minutes < 60) and (hours, minutes) != (24, 0):
        return None
    return hours + minutes / 60


def convert_utc_time_string(text: str | None, offset_hours: float) -> str:
    """Convert a UTC ``HH:MM`` label to local ``HH:MM``, minute exact.

    Labels without a clock time are returned unchanged.
    """
    utc_hours = parse_hhmm(text)
    if utc_hours is None:
        return text or ""

    utc_minutes = round(utc_hours * 60)
    offset_minutes = math.floor(offset_hours * 60 + 0.5)
    local_minutes = (utc_minutes + offset_minutes) % (24 * 60)
    hours, minutes = divmod(local_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"
