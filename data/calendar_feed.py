"""Economic calendar feed normalised to UTC ``HH:MM`` labels (ForexFactory compatible)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Final

FF_CALENDAR_URL: Final[str] = "https://nfs.faireconomy.media/ff_calendar_thisweek.json"


def _parse_event_time(value: str) -> datetime:
    normalized = value.replace("Z", "+00:00")
    parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_calendar_events(payload: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Map raw feed rows to ``{date_utc, time_utc, currency, impact, event, ...}``.

    Rows with an unparseable timestamp keep their raw label in ``time_utc``
    (e.g. ``Tentative``), which the timeline later skips.
    """
    out: list[dict[str, Any]] = []
    for row in payload:
        raw_time = row.get("date") or row.get("time") or ""
        time_utc = str(raw_time)
        date_utc: str | None = None
        if isinstance(raw_time, str) and raw_time:
            try:
                event_time = _parse_event_time(raw_time)
            except ValueError:
                pass
            else:
                time_utc = event_time.strftime("%H:%M")
                date_utc = event_time.date().isoformat()

        out.append(
            {
                "date_utc": date_utc,
                "time_utc": time_utc,
                "currency": row.get("country") or row.get("currency"),
                "impact": row.get("impact"),
                "event": row.get("title") or row.get("event"),
                "forecast": row.get("forecast"),
                "previous": row.get("previous"),
                "actual": row.get("actual"),
            }
        )
    return out


def fetch_calendar_events(timeout_s: int = 5, url: str = FF_CALENDAR_URL) -> list[dict[str, Any]]:
    """Fetch this week's calendar and normalise it."""
    try:
        import requests
    except ImportError as exc:
        raise ImportError("requests is required to fetch the economic calendar") from exc

    response = requests.get(url, timeout=timeout_s)
    response.raise_for_status()

    payload = response.json()
    if not isinstance(payload, list):
        raise ValueError("Unexpected calendar payload format")
    return normalize_calendar_events(payload)
