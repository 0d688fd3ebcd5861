"""Place session windows and calendar events on an observer's 24h axis."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable

from sessions.models import SessionDefinition, WindowKind
from timekeeping.tz import format_hour, normalize_hour, parse_hhmm, utc_hour_to_local

Y_LEVELS: dict[WindowKind, int] = {
    WindowKind.MAIN: 0,
    WindowKind.OVERLAP: 1,
    WindowKind.KILLZONE: 2,
}

IMPACT_COLORS: dict[str, str] = {
    "high": "#ef4444",
    "medium": "#f59e0b",
    "low": "#10b981",
}
DEFAULT_IMPACT_COLOR = "#64748b"

MIN_SEGMENT_HOURS = 0.001


@dataclass(frozen=True)
class TimeBlock:
    key: str
    session_name: str
    window_name: str
    kind: WindowKind
    left: float
    width: float
    y_level: int
    start_utc: float
    end_utc: float
    local_start: str
    local_end: str


def build_time_blocks(table: Iterable[SessionDefinition], offset_hours: float) -> list[TimeBlock]:
    """
    Lay every window out on the local 0-24h axis as percentages.

    A window that runs past local midnight is split in two; a trailing
    piece shorter than ``MIN_SEGMENT_HOURS`` is dropped.
    """
    blocks: list[TimeBlock] = []

    for session in table:
        for _, window in session.windows():
            duration = window.duration_hours
            start_pos = normalize_hour(window.start + offset_hours)
            end_pos = start_pos + duration
            common = {
                "session_name": session.name,
                "window_name": window.name,
                "kind": window.kind,
                "y_level": Y_LEVELS[window.kind],
                "start_utc": window.start,
                "end_utc": window.end,
                "local_start": format_hour(start_pos),
                "local_end": format_hour(end_pos),
            }

            if end_pos <= 24:
                blocks.append(
                    TimeBlock(key=f"{window.key}_1", left=start_pos / 24 * 100, width=duration / 24 * 100, **common)
                )
                continue

            blocks.append(
                TimeBlock(key=f"{window.key}_1", left=start_pos / 24 * 100, width=(24 - start_pos) / 24 * 100, **common)
            )
            tail = end_pos - 24
            if tail > MIN_SEGMENT_HOURS:
                blocks.append(TimeBlock(key=f"{window.key}_2", left=0.0, width=tail / 24 * 100, **common))

    return blocks


def impact_color(impact: str | None) -> str:
    return IMPACT_COLORS.get((impact or "").strip().lower(), DEFAULT_IMPACT_COLOR)


def place_calendar_events(
    events: Iterable[dict[str, Any]],
    offset_hours: float,
    impact_levels: Iterable[str] | None = None,
) -> list[dict[str, Any]]:
    """Attach a local-hour position to calendar events carrying ``time_utc``.

    Events whose ``time_utc`` is missing or not a clock time are skipped.
    An empty or missing ``impact_levels`` keeps every impact.
    """
    wanted = {level.strip().lower() for level in (impact_levels or [])}
    placed: list[dict[str, Any]] = []

    for event in events:
        impact = str(event.get("impact") or "").lower()
        if wanted and impact not in wanted:
            continue

        utc_hours = parse_hhmm(event.get("time_utc"))
        if utc_hours is None:
            continue

        local_hour = utc_hour_to_local(utc_hours, offset_hours)
        placed.append(
            {
                **event,
                "local_hour": local_hour,
                "local_time": format_hour(local_hour),
                "position": local_hour / 24 * 100,
                "color": impact_color(impact),
            }
        )

    return placed


def stack_events(placed: Iterable[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Group placed events that land in the same 0.1% slot of the axis."""
    groups: dict[str, list[dict[str, Any]]] = {}
    for event in placed:
        slot = str(math.floor(event["position"] * 10))
        groups.setdefault(slot, []).append(event)
    return groups
