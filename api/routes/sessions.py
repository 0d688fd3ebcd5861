from __future__ import annotations

import sqlite3
from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.deps import get_db, resolve_now, resolve_observer
from config.settings import warning_threshold_hours
from config.sessions import TIMEZONES, find_timezone
from sessions.evaluator import build_snapshot
from sessions.models import ActiveWindow, Observer, SessionDefinition
from sessions.table import table_for
from sessions.timeline import build_time_blocks
from storage.db import OBSERVER_KEYS, put_app_settings
from timekeeping.tz import format_countdown, format_hour_in_timezone

router = APIRouter(tags=["sessions"])


class ObserverPreferences(BaseModel):
    tz_offset: float | None = None
    dst_override: bool | None = None
    auto_detect_dst: bool | None = None


def _active_to_dict(item: ActiveWindow, offset: float) -> dict[str, object]:
    state = item.state
    return {
        "session": item.session_name,
        "role": item.role,
        "name": item.window.name,
        "kind": item.window.kind.value,
        "color": item.window.color,
        "status": state.status.value,
        "elapsed_seconds": round(state.elapsed_seconds, 3),
        "remaining_seconds": round(state.remaining_seconds, 3),
        "elapsed_label": format_countdown(state.elapsed_seconds),
        "remaining_label": format_countdown(state.remaining_seconds),
        "start_utc": state.start_utc,
        "end_utc": state.end_utc,
        "start_local": format_hour_in_timezone(state.start_utc, offset),
        "end_local": format_hour_in_timezone(state.end_utc, offset),
    }


def _table_to_list(table: tuple[SessionDefinition, ...], offset: float) -> list[dict[str, object]]:
    out: list[dict[str, object]] = []
    for session in table:
        windows = []
        for role, window in session.windows():
            windows.append(
                {
                    "role": role,
                    "key": window.key,
                    "name": window.name,
                    "kind": window.kind.value,
                    "start_utc": window.start,
                    "end_utc": window.end,
                    "start_local": format_hour_in_timezone(window.start, offset),
                    "end_local": format_hour_in_timezone(window.end, offset),
                    "duration_hours": window.duration_hours,
                    "color": window.color,
                    "tooltip": asdict(window.tooltip) if window.tooltip else None,
                }
            )
        out.append({"name": session.name, "windows": windows})
    return out


@router.get("/sessions")
def get_sessions(
    offset: float | None = None,
    dst_override: bool | None = None,
    auto_detect: bool | None = None,
    at: datetime | None = None,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, object]:
    tz_offset, override, detect = resolve_observer(conn, offset, dst_override, auto_detect)
    snapshot = build_snapshot(
        Observer(now_utc=resolve_now(at), offset_hours=tz_offset),
        override,
        detect,
        warning_threshold_hours=warning_threshold_hours(),
    )
    return {
        "now_utc": snapshot.now_utc.isoformat(),
        "offset_hours": snapshot.offset_hours,
        "now_local_hour": snapshot.now_local_hour,
        "dst_active": snapshot.dst_active,
        "table": "daylight" if snapshot.dst_active else "standard",
        "active": [_active_to_dict(item, tz_offset) for item in snapshot.active],
        "by_session": {name: status.value for name, status in snapshot.by_session.items()},
    }


@router.get("/sessions/table")
def get_session_table(
    dst: bool = False,
    offset: float | None = None,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, object]:
    tz_offset, _, _ = resolve_observer(conn, offset, None, None)
    return {
        "table": "daylight" if dst else "standard",
        "offset_hours": tz_offset,
        "sessions": _table_to_list(table_for(dst), tz_offset),
    }


@router.get("/sessions/timeline")
def get_timeline(
    offset: float | None = None,
    dst: bool | None = None,
    at: datetime | None = None,
    conn: sqlite3.Connection = Depends(get_db),
) -> list[dict[str, object]]:
    tz_offset, override, detect = resolve_observer(conn, offset, dst, None)
    snapshot = build_snapshot(Observer(now_utc=resolve_now(at), offset_hours=tz_offset), override, detect)
    blocks = build_time_blocks(table_for(snapshot.dst_active), tz_offset)
    return [{**asdict(block), "kind": block.kind.value} for block in blocks]


@router.get("/timezones")
def list_timezones() -> list[dict[str, object]]:
    return [{"label": tz.label, "offset": tz.offset, "description": tz.description} for tz in TIMEZONES]


@router.get("/timezones/{label}")
def get_timezone(label: str) -> dict[str, object]:
    tz = find_timezone(label)
    if tz is None:
        raise HTTPException(status_code=404, detail="Unknown timezone label")
    return {"label": tz.label, "offset": tz.offset, "description": tz.description}


@router.get("/observer")
def get_observer(conn: sqlite3.Connection = Depends(get_db)) -> dict[str, object]:
    tz_offset, override, detect = resolve_observer(conn, None, None, None)
    return {"tz_offset": tz_offset, "dst_override": override, "auto_detect_dst": detect}


@router.put("/observer")
def put_observer(
    payload: ObserverPreferences,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, object]:
    values = {key: getattr(payload, key) for key in OBSERVER_KEYS if key in payload.model_fields_set}
    if "tz_offset" in values:
        if values["tz_offset"] is None:
            raise HTTPException(status_code=422, detail="tz_offset cannot be null")
        resolve_observer(conn, values["tz_offset"], None, None)
    if values.get("auto_detect_dst"):
        values.setdefault("dst_override", None)
    put_app_settings(conn, values)
    return {"updated": sorted(values.keys())}
