from __future__ import annotations

import sqlite3
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.deps import get_db, resolve_now, resolve_observer
from config.settings import alert_lead_hours
from execution.alerting import default_alert_config
from execution.alerts import AlertConfig, compute_alert_events
from sessions.table import resolve_dst_status, table_for
from storage.db import load_alert_config, load_fired_alerts, save_alert_config
from timekeeping.tz import format_hour_in_timezone, normalize_hour

router = APIRouter(prefix="/alerts", tags=["alerts"])


class AlertConfigUpdate(BaseModel):
    enabled: bool | None = None
    sound_enabled: bool | None = None
    auto_dismiss_seconds: int | None = Field(default=None, ge=0, le=600)


@router.get("/events")
def list_alert_events(
    offset: float | None = None,
    dst_override: bool | None = None,
    at: datetime | None = None,
    conn: sqlite3.Connection = Depends(get_db),
) -> list[dict[str, object]]:
    tz_offset, override, detect = resolve_observer(conn, offset, dst_override, None)
    table = table_for(resolve_dst_status(resolve_now(at), override, detect))
    return [
        {
            "id": event.id,
            "session": event.session_name,
            "window": event.window_name,
            "event_type": event.event_type.value,
            "trigger_hour_utc": event.trigger_hour,
            "trigger_utc": format_hour_in_timezone(normalize_hour(event.trigger_hour), 0),
            "trigger_local": format_hour_in_timezone(event.trigger_hour, tz_offset),
            "message": event.message,
            "color": event.color,
        }
        for event in compute_alert_events(table, alert_lead_hours())
    ]


@router.get("/fired")
def list_fired(conn: sqlite3.Connection = Depends(get_db)) -> list[str]:
    return sorted(load_fired_alerts(conn))


@router.get("/config")
def get_alert_config(conn: sqlite3.Connection = Depends(get_db)) -> dict[str, object]:
    return load_alert_config(conn, default=default_alert_config()).to_dict()


@router.put("/config")
def put_alert_config(
    payload: AlertConfigUpdate,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, object]:
    current = load_alert_config(conn, default=default_alert_config())
    updated = AlertConfig.from_dict({**current.to_dict(), **payload.model_dump(exclude_none=True)})
    save_alert_config(conn, updated)
    return updated.to_dict()
