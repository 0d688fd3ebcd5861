from __future__ import annotations

import logging
import sqlite3
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from api.deps import get_db, resolve_observer
from data.calendar_feed import fetch_calendar_events
from sessions.timeline import place_calendar_events, stack_events

router = APIRouter(prefix="/calendar", tags=["calendar"])
logger = logging.getLogger("fxsessions.api")


class CalendarPlacementRequest(BaseModel):
    events: list[dict[str, Any]]
    offset: float | None = None
    impact_levels: list[str] | None = None


@router.post("/place")
def place_events(
    payload: CalendarPlacementRequest,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, object]:
    tz_offset, _, _ = resolve_observer(conn, payload.offset, None, None)
    placed = place_calendar_events(payload.events, tz_offset, payload.impact_levels)
    return {
        "offset_hours": tz_offset,
        "events": placed,
        "stacked": stack_events(placed),
        "skipped": len(payload.events) - len(placed),
    }


@router.get("/week")
def get_week(
    offset: float | None = None,
    impact: list[str] | None = Query(default=None),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, object]:
    tz_offset, _, _ = resolve_observer(conn, offset, None, None)
    try:
        events = fetch_calendar_events()
    except Exception as exc:  # noqa: BLE001
        logger.warning("calendar fetch failed err=%s", exc)
        raise HTTPException(status_code=502, detail="Calendar feed unavailable") from exc
    placed = place_calendar_events(events, tz_offset, impact)
    return {"offset_hours": tz_offset, "events": placed, "stacked": stack_events(placed)}
