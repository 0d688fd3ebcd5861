# api/deps.py
from __future__ import annotations

import sqlite3
from collections.abc import Generator
from datetime import datetime, timezone

from fastapi import HTTPException

from config.settings import AUTO_DETECT_DST, DEFAULT_TZ_OFFSET, MANUAL_DST_OVERRIDE, validate_offset
from storage.db import connect, init_db, load_observer_preferences


def get_db() -> Generator[sqlite3.Connection, None, None]:
    conn = connect()
    try:
        init_db(conn)
        yield conn
    finally:
        conn.close()


def resolve_now(at: datetime | None) -> datetime:
    if at is None:
        return datetime.now(timezone.utc)
    if at.tzinfo is None:
        return at.replace(tzinfo=timezone.utc)
    return at.astimezone(timezone.utc)


def resolve_observer(
    conn: sqlite3.Connection,
    offset: float | None,
    dst_override: bool | None,
    auto_detect: bool | None,
) -> tuple[float, bool | None, bool]:
    """Fill unspecified observer fields from stored preferences, then env."""
    prefs = load_observer_preferences(
        conn,
        default_offset=DEFAULT_TZ_OFFSET,
        default_override=MANUAL_DST_OVERRIDE,
        default_auto_detect=AUTO_DETECT_DST,
    )
    raw_offset = prefs["tz_offset"] if offset is None else offset
    try:
        resolved_offset = validate_offset(raw_offset)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    override = prefs["dst_override"] if dst_override is None else dst_override
    detect = prefs["auto_detect_dst"] if auto_detect is None else auto_detect
    return resolved_offset, override, detect
