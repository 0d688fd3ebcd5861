from __future__ import annotations

import sqlite3
from datetime import datetime

from fastapi import APIRouter, Depends

from api.deps import get_db, resolve_now, resolve_observer
from indicators.volume_profile import (
    VOLUME_CURVE,
    current_volume_note,
    interpolate_volume,
    now_marker,
    rotation_steps,
    volume_profile_frame,
)
from timekeeping.tz import utc_hours_of

router = APIRouter(tags=["volume"])


@router.get("/volume")
def get_volume(
    offset: float | None = None,
    interpolate: bool = False,
    at: datetime | None = None,
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, object]:
    tz_offset, _, _ = resolve_observer(conn, offset, None, None)
    frame = volume_profile_frame(tz_offset, VOLUME_CURVE)
    marker = now_marker(utc_hours_of(resolve_now(at)), tz_offset)

    out: dict[str, object] = {
        "offset_hours": tz_offset,
        "rotation_steps": rotation_steps(tz_offset),
        "points": frame.to_dict(orient="records"),
        "now_local_hour": marker,
        "note": current_volume_note(marker, tz_offset),
    }
    if interpolate:
        out["interpolated"] = interpolate_volume(frame["volume"].tolist())
    return out
