from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from config.settings import APP_ENV, AUTO_DETECT_DST, MANUAL_DST_OVERRIDE
from sessions.table import resolve_dst_status

router = APIRouter(tags=["status"])


@router.get("/health")
def get_health() -> dict[str, object]:
    now = datetime.now(timezone.utc)
    return {
        "ok": True,
        "env": APP_ENV,
        "now_utc": now.isoformat(),
        "dst_active": resolve_dst_status(now, MANUAL_DST_OVERRIDE, AUTO_DETECT_DST),
    }
