# storage/db.py
"""
SQLite storage for host-owned session dashboard state.

The session engine itself is pure; this module only persists what the
caller threads through it: the alert dedupe set, alert config and observer
preferences.
"""

from __future__ import annotations

import json
import os
import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from execution.alerts import AlertConfig

DB_ENV_VAR = "SESSION_DB_PATH"
DEFAULT_DB_PATH = Path("storage/fxsessions.sqlite")

ALERT_CONFIG_KEY = "alert_config"


def get_db_path() -> Path:
    """Return the configured SQLite path from env or default location."""
    configured = os.getenv(DB_ENV_VAR)
    return Path(configured) if configured else DEFAULT_DB_PATH


def connect(db_path: Path | None = None) -> sqlite3.Connection:
    """
    Open a SQLite connection, creating parent directories when needed.

    FastAPI may create and close dependency resources on different threads,
    so the connection is not bound to its creating thread.
    """
    path = db_path or get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def utc_now_iso() -> str:
    """Return the current UTC timestamp in ISO-8601 format."""
    return datetime.now(timezone.utc).isoformat()


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def init_db(conn: sqlite3.Connection) -> None:
    """Create storage tables and indexes. Safe to call repeatedly."""
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS fired_alerts (
            key TEXT NOT NULL,
            day_utc TEXT NOT NULL,
            fired_ts_utc TEXT NOT NULL,
            PRIMARY KEY (key, day_utc)
        );

        CREATE TABLE IF NOT EXISTS app_settings (
            key TEXT PRIMARY KEY,
            value_json TEXT NOT NULL,
            updated_ts_utc TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_fired_alerts_day ON fired_alerts(day_utc);
        """
    )
    conn.commit()


def _day_str(day: date | str | None) -> str:
    if day is None:
        return utc_today()
    if isinstance(day, date):
        return day.isoformat()
    return day


def load_fired_alerts(conn: sqlite3.Connection, *, day: date | str | None = None) -> set[str]:
    """Dedupe keys fired on the given UTC day (today by default).

    Keys from earlier days are never returned, which is what resets the
    dedupe set at UTC midnight.
    """
    rows = conn.execute(
        "SELECT key FROM fired_alerts WHERE day_utc = ?",
        (_day_str(day),),
    ).fetchall()
    return {str(row[0]) for row in rows}


def record_fired_alerts(conn: sqlite3.Connection, keys: Iterable[str], *, day: date | str | None = None) -> int:
    day_utc = _day_str(day)
    now = utc_now_iso()
    cur = conn.executemany(
        "INSERT OR IGNORE INTO fired_alerts (key, day_utc, fired_ts_utc) VALUES (?, ?, ?)",
        [(key, day_utc, now) for key in keys],
    )
    conn.commit()
    return cur.rowcount


def purge_fired_alerts(conn: sqlite3.Connection, *, before_day: date | str | None = None) -> int:
    """Delete dedupe keys older than ``before_day`` (today by default)."""
    cur = conn.execute("DELETE FROM fired_alerts WHERE day_utc < ?", (_day_str(before_day),))
    conn.commit()
    return cur.rowcount


def get_app_settings(conn: sqlite3.Connection, *, keys: list[str] | None = None) -> dict[str, Any]:
    if keys:
        placeholders = ",".join("?" for _ in keys)
        rows = conn.execute(
            f"SELECT key, value_json FROM app_settings WHERE key IN ({placeholders})",
            tuple(keys),
        ).fetchall()
    else:
        rows = conn.execute("SELECT key, value_json FROM app_settings ORDER BY key").fetchall()
    return {str(row[0]): json.loads(row[1]) for row in rows}


def put_app_settings(conn: sqlite3.Connection, values: dict[str, Any]) -> None:
    now = utc_now_iso()
    for key, value in values.items():
        conn.execute(
            """
            INSERT INTO app_settings (key, value_json, updated_ts_utc)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value_json = excluded.value_json,
                updated_ts_utc = excluded.updated_ts_utc
            """,
            (key, json.dumps(value, sort_keys=True), now),
        )
    conn.commit()


def load_alert_config(conn: sqlite3.Connection, *, default: AlertConfig | None = None) -> AlertConfig:
    stored = get_app_settings(conn, keys=[ALERT_CONFIG_KEY]).get(ALERT_CONFIG_KEY)
    if stored is None:
        return default or AlertConfig()
    return AlertConfig.from_dict(stored)


def save_alert_config(conn: sqlite3.Connection, config: AlertConfig) -> None:
    put_app_settings(conn, {ALERT_CONFIG_KEY: config.to_dict()})


OBSERVER_KEYS = ("tz_offset", "dst_override", "auto_detect_dst")


def load_observer_preferences(
    conn: sqlite3.Connection,
    *,
    default_offset: float = 0.0,
    default_override: bool | None = None,
    default_auto_detect: bool = True,
) -> dict[str, Any]:
    stored = get_app_settings(conn, keys=list(OBSERVER_KEYS))
    return {
        "tz_offset": float(stored.get("tz_offset", default_offset)),
        "dst_override": stored.get("dst_override", default_override),
        "auto_detect_dst": bool(stored.get("auto_detect_dst", default_auto_detect)),
    }
