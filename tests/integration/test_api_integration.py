from __future__ import annotations

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

import api.routes.calendar as calendar_routes
from api.app import app
from storage.db import connect, init_db, record_fired_alerts


@pytest.fixture()
def client(tmp_path, monkeypatch):
    db_path = tmp_path / "api_integration.sqlite"
    monkeypatch.setenv("SESSION_DB_PATH", str(db_path))
    conn = connect(db_path)
    init_db(conn)
    conn.close()
    return TestClient(app)


def test_health(client) -> None:
    res = client.get("/health")
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert isinstance(body["dst_active"], bool)


def test_sessions_before_london_open(client) -> None:
    res = client.get("/sessions", params={"at": "2025-01-15T07:46:00Z", "offset": 0})
    assert res.status_code == 200
    body = res.json()
    assert body["dst_active"] is False
    assert body["table"] == "standard"
    assert body["by_session"] == {"Sydney": "CLOSED", "Asia": "WARNING", "London": "WARNING", "New York": "CLOSED"}

    london = next(a for a in body["active"] if a["session"] == "London" and a["role"] == "main")
    assert london["elapsed_seconds"] == pytest.approx(-840)
    assert london["remaining_seconds"] == pytest.approx(-840)
    assert london["elapsed_label"] == "-0h 14m 0s"
    assert london["start_local"] == "08:00"
    killzone = next(a for a in body["active"] if a["role"] == "killzone")
    assert killzone["status"] == "OPEN"


def test_sessions_in_summer_with_local_offset(client) -> None:
    res = client.get("/sessions", params={"at": "2025-07-01T12:30:00Z", "offset": -4})
    body = res.json()
    assert body["dst_active"] is True
    assert body["now_local_hour"] == pytest.approx(8.5)
    ny = next(a for a in body["active"] if a["session"] == "New York" and a["role"] == "main")
    assert ny["start_local"] == "08:00"
    assert ny["end_local"] == "17:00"


def test_sessions_dst_override(client) -> None:
    res = client.get("/sessions", params={"at": "2025-07-01T12:30:00Z", "offset": 0, "dst_override": False})
    assert res.json()["table"] == "standard"


def test_sessions_rejects_out_of_range_offset(client) -> None:
    assert client.get("/sessions", params={"offset": 20}).status_code == 422


def test_session_table_and_timeline(client) -> None:
    table = client.get("/sessions/table", params={"dst": True, "offset": 0}).json()
    assert table["table"] == "daylight"
    sydney = table["sessions"][0]
    assert sydney["name"] == "Sydney"
    assert sydney["windows"][0]["start_utc"] == 21
    assert sydney["windows"][0]["tooltip"]["volatility"] == "Low"

    blocks = client.get("/sessions/timeline", params={"offset": 0, "dst": False}).json()
    keys = [b["key"] for b in blocks]
    assert "sydney_session_1" in keys
    assert "sydney_session_2" in keys
    assert {b["kind"] for b in blocks} == {"main", "overlap", "killzone"}


def test_timezones(client) -> None:
    listing = client.get("/timezones").json()
    assert any(tz["label"] == "NPT" and tz["offset"] == 5.75 for tz in listing)
    assert client.get("/timezones/ist").json()["offset"] == 5.5
    assert client.get("/timezones/XYZ").status_code == 404


def test_observer_preferences_round_trip(client) -> None:
    res = client.put("/observer", json={"tz_offset": 5.5})
    assert res.status_code == 200
    assert res.json() == {"updated": ["tz_offset"]}

    observer = client.get("/observer").json()
    assert observer["tz_offset"] == 5.5

    body = client.get("/sessions", params={"at": "2025-01-15T08:00:00Z"}).json()
    assert body["offset_hours"] == 5.5
    assert body["now_local_hour"] == pytest.approx(13.5)

    res = client.put("/observer", json={"auto_detect_dst": True})
    assert res.json() == {"updated": ["auto_detect_dst", "dst_override"]}


def test_observer_rejects_bad_offset(client) -> None:
    assert client.put("/observer", json={"tz_offset": 20}).status_code == 422
    assert client.put("/observer", json={"tz_offset": None}).status_code == 422


def test_volume(client) -> None:
    body = client.get("/volume", params={"offset": 1, "interpolate": True, "at": "2025-01-15T13:30:00Z"}).json()
    assert body["rotation_steps"] == 2
    assert body["points"][0]["volume"] == 28
    assert body["points"][0]["utc_hour"] == pytest.approx(23.0)
    assert body["now_local_hour"] == pytest.approx(14.5)
    assert body["note"]["label"] == "13:00-16:00"
    assert len(body["interpolated"]) == 142


def test_alert_events_and_fired(client, tmp_path) -> None:
    events = client.get("/alerts/events", params={"at": "2025-01-15T12:00:00Z", "offset": 2}).json()
    assert len(events) == 36
    asia = next(e for e in events if e["id"] == "Asia_main_open-before")
    assert asia["trigger_hour_utc"] == 22.75
    assert asia["trigger_utc"] == "22:45"
    assert asia["trigger_local"] == "00:45"

    conn = connect(tmp_path / "api_integration.sqlite")
    try:
        record_fired_alerts(conn, ["London_main_open@08:00"])
    finally:
        conn.close()
    assert client.get("/alerts/fired").json() == ["London_main_open@08:00"]


def test_alert_config_update(client) -> None:
    current = client.get("/alerts/config").json()
    assert set(current) == {"enabled", "sound_enabled", "auto_dismiss_seconds"}

    updated = client.put("/alerts/config", json={"enabled": True, "auto_dismiss_seconds": 12}).json()
    assert updated["enabled"] is True
    assert updated["auto_dismiss_seconds"] == 12
    assert updated["sound_enabled"] == current["sound_enabled"]
    assert client.get("/alerts/config").json() == updated

    assert client.put("/alerts/config", json={"auto_dismiss_seconds": 601}).status_code == 422


def test_calendar_place(client) -> None:
    payload = {
        "events": [
            {"time_utc": "13:30", "impact": "High", "event": "CPI m/m"},
            {"time_utc": "Tentative", "impact": "Low", "event": "Bank Holiday"},
        ],
        "offset": -5,
    }
    body = client.post("/calendar/place", json=payload).json()
    assert body["skipped"] == 1
    assert body["events"][0]["local_time"] == "08:30"
    assert body["events"][0]["color"] == "#ef4444"
    assert sum(len(group) for group in body["stacked"].values()) == 1


def test_calendar_week_feed_failure(client, monkeypatch) -> None:
    def boom(*args, **kwargs):
        raise ConnectionError("feed offline")

    monkeypatch.setattr(calendar_routes, "fetch_calendar_events", boom)
    assert client.get("/calendar/week").status_code == 502


def test_calendar_week(client, monkeypatch) -> None:
    monkeypatch.setattr(
        calendar_routes,
        "fetch_calendar_events",
        lambda: [{"time_utc": "08:30", "impact": "Medium", "event": "GDP q/q"}],
    )
    body = client.get("/calendar/week", params={"offset": 1}).json()
    assert body["events"][0]["local_time"] == "09:30"
