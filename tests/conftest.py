from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure the directory that contains `sessions/`, `timekeeping/`, etc. is importable.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class CaptureSink:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def send(self, *, title: str, body: str) -> None:
        self.messages.append((title, body))


@pytest.fixture()
def capture_sink() -> CaptureSink:
    return CaptureSink()


@pytest.fixture()
def db_conn(tmp_path):
    from storage.db import connect, init_db

    conn = connect(tmp_path / "sessions.sqlite")
    init_db(conn)
    try:
        yield conn
    finally:
        conn.close()
