"""Session table validation and DST-driven table selection."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Iterable

from config.sessions import SESSIONS_DAYLIGHT, SESSIONS_STANDARD
from sessions.models import SessionDefinition, kind_for_role
from timekeeping.dst import is_global_dst_active


class SessionConfigError(ValueError):
    """Raised when a static session table is malformed."""


def validate_table(table: Iterable[SessionDefinition]) -> tuple[SessionDefinition, ...]:
    """Check every window once, at load time.

    Windows are ``[start, end)`` in UTC hours with ``0 <= start < end <= 48``.
    """
    sessions = tuple(table)
    if not sessions:
        raise SessionConfigError("Session table is empty")

    seen_keys: set[str] = set()
    seen_names: set[str] = set()
    for session in sessions:
        if session.name in seen_names:
            raise SessionConfigError(f"Duplicate session name: {session.name!r}")
        seen_names.add(session.name)

        for role, window in session.windows():
            where = f"{session.name}.{role} ({window.key})"
            try:
                kind = kind_for_role(role)
            except ValueError as exc:
                raise SessionConfigError(f"{where}: {exc}") from exc
            if window.kind is not kind:
                raise SessionConfigError(f"{where}: kind {window.kind.value} does not match role")
            if not (math.isfinite(window.start) and math.isfinite(window.end)):
                raise SessionConfigError(f"{where}: bounds must be finite")
            if window.start < 0 or window.start >= 48:
                raise SessionConfigError(f"{where}: start {window.start} outside [0, 48)")
            if window.end <= window.start:
                raise SessionConfigError(f"{where}: end {window.end} must be after start {window.start}")
            if window.end > 48:
                raise SessionConfigError(f"{where}: end {window.end} exceeds 48")
            if window.key in seen_keys:
                raise SessionConfigError(f"{where}: duplicate window key")
            seen_keys.add(window.key)

    return sessions


STANDARD_TABLE: tuple[SessionDefinition, ...] = validate_table(SESSIONS_STANDARD)
DAYLIGHT_TABLE: tuple[SessionDefinition, ...] = validate_table(SESSIONS_DAYLIGHT)


def resolve_dst_status(
    now_utc: datetime,
    manual_override: bool | None = None,
    auto_detect: bool = True,
) -> bool:
    """Override wins, then calendar detection, then standard time."""
    if manual_override is not None:
        return bool(manual_override)
    if auto_detect:
        if now_utc.tzinfo is not None:
            now_utc = now_utc.astimezone(timezone.utc)
        return is_global_dst_active(now_utc.date())
    return False


def table_for(dst_active: bool) -> tuple[SessionDefinition, ...]:
    return DAYLIGHT_TABLE if dst_active else STANDARD_TABLE


def select_session_table(
    now_utc: datetime,
    manual_override: bool | None = None,
    auto_detect: bool = True,
) -> tuple[SessionDefinition, ...]:
    return table_for(resolve_dst_status(now_utc, manual_override, auto_detect))
