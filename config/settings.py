# config/settings.py
"""
Runtime settings for the forex session engine and its host services.
"""

from __future__ import annotations

import math
import os
from typing import Final

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_optional_bool(name: str) -> bool | None:
    """Tri-state flag: unset/empty -> None, otherwise parsed like _env_bool."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip().lower() in {"1", "true", "yes", "on"}


APP_ENV: str = os.getenv("APP_ENV", "prod").strip().lower()

# DST table selection. The manual override always wins over auto-detection.
AUTO_DETECT_DST: bool = _env_bool("AUTO_DETECT_DST", True)
MANUAL_DST_OVERRIDE_RAW: str = os.getenv("MANUAL_DST_OVERRIDE", "").strip().lower()
MANUAL_DST_OVERRIDE: bool | None = _env_optional_bool("MANUAL_DST_OVERRIDE")

DEFAULT_TZ_OFFSET: float = float(os.getenv("DEFAULT_TZ_OFFSET", "0"))
MIN_TZ_OFFSET: Final[float] = -12.0
MAX_TZ_OFFSET: Final[float] = 14.0

WARNING_THRESHOLD_MINUTES: float = float(os.getenv("WARNING_THRESHOLD_MINUTES", "15"))
ALERT_LEAD_MINUTES: float = float(os.getenv("ALERT_LEAD_MINUTES", "15"))
ALERT_TOLERANCE_MINUTES: float = float(os.getenv("ALERT_TOLERANCE_MINUTES", "1"))

COUNTDOWN_TICK_SEC: float = float(os.getenv("COUNTDOWN_TICK_SEC", "1.0"))
ALERT_CHECK_INTERVAL_SEC: float = float(os.getenv("ALERT_CHECK_INTERVAL_SEC", "10.0"))

LOG_FILE: str = os.getenv("LOG_FILE", "logs/fxsessions.log")
ALERT_LOG_FILE: str = os.getenv("ALERT_LOG_FILE", "logs/alerts.log")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()

ALERTS_ENABLED_DEFAULT: bool = _env_bool("ALERTS_ENABLED", False)
ALERT_SOUND_DEFAULT: bool = _env_bool("ALERT_SOUND_ENABLED", True)
ALERT_AUTO_DISMISS_SEC: int = int(os.getenv("ALERT_AUTO_DISMISS_SEC", "5"))


def warning_threshold_hours() -> float:
    return WARNING_THRESHOLD_MINUTES / 60.0


def alert_lead_hours() -> float:
    return ALERT_LEAD_MINUTES / 60.0


def alert_tolerance_hours() -> float:
    return ALERT_TOLERANCE_MINUTES / 60.0


def validate_offset(offset_hours: float) -> float:
    """Reject offsets the session math is not meant to see.

    The engine itself never checks this; it is the host boundary's job.
    """
    value = float(offset_hours)
    if not math.isfinite(value):
        raise ValueError("Timezone offset must be a finite number of hours.")
    if value < MIN_TZ_OFFSET or value > MAX_TZ_OFFSET:
        raise ValueError(
            f"Timezone offset {value:g}h is outside the supported range "
            f"[{MIN_TZ_OFFSET:g}, {MAX_TZ_OFFSET:g}]."
        )
    return value


def validate_settings() -> None:
    """Validate runtime settings loaded from the environment."""
    if MANUAL_DST_OVERRIDE_RAW and MANUAL_DST_OVERRIDE_RAW not in {"1", "0", "true", "false", "yes", "no", "on", "off"}:
        raise ValueError("MANUAL_DST_OVERRIDE must be empty, 'true' or 'false'.")

    validate_offset(DEFAULT_TZ_OFFSET)

    problems: list[str] = []
    if WARNING_THRESHOLD_MINUTES <= 0:
        problems.append("WARNING_THRESHOLD_MINUTES")
    if ALERT_LEAD_MINUTES <= 0:
        problems.append("ALERT_LEAD_MINUTES")
    if ALERT_TOLERANCE_MINUTES <= 0:
        problems.append("ALERT_TOLERANCE_MINUTES")
    if COUNTDOWN_TICK_SEC <= 0:
        problems.append("COUNTDOWN_TICK_SEC")
    if ALERT_CHECK_INTERVAL_SEC <= 0:
        problems.append("ALERT_CHECK_INTERVAL_SEC")

    if problems:
        names = ", ".join(problems)
        raise ValueError(f"Setting(s) must be positive: {names}.")
