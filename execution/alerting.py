from __future__ import annotations

import os
import sqlite3

from config.settings import ALERT_AUTO_DISMISS_SEC, ALERT_SOUND_DEFAULT, ALERTS_ENABLED_DEFAULT, alert_tolerance_hours
from execution.alerts import AlertConfig, SessionAlertService, build_alert_service
from storage.db import get_app_settings, load_alert_config

SMTP_SETTING_KEYS = [
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
    "SMTP_FROM",
    "ALERT_EMAIL_TO",
    "SMTP_USE_STARTTLS",
    "SMTP_USE_SSL",
    "SMTP_TIMEOUT_SEC",
]


def default_alert_config() -> AlertConfig:
    return AlertConfig(
        enabled=ALERTS_ENABLED_DEFAULT,
        sound_enabled=ALERT_SOUND_DEFAULT,
        auto_dismiss_seconds=ALERT_AUTO_DISMISS_SEC,
    )


def get_alert_service_for_db(conn: sqlite3.Connection) -> SessionAlertService:
    """Build the alert service from persisted SMTP settings and alert config."""
    settings = get_app_settings(conn, keys=SMTP_SETTING_KEYS)
    return build_alert_service(
        settings=settings,
        config=load_alert_config(conn, default=default_alert_config()),
        environment=os.getenv("APP_ENV", "prod"),
        tolerance_hours=alert_tolerance_hours(),
    )
