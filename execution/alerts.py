"""Session open/close alert scheduling and delivery to notification sinks."""

from __future__ import annotations

import logging
import os
import smtplib
import ssl
import time
from dataclasses import dataclass
from email.message import EmailMessage
from enum import Enum
from typing import Any, Iterable, Protocol

from sessions.models import SessionDefinition
from timekeeping.tz import format_hour, normalize_hour

DEFAULT_LEAD_HOURS = 0.25
DEFAULT_TOLERANCE_HOURS = 1 / 60
MAX_ALERT_BODY_LEN = 2000


class AlertEventType(str, Enum):
    OPEN_BEFORE = "open-before"
    OPEN = "open"
    CLOSE_BEFORE = "close-before"
    CLOSE = "close"


@dataclass(frozen=True)
class AlertEvent:
    id: str
    session_name: str
    window_name: str
    event_type: AlertEventType
    trigger_hour: float
    message: str
    color: str = ""

    @property
    def is_opening(self) -> bool:
        return self.event_type in {AlertEventType.OPEN_BEFORE, AlertEventType.OPEN}


@dataclass
class AlertConfig:
    enabled: bool = False
    sound_enabled: bool = True
    auto_dismiss_seconds: int = 5

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "sound_enabled": self.sound_enabled,
            "auto_dismiss_seconds": self.auto_dismiss_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "AlertConfig":
        d = data or {}
        return cls(
            enabled=bool(d.get("enabled", False)),
            sound_enabled=bool(d.get("sound_enabled", True)),
            auto_dismiss_seconds=int(d.get("auto_dismiss_seconds", 5)),
        )


def _lead_label(lead_hours: float) -> str:
    return f"{round(lead_hours * 60):d} minutes"


def compute_alert_events(
    table: Iterable[SessionDefinition],
    lead_hours: float = DEFAULT_LEAD_HOURS,
) -> list[AlertEvent]:
    """Four events per window: before open, open, before close, close.

    Trigger hours are raw UTC and may be negative or past 24.
    """
    lead = _lead_label(lead_hours)
    events: list[AlertEvent] = []
    for session in table:
        for role, window in session.windows():
            base_id = f"{session.name}_{role}"
            plan = (
                (AlertEventType.OPEN_BEFORE, window.start - lead_hours, f"{window.name} opens in {lead}"),
                (AlertEventType.OPEN, window.start, f"{window.name} is now open"),
                (AlertEventType.CLOSE_BEFORE, window.end - lead_hours, f"{window.name} closes in {lead}"),
                (AlertEventType.CLOSE, window.end, f"{window.name} is now closed"),
            )
            for event_type, trigger, message in plan:
                events.append(
                    AlertEvent(
                        id=f"{base_id}_{event_type.value}",
                        session_name=session.name,
                        window_name=window.name,
                        event_type=event_type,
                        trigger_hour=trigger,
                        message=message,
                        color=window.color,
                    )
                )
    return events


def should_fire(
    event: AlertEvent,
    now_utc_hours: float,
    tolerance_hours: float = DEFAULT_TOLERANCE_HOURS,
) -> bool:
    """Stateless check: is now within tolerance of the trigger on a 24h dial?

    Comparing modulo 24 covers ``trigger`` and ``trigger ± 24`` alike.
    """
    diff = normalize_hour(normalize_hour(now_utc_hours) - event.trigger_hour)
    return min(diff, 24 - diff) <= tolerance_hours


def dedupe_key(event: AlertEvent) -> str:
    """One key per event and trigger time; the caller resets its set each UTC day."""
    return f"{event.id}@{format_hour(event.trigger_hour)}"


def due_alerts(
    events: Iterable[AlertEvent],
    now_utc_hours: float,
    fired_keys: set[str],
    tolerance_hours: float = DEFAULT_TOLERANCE_HOURS,
) -> list[tuple[AlertEvent, str]]:
    """Events that should fire now and have not fired yet.

    ``fired_keys`` is read, never mutated; the caller adds the returned keys.
    """
    due: list[tuple[AlertEvent, str]] = []
    for event in events:
        key = dedupe_key(event)
        if key in fired_keys:
            continue
        if should_fire(event, now_utc_hours, tolerance_hours):
            due.append((event, key))
    return due


def alert_title(event: AlertEvent) -> str:
    return "Opening Alert" if event.is_opening else "Closing Alert"


def alert_body(event: AlertEvent) -> str:
    body = f"{event.message} ({format_hour(normalize_hour(event.trigger_hour))} UTC)"
    if len(body) > MAX_ALERT_BODY_LEN:
        body = f"{body[:MAX_ALERT_BODY_LEN]}\n...<truncated>"
    return body


class NotificationSink(Protocol):
    def send(self, *, title: str, body: str) -> None: ...


class LogSink:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("fxsessions.alerts")

    def send(self, *, title: str, body: str) -> None:
        self.logger.info("ALERT %s: %s", title, body)


@dataclass
class EmailConfig:
    host: str
    port: int
    user: str | None
    password: str | None
    from_email: str
    to_email: str
    use_starttls: bool
    use_ssl: bool
    timeout_sec: float


class EmailSink:
    def __init__(self, config: EmailConfig, logger: logging.Logger | None = None) -> None:
        self.config = config
        self.logger = logger or logging.getLogger("fxsessions.alerts")

    def send(self, *, title: str, body: str) -> None:
        msg = EmailMessage()
        msg["From"] = self.config.from_email
        msg["To"] = self.config.to_email
        msg["Subject"] = title
        msg.set_content(body)

        for attempt in range(2):
            try:
                if self.config.use_ssl:
                    context = ssl.create_default_context()
                    with smtplib.SMTP_SSL(self.config.host, self.config.port, timeout=self.config.timeout_sec, context=context) as server:
                        if self.config.user and self.config.password:
                            server.login(self.config.user, self.config.password)
                        server.send_message(msg)
                else:
                    with smtplib.SMTP(self.config.host, self.config.port, timeout=self.config.timeout_sec) as server:
                        if self.config.use_starttls:
                            server.starttls(context=ssl.create_default_context())
                        if self.config.user and self.config.password:
                            server.login(self.config.user, self.config.password)
                        server.send_message(msg)
                return
            except Exception as exc:  # noqa: BLE001
                self.logger.warning("alert email failed title=%s attempt=%s err=%s", title, attempt + 1, exc)
                if attempt == 0:
                    time.sleep(0.15)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_email_config(settings: dict[str, Any] | None = None) -> EmailConfig | None:
    s = settings or {}
    host = str(s.get("SMTP_HOST") or os.getenv("SMTP_HOST", "")).strip()
    if not host:
        return None
    to_email = str(s.get("ALERT_EMAIL_TO") or os.getenv("ALERT_EMAIL_TO", "")).strip()
    if not to_email:
        return None
    port = int(s.get("SMTP_PORT") or os.getenv("SMTP_PORT", "587"))
    user = s.get("SMTP_USER") or os.getenv("SMTP_USER")
    password = s.get("SMTP_PASS") or os.getenv("SMTP_PASS")
    from_email = str(s.get("SMTP_FROM") or os.getenv("SMTP_FROM", user or "fxsessions@localhost")).strip()
    return EmailConfig(
        host=host,
        port=port,
        user=str(user) if user else None,
        password=str(password) if password else None,
        from_email=from_email,
        to_email=to_email,
        use_starttls=_env_bool("SMTP_USE_STARTTLS", True) if "SMTP_USE_STARTTLS" not in s else bool(s["SMTP_USE_STARTTLS"]),
        use_ssl=_env_bool("SMTP_USE_SSL", False) if "SMTP_USE_SSL" not in s else bool(s["SMTP_USE_SSL"]),
        timeout_sec=float(s.get("SMTP_TIMEOUT_SEC") or os.getenv("SMTP_TIMEOUT_SEC", "10")),
    )


class SessionAlertService:
    """Fires due session alerts into every sink, once per dedupe key."""

    def __init__(
        self,
        providers: list[NotificationSink],
        *,
        config: AlertConfig | None = None,
        environment: str = "prod",
        tolerance_hours: float = DEFAULT_TOLERANCE_HOURS,
        logger: logging.Logger | None = None,
    ) -> None:
        self.providers = providers
        self.config = config or AlertConfig()
        self.environment = environment
        self.tolerance_hours = tolerance_hours
        self.logger = logger or logging.getLogger("fxsessions.alerts")

    def dispatch(
        self,
        events: Iterable[AlertEvent],
        now_utc_hours: float,
        fired_keys: set[str],
    ) -> tuple[list[AlertEvent], set[str]]:
        """Send due alerts; return them with the grown dedupe set (a new set)."""
        if not self.config.enabled:
            return [], set(fired_keys)

        updated = set(fired_keys)
        sent: list[AlertEvent] = []
        for event, key in due_alerts(events, now_utc_hours, fired_keys, self.tolerance_hours):
            title = alert_title(event)
            if self.environment != "prod":
                title = f"[{self.environment}] {title}"
            body = alert_body(event)
            for provider in self.providers:
                try:
                    provider.send(title=title, body=body)
                except Exception as exc:  # noqa: BLE001
                    self.logger.warning("sink failed alert=%s err=%s", event.id, exc)
            updated.add(key)
            sent.append(event)
        return sent, updated


def build_alert_service(
    *,
    settings: dict[str, Any] | None = None,
    config: AlertConfig | None = None,
    environment: str = "prod",
    tolerance_hours: float = DEFAULT_TOLERANCE_HOURS,
) -> SessionAlertService:
    providers: list[NotificationSink] = [LogSink()]
    email_config = load_email_config(settings=settings)
    if email_config is not None:
        providers.append(EmailSink(email_config))
    return SessionAlertService(providers, config=config, environment=environment, tolerance_hours=tolerance_hours)
