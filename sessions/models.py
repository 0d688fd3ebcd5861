"""Value types for session windows, their definitions and evaluated state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class WindowKind(str, Enum):
    MAIN = "main"
    OVERLAP = "overlap"
    KILLZONE = "killzone"


class SessionStatus(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    WARNING = "WARNING"


# Secondary window roles, in display order.
SECONDARY_ROLES: tuple[str, ...] = (
    "overlap_asia",
    "overlap_london",
    "killzone",
    "killzone_am",
    "killzone_pm",
)


def kind_for_role(role: str) -> WindowKind:
    if role == "main":
        return WindowKind.MAIN
    if role.startswith("overlap"):
        return WindowKind.OVERLAP
    if role.startswith("killzone"):
        return WindowKind.KILLZONE
    raise ValueError(f"Unknown window role: {role!r}")


@dataclass(frozen=True)
class WindowTooltip:
    title: str
    volatility: str
    best_pairs: str
    strategy: str


@dataclass(frozen=True)
class SessionWindow:
    """
    A half-open UTC range ``[start, end)`` in fractional hours.

    ``end`` may exceed 24 for windows crossing UTC midnight, e.g.
    ``[21, 30)`` is 21:00 to 06:00 UTC the next day.
    """

    key: str
    name: str
    start: float
    end: float
    kind: WindowKind = WindowKind.MAIN
    color: str = ""
    opacity: float = 0.7
    tooltip: WindowTooltip | None = None

    @property
    def duration_hours(self) -> float:
        return self.end - self.start

    @property
    def crosses_midnight(self) -> bool:
        return self.end > 24


@dataclass(frozen=True)
class SessionDefinition:
    name: str
    main: SessionWindow
    secondary: Mapping[str, SessionWindow] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "secondary", MappingProxyType(dict(self.secondary)))

    def windows(self) -> list[tuple[str, SessionWindow]]:
        """Return ``(role, window)`` pairs, main first."""
        out: list[tuple[str, SessionWindow]] = [("main", self.main)]
        for role in SECONDARY_ROLES:
            window = self.secondary.get(role)
            if window is not None:
                out.append((role, window))
        for role, window in self.secondary.items():
            if role not in SECONDARY_ROLES:
                out.append((role, window))
        return out


@dataclass(frozen=True)
class SessionState:
    status: SessionStatus
    elapsed_seconds: float
    remaining_seconds: float
    start_utc: float
    end_utc: float

    @property
    def is_active(self) -> bool:
        return self.status is not SessionStatus.CLOSED


@dataclass(frozen=True)
class ActiveWindow:
    session_name: str
    role: str
    window: SessionWindow
    state: SessionState


@dataclass(frozen=True)
class SessionEvaluation:
    active: tuple[ActiveWindow, ...]
    by_session: Mapping[str, SessionStatus]


@dataclass(frozen=True)
class Observer:
    now_utc: datetime
    offset_hours: float = 0.0


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable result of one tick; published whole, never patched."""

    now_utc: datetime
    offset_hours: float
    now_local_hour: float
    dst_active: bool
    active: tuple[ActiveWindow, ...]
    by_session: Mapping[str, SessionStatus]
