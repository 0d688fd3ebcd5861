"""Half-hourly relative volume curve and its rotation into local time."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from timekeeping.tz import format_hour, local_hour_to_utc, utc_hour_to_local

SLOTS_PER_DAY = 48
SLOT_HOURS = 0.5

# Mean relative intensity (0-100) per UTC half-hour, slot 0 = 00:00-00:30.
VOLUME_CURVE: tuple[int, ...] = (
    18, 17, 17, 18, 19, 21,   # 00:00-02:30 Sydney-only quiet
    23, 26, 30, 35, 39, 42,   # 03:00-05:30 Tokyo desks warming up
    46, 50, 55, 60, 65, 70,   # 06:00-08:30 Tokyo peak, Europe pre-open
    75, 82, 88, 92, 89, 84,   # 09:00-11:30 London open burst, lunch dip
    90, 95, 98, 100, 99, 96,  # 12:00-14:30 London-NY overlap peak
    94, 90, 86, 80, 75, 70,   # 15:00-17:30 overlap winds down
    68, 63, 58, 52, 48, 44,   # 18:00-20:30 NY only
    40, 36, 32, 30, 28, 26,   # 21:00-23:30 rollover lull
)


@dataclass(frozen=True)
class VolumeNote:
    utc_start: float
    utc_end: float
    description: str


VOLUME_NOTES: tuple[VolumeNote, ...] = (
    VolumeNote(0, 3, "Sydney-only quiet; slow Asian liquidity build"),
    VolumeNote(3, 6, "Asia begins, Tokyo desks warming up"),
    VolumeNote(6, 9, "Tokyo peak, early Europe pre-open buildup"),
    VolumeNote(9, 12, "Europe volatility, London open burst then lunch dip at 11:00 UTC"),
    VolumeNote(12, 15, "NY AM Killzone; peak overlap (100 at 13:30 UTC), data spikes and trend runs"),
    VolumeNote(15, 18, "Overlap winds down, London exits, NY active"),
    VolumeNote(18, 21, "NY-only, declining flow, US close nearing"),
    VolumeNote(21, 24, "Rollover lull, swap-settlement hour, Sydney pre-open"),
)


def _check_curve(curve: Sequence[int]) -> None:
    if len(curve) != SLOTS_PER_DAY:
        raise ValueError(f"Volume curve must have {SLOTS_PER_DAY} points, got {len(curve)}")


def rotation_steps(offset_hours: float) -> int:
    """Half-hour slots to rotate by, in ``[0, 48)``. Halves round up."""
    steps = math.floor(offset_hours * 2 + 0.5)
    return steps % SLOTS_PER_DAY


def rotate_volume_curve(curve: Sequence[int], offset_hours: float) -> list[int]:
    """
    Re-index a UTC curve so output slot ``i`` is local ``[i*0.5, i*0.5+0.5)``.

    A positive offset means local midnight is an earlier UTC slot, so the
    tail of the UTC curve moves to the front.
    """
    _check_curve(curve)
    values = list(curve)
    pivot = SLOTS_PER_DAY - rotation_steps(offset_hours)
    return values[pivot:] + values[:pivot]


def interpolate_volume(curve: Sequence[float]) -> list[float]:
    """Insert two points between neighbours, at 1/3 and 2/3 of the way."""
    if len(curve) < 2:
        return [float(v) for v in curve]
    source = np.asarray(curve, dtype=float)
    positions = np.linspace(0, len(source) - 1, (len(source) - 1) * 3 + 1)
    return np.interp(positions, np.arange(len(source)), source).round(3).tolist()


def volume_profile_frame(offset_hours: float, curve: Sequence[int] = VOLUME_CURVE) -> pd.DataFrame:
    """Rotated curve as a frame with local and UTC slot positions."""
    rotated = rotate_volume_curve(curve, offset_hours)
    local_hours = np.arange(SLOTS_PER_DAY) * SLOT_HOURS
    frame = pd.DataFrame({"local_hour": local_hours, "volume": rotated})
    frame["label"] = frame["local_hour"].map(format_hour)
    frame["utc_hour"] = frame["local_hour"].map(lambda h: local_hour_to_utc(h, offset_hours))
    return frame[["local_hour", "label", "utc_hour", "volume"]]


def now_marker(now_utc_hours: float, offset_hours: float) -> float:
    """Local-hour x position of "now" on the rotated chart."""
    return utc_hour_to_local(now_utc_hours, offset_hours)


def current_volume_note(now_local_hour: float, offset_hours: float) -> dict[str, object]:
    """Return the 3-hour UTC block containing now, labelled in local time."""
    utc_hour = local_hour_to_utc(now_local_hour, offset_hours)
    index = min(int(utc_hour // 3), len(VOLUME_NOTES) - 1)
    note = VOLUME_NOTES[index]
    start_local = utc_hour_to_local(note.utc_start, offset_hours)
    end_local = utc_hour_to_local(note.utc_end, offset_hours)
    return {
        "utc_start": note.utc_start,
        "utc_end": note.utc_end,
        "label": f"{format_hour(start_local)}-{format_hour(end_local)}",
        "description": note.description,
    }
