from __future__ import annotations

import pytest

from indicators.volume_profile import (
    VOLUME_CURVE,
    current_volume_note,
    interpolate_volume,
    now_marker,
    rotate_volume_curve,
    rotation_steps,
    volume_profile_frame,
)


def test_reference_curve_shape() -> None:
    assert len(VOLUME_CURVE) == 48
    assert max(VOLUME_CURVE) == 100
    assert VOLUME_CURVE.index(100) == 27  # 13:30 UTC


def test_zero_offset_is_identity() -> None:
    assert rotate_volume_curve(VOLUME_CURVE, 0) == list(VOLUME_CURVE)
    assert rotate_volume_curve(VOLUME_CURVE, 24) == list(VOLUME_CURVE)


def test_positive_offset_moves_tail_to_front() -> None:
    out = rotate_volume_curve(VOLUME_CURVE, 1)
    assert out[0] == 28
    assert out[2] == 18


def test_negative_and_fractional_offsets() -> None:
    assert rotate_volume_curve(VOLUME_CURVE, -5)[0] == 39
    assert rotate_volume_curve(VOLUME_CURVE, 5.5)[0] == 63


def test_rotation_preserves_values() -> None:
    for offset in (-12, -3.5, 5.75, 9.5, 14):
        assert sorted(rotate_volume_curve(VOLUME_CURVE, offset)) == sorted(VOLUME_CURVE)


def test_rotation_steps_round_half_up() -> None:
    assert rotation_steps(5.75) == 12  # 11.5 rounds up
    assert rotation_steps(-0.25) == 0  # -0.5 rounds up to 0
    assert rotation_steps(-12) == 24
    assert rotation_steps(14) == 28


def test_rotation_rejects_wrong_length() -> None:
    with pytest.raises(ValueError):
        rotate_volume_curve([1, 2, 3], 0)


def test_interpolation_adds_two_points_per_gap() -> None:
    assert interpolate_volume([0, 3, 9]) == [0.0, 1.0, 2.0, 3.0, 5.0, 7.0, 9.0]
    assert len(interpolate_volume(VOLUME_CURVE)) == 142
    assert interpolate_volume([5]) == [5.0]


def test_profile_frame_columns() -> None:
    frame = volume_profile_frame(-5)
    assert list(frame.columns) == ["local_hour", "label", "utc_hour", "volume"]
    assert len(frame) == 48
    first = frame.iloc[0]
    assert first["label"] == "00:00"
    assert first["utc_hour"] == pytest.approx(5.0)
    assert first["volume"] == 39


def test_now_marker() -> None:
    assert now_marker(23.5, 2) == pytest.approx(1.5)


def test_current_volume_note_local_label() -> None:
    note = current_volume_note(now_local_hour=9.0, offset_hours=-4)
    assert note["utc_start"] == 12
    assert note["label"] == "08:00-11:00"
    assert "overlap" in str(note["description"])
