"""Daylight saving calendars for the US, Europe and Australia.

Transitions are treated as happening at local midnight of the transition
date. Only the calendar date matters; time of day is ignored.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from enum import Enum

SUNDAY = calendar.SUNDAY  # 6, Python weekday numbering

MARCH, APRIL, OCTOBER, NOVEMBER = 3, 4, 10, 11


class DSTRegion(str, Enum):
    US = "US"
    EUROPE = "EUROPE"
    AUSTRALIA = "AUSTRALIA"


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def nth_weekday_of_month(year: int, month: int, weekday: int, occurrence: int) -> date:
    """Return the ``occurrence``-th ``weekday`` (Mon=0 .. Sun=6) of a month."""
    if occurrence < 1:
        raise ValueError("occurrence must be >= 1")
    first = date(year, month, 1)
    offset = (weekday - first.weekday()) % 7
    return first + timedelta(days=offset + (occurrence - 1) * 7)


def last_weekday_of_month(year: int, month: int, weekday: int) -> date:
    """Return the last ``weekday`` (Mon=0 .. Sun=6) of a month."""
    last = date(year, month, calendar.monthrange(year, month)[1])
    offset = (last.weekday() - weekday) % 7
    return last - timedelta(days=offset)


def us_dst_bounds(year: int) -> tuple[date, date]:
    """Second Sunday of March (inclusive) to first Sunday of November (exclusive)."""
    return (
        nth_weekday_of_month(year, MARCH, SUNDAY, 2),
        nth_weekday_of_month(year, NOVEMBER, SUNDAY, 1),
    )


def europe_dst_bounds(year: int) -> tuple[date, date]:
    """Last Sunday of March (inclusive) to last Sunday of October (exclusive)."""
    return (
        last_weekday_of_month(year, MARCH, SUNDAY),
        last_weekday_of_month(year, OCTOBER, SUNDAY),
    )


def is_us_dst(value: date | datetime) -> bool:
    day = _as_date(value)
    start, end = us_dst_bounds(day.year)
    return start <= day < end


def is_europe_dst(value: date | datetime) -> bool:
    day = _as_date(value)
    start, end = europe_dst_bounds(day.year)
    return start <= day < end


def is_australia_dst(value: date | datetime) -> bool:
    """Active from the first Sunday of October to the first Sunday of April.

    The active period wraps the calendar year, so each half is checked
    against that year's own transition date.
    """
    day = _as_date(value)
    if day.month >= OCTOBER:
        return day >= nth_weekday_of_month(day.year, OCTOBER, SUNDAY, 1)
    if day.month <= APRIL:
        return day < nth_weekday_of_month(day.year, APRIL, SUNDAY, 1)
    return False


_REGION_PREDICATES = {
    DSTRegion.US: is_us_dst,
    DSTRegion.EUROPE: is_europe_dst,
    DSTRegion.AUSTRALIA: is_australia_dst,
}


def is_region_active(region: DSTRegion, value: date | datetime) -> bool:
    return _REGION_PREDICATES[DSTRegion(region)](value)


def is_global_dst_active(value: date | datetime) -> bool:
    """True only while the US and Europe are both on summer time.

    Australia is deliberately not part of this check.
    """
    return is_us_dst(value) and is_europe_dst(value)


# Which DST calendar moves each market's opening hours. Tokyo has none.
MARKET_REGIONS: dict[str, DSTRegion | None] = {
    "london": DSTRegion.EUROPE,
    "newyork": DSTRegion.US,
    "sydney": DSTRegion.AUSTRALIA,
    "tokyo": None,
}


def session_time_offset(dst_active: bool, market: str, on: date | datetime) -> int:
    """Hours to add to a market's standard UTC range on a given date.

    Returns -1 when the table is in daylight mode and the market's own
    region observes DST on ``on``, else 0.
    """
    if not dst_active:
        return 0
    key = market.strip().lower().replace(" ", "")
    if key not in MARKET_REGIONS:
        raise ValueError(f"Unknown market: {market!r}")
    region = MARKET_REGIONS[key]
    if region is None:
        return 0
    return -1 if is_region_active(region, on) else 0


def shift_session_range(
    standard_range: tuple[float, float],
    dst_active: bool,
    market: str,
    on: date | datetime,
) -> tuple[float, float]:
    """Apply ``session_time_offset`` to a standard ``(start, end)`` range."""
    offset = session_time_offset(dst_active, market, on)
    if offset == 0:
        return standard_range

    start, end = standard_range
    start = (start + offset) % 48
    end = (end + offset) % 48
    return start, end
