"""Static session tables and the selectable timezone catalogue.

Both tables share session names and roles; only the UTC ranges differ.
The daylight table applies while the US and Europe are both on summer time.
"""

from __future__ import annotations

from dataclasses import dataclass

from sessions.models import SessionDefinition, SessionWindow, WindowKind, WindowTooltip

_TOOLTIPS: dict[str, WindowTooltip] = {
    "sydney_session": WindowTooltip(
        title="Sydney Session",
        volatility="Low",
        best_pairs="AUD/USD, AUD/JPY",
        strategy="Range trading, breakouts during session open.",
    ),
    "tokyo_session": WindowTooltip(
        title="Asian Session (Tokyo)",
        volatility="Low-Medium",
        best_pairs="USD/JPY, GBP/JPY",
        strategy="Follow JPY pairs, watch for Bank of Japan announcements.",
    ),
    "london_session": WindowTooltip(
        title="London Session",
        volatility="High",
        best_pairs="EUR/USD, GBP/USD",
        strategy="High volume, focus on breakouts and trend-following.",
    ),
    "asia_london_overlap": WindowTooltip(
        title="Asia-London Overlap",
        volatility="High",
        best_pairs="GBP/JPY, EUR/JPY",
        strategy="Trend continuation from Asia or reversals as London volume enters.",
    ),
    "london_killzone": WindowTooltip(
        title="London Killzone (LKZ)",
        volatility="Very High",
        best_pairs="EUR/USD, GBP/USD",
        strategy="Liquidity grabs above/below the Asian range, then a reversal.",
    ),
    "ny_session": WindowTooltip(
        title="New York Session",
        volatility="High",
        best_pairs="USD Majors",
        strategy="Key economic data releases. Trade the news or wait for post-news trends.",
    ),
    "london_ny_overlap": WindowTooltip(
        title="London-NY Overlap",
        volatility="Very High",
        best_pairs="EUR/USD, USD/JPY, GBP/USD",
        strategy="Highest liquidity period. Breakouts and short-term trend following.",
    ),
    "ny_am_killzone": WindowTooltip(
        title="NY AM Killzone",
        volatility="Very High",
        best_pairs="USD Majors, Indices (US30, NAS100)",
        strategy="Manipulation around the NY open engineers liquidity before the true move.",
    ),
    "ny_pm_killzone": WindowTooltip(
        title="NY PM Killzone",
        volatility="Medium",
        best_pairs="USD Majors",
        strategy="Reversal or retracement as London closes and profit-taking occurs.",
    ),
}

# key -> (display name, kind, colour, opacity)
_WINDOW_STYLE: dict[str, tuple[str, WindowKind, str, float]] = {
    "sydney_session": ("Sydney Session", WindowKind.MAIN, "hsl(195, 74%, 62%)", 0.7),
    "tokyo_session": ("Asian Session (Tokyo)", WindowKind.MAIN, "hsl(320, 82%, 60%)", 0.7),
    "london_session": ("London Session", WindowKind.MAIN, "hsl(45, 100%, 50%)", 0.7),
    "asia_london_overlap": ("Asia-London Overlap", WindowKind.OVERLAP, "hsl(255, 80%, 70%)", 0.9),
    "london_killzone": ("London Killzone", WindowKind.KILLZONE, "hsl(0, 80%, 60%)", 0.8),
    "ny_session": ("New York Session", WindowKind.MAIN, "hsl(120, 60%, 50%)", 0.7),
    "london_ny_overlap": ("London-NY Overlap", WindowKind.OVERLAP, "hsl(20, 100%, 60%)", 0.9),
    "ny_am_killzone": ("NY AM Killzone", WindowKind.KILLZONE, "hsl(0, 80%, 60%)", 0.8),
    "ny_pm_killzone": ("NY PM Killzone", WindowKind.KILLZONE, "hsl(0, 60%, 55%)", 0.6),
}


def _window(key: str, start: float, end: float) -> SessionWindow:
    name, kind, color, opacity = _WINDOW_STYLE[key]
    return SessionWindow(
        key=key,
        name=name,
        start=start,
        end=end,
        kind=kind,
        color=color,
        opacity=opacity,
        tooltip=_TOOLTIPS[key],
    )


def _build_table(ranges: dict[str, tuple[float, float]]) -> tuple[SessionDefinition, ...]:
    def w(key: str) -> SessionWindow:
        return _window(key, *ranges[key])

    return (
        SessionDefinition(name="Sydney", main=w("sydney_session")),
        SessionDefinition(name="Asia", main=w("tokyo_session")),
        SessionDefinition(
            name="London",
            main=w("london_session"),
            secondary={
                "overlap_asia": w("asia_london_overlap"),
                "killzone": w("london_killzone"),
            },
        ),
        SessionDefinition(
            name="New York",
            main=w("ny_session"),
            secondary={
                "overlap_london": w("london_ny_overlap"),
                "killzone_am": w("ny_am_killzone"),
                "killzone_pm": w("ny_pm_killzone"),
            },
        ),
    )


STANDARD_RANGES: dict[str, tuple[float, float]] = {
    "sydney_session": (21, 30),
    "tokyo_session": (23, 32),
    "london_session": (8, 17),
    "asia_london_overlap": (8, 9),
    "london_killzone": (7, 10),
    "ny_session": (13, 22),
    "london_ny_overlap": (13, 17),
    "ny_am_killzone": (12, 15),
    "ny_pm_killzone": (18, 20),
}

DAYLIGHT_RANGES: dict[str, tuple[float, float]] = {
    "sydney_session": (21, 30),
    "tokyo_session": (23, 32),
    "london_session": (7, 16),
    "asia_london_overlap": (7, 8),
    "london_killzone": (6, 9),
    "ny_session": (12, 21),
    "london_ny_overlap": (12, 16),
    "ny_am_killzone": (11, 14),
    "ny_pm_killzone": (17, 19),
}

SESSIONS_STANDARD: tuple[SessionDefinition, ...] = _build_table(STANDARD_RANGES)
SESSIONS_DAYLIGHT: tuple[SessionDefinition, ...] = _build_table(DAYLIGHT_RANGES)


@dataclass(frozen=True)
class Timezone:
    label: str
    offset: float
    description: str = ""


TIMEZONES: tuple[Timezone, ...] = (
    Timezone("UTC", 0, "Coordinated Universal Time"),
    Timezone("GMT", 0, "Greenwich Mean Time"),
    Timezone("WET", 0, "Western European Time"),
    Timezone("WEST", 1, "Western European Summer Time"),
    Timezone("BST", 1, "British Summer Time"),
    Timezone("CET", 1, "Central European Time"),
    Timezone("CEST", 2, "Central European Summer Time"),
    Timezone("EET", 2, "Eastern European Time"),
    Timezone("EEST", 3, "Eastern European Summer Time"),
    Timezone("MSK", 3, "Moscow Standard Time"),
    Timezone("JST", 9, "Japan Standard Time"),
    Timezone("KST", 9, "Korea Standard Time"),
    Timezone("CST", 8, "China Standard Time"),
    Timezone("HKT", 8, "Hong Kong Time"),
    Timezone("SGT", 8, "Singapore Standard Time"),
    Timezone("ICT", 7, "Indochina Time"),
    Timezone("IST", 5.5, "Indian Standard Time"),
    Timezone("NPT", 5.75, "Nepal Time"),
    Timezone("PKT", 5, "Pakistan Standard Time"),
    Timezone("BDT", 6, "Bangladesh Standard Time"),
    Timezone("PST", -8, "Pacific Standard Time"),
    Timezone("PDT", -7, "Pacific Daylight Time"),
    Timezone("MST", -7, "Mountain Standard Time"),
    Timezone("MDT", -6, "Mountain Daylight Time"),
    Timezone("CST(US)", -6, "Central Standard Time (US)"),
    Timezone("CDT", -5, "Central Daylight Time"),
    Timezone("EST", -5, "Eastern Standard Time"),
    Timezone("EDT", -4, "Eastern Daylight Time"),
    Timezone("ART", -3, "Argentina Time"),
    Timezone("BRT", -3, "Brasilia Time"),
    Timezone("WAT", 1, "West Africa Time"),
    Timezone("CAT", 2, "Central Africa Time"),
    Timezone("EAT", 3, "East Africa Time"),
    Timezone("SAST", 2, "South Africa Standard Time"),
    Timezone("GST", 4, "Gulf Standard Time"),
    Timezone("IRST", 3.5, "Iran Standard Time"),
    Timezone("AWST", 8, "Australian Western Standard Time"),
    Timezone("ACST", 9.5, "Australian Central Standard Time"),
    Timezone("ACDT", 10.5, "Australian Central Daylight Time"),
    Timezone("AEST", 10, "Australian Eastern Standard Time"),
    Timezone("AEDT", 11, "Australian Eastern Daylight Time"),
    Timezone("NZST", 12, "New Zealand Standard Time"),
    Timezone("NZDT", 13, "New Zealand Daylight Time"),
    Timezone("LINT", 14, "Line Islands Time"),
    Timezone("BIT", -12, "Baker Island Time"),
)


def find_timezone(label: str) -> Timezone | None:
    wanted = label.strip().upper()
    for tz in TIMEZONES:
        if tz.label.upper() == wanted:
            return tz
    return None
